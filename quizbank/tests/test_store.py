"""Test the sqlite storage collaborator."""

import sqlite3

import pytest

from quizbank.errors import StorageWriteError
from quizbank.models import Incorrect, Question, Subject
from quizbank.store import QuizStore


def _question(subject_id="s", question_id=1, **overrides):
    fields = dict(
        subject_id=subject_id,
        question_id=question_id,
        chapter="Ch1",
        question_type="MCQ",
        question_text="Pick",
        options={0: "A", 2: "C"},
        answer=[2],
        explanation="",
    )
    fields.update(overrides)
    return Question(**fields)


def test_upsert_subject_inserts_then_renames(store):
    store.upsert_subject("bio", "BIO")
    store.upsert_subject("bio", "Biology")
    store.commit()
    assert store.find_subjects() == [Subject(id="bio", name="Biology")]


def test_question_round_trip_keeps_sparse_integer_keys(store):
    store.save_question(_question())
    store.commit()
    [q] = store.find_questions("s")
    assert q.options == {0: "A", 2: "C"}
    assert q.answer == [2]


def test_fib_answer_is_stored_as_single_string(store):
    store.save_question(_question(question_type="FIB", options={}, answer=["9.8"]))
    store.commit()
    assert store.find_questions("s")[0].answer == ["9.8"]


def test_upsert_question_overwrites_existing(store):
    store.save_question(_question())
    store.save_question(_question(question_text="Changed", chapter="Ch2"))
    store.commit()
    questions = store.find_questions("s")
    assert len(questions) == 1
    assert questions[0].question_text == "Changed"
    assert questions[0].chapter == "Ch2"


@pytest.mark.parametrize(
    "question_type, answer",
    [("FIB", [1]), ("FIB", ["a", "b"]), ("MCQ", ["1"]), ("SA", [True])],
)
def test_answer_shape_must_match_type(store, question_type, answer):
    with pytest.raises(StorageWriteError) as exc_info:
        store.save_question(_question(question_type=question_type, answer=answer))
    assert exc_info.value.operation == "upsertQuestion"


def test_sqlite_errors_become_storage_write_errors(store):
    with pytest.raises(StorageWriteError) as exc_info:
        store.save_question(_question(question_type="ESSAY", answer=[0]))
    assert exc_info.value.subject_id == "s"
    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)


def test_find_questions_filters_by_chapter(store):
    store.save_question(_question(question_id=1, chapter="A"))
    store.save_question(_question(question_id=2, chapter="B"))
    store.save_question(_question(question_id=3, chapter="A"))
    store.commit()
    assert [q.question_id for q in store.find_questions("s", "A")] == [1, 3]
    assert store.find_chapters("s") == ["A", "B"]


def test_delete_by_subject_only_touches_that_subject(store):
    store.save_question(_question("a"))
    store.save_question(_question("b"))
    store.upsert_incorrect("a", 1, "Ch1")
    store.upsert_incorrect("b", 1, "Ch1")
    assert store.delete_questions_by_subject("a") == 1
    assert store.delete_incorrects_by_subject("a") == 1
    store.commit()
    assert store.find_questions("a") == []
    assert len(store.find_questions("b")) == 1
    assert store.find_incorrects() == [Incorrect("b", 1, "Ch1")]


def test_delete_subject_cascades(store):
    store.upsert_subject("a", "A")
    store.save_question(_question("a"))
    store.upsert_incorrect("a", 1, "Ch1")
    store.commit()

    assert store.delete_subject("a") is True
    store.commit()
    assert store.find_subjects() == []
    assert store.find_questions("a") == []
    assert store.find_incorrects("a") == []
    assert store.delete_subject("a") is False


def test_incorrect_upsert_is_idempotent_and_resolvable(store):
    store.upsert_incorrect("s", 4, "Ch1")
    store.upsert_incorrect("s", 4, "Ch1")
    store.upsert_incorrect("s", 4, "Ch2")
    store.commit()
    assert len(store.find_incorrects("s")) == 2

    assert store.delete_incorrect("s", 4, "Ch1") == 1
    assert store.delete_incorrect("s", 4) == 1
    store.commit()
    assert store.find_incorrects("s") == []


def test_rollback_discards_uncommitted_writes(store):
    store.upsert_subject("s", "S")
    store.rollback()
    assert store.find_subjects() == []


def test_open_is_idempotent(db_path):
    with QuizStore.open(db_path) as first:
        first.upsert_subject("s", "S")
        first.commit()
    with QuizStore.open(db_path) as second:
        assert [s.id for s in second.find_subjects()] == ["s"]
