"""Test the legacy options migration."""

from quizbank.init_db import initialize_database
from quizbank.migrations import migrate_legacy_options, run_migrations
from quizbank.store import QuizStore


def _insert_raw(store, question_id, options_json):
    store.conn.execute(
        """
        INSERT INTO question (subject_id, question_id, chapter, question_type, question_text, options_json, answer_json)
        VALUES (?,?,?,?,?,?,?)
        """,
        ("old", question_id, "c", "MCQ", "q", options_json, "[0]"),
    )
    store.commit()


def test_array_options_are_rekeyed(store):
    _insert_raw(store, 1, '["3", "4", "5"]')
    _insert_raw(store, 2, '{"0": "A", "2": "C"}')

    assert migrate_legacy_options(store.conn) == 1
    store.commit()

    questions = store.find_questions("old")
    assert questions[0].options == {0: "3", 1: "4", 2: "5"}
    assert questions[1].options == {0: "A", 2: "C"}


def test_run_migrations_is_repeatable(db_path, capsys):
    path = initialize_database(str(db_path))
    with QuizStore.open(path) as store:
        _insert_raw(store, 1, '["x", "y"]')

    assert run_migrations(str(path)) == 1
    assert run_migrations(str(path)) == 0
    out = capsys.readouterr().out
    assert "re-keyed options of 1 question(s)" in out

    with QuizStore.open(path) as store:
        assert store.find_questions("old")[0].options == {0: "x", 1: "y"}


def test_run_migrations_reads_the_configured_database(db_path, monkeypatch):
    path = initialize_database(str(db_path))
    with QuizStore.open(path) as store:
        _insert_raw(store, 1, '["x"]')

    monkeypatch.setenv("QUIZBANK_DB", f'"{path}"')
    assert run_migrations() == 1

    with QuizStore.open(path) as store:
        assert store.find_questions("old")[0].options == {0: "x"}
