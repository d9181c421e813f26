"""SQLite storage for subjects, questions and incorrect-answer bookmarks."""
from __future__ import annotations

import json
import logging
import sqlite3
from functools import wraps
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import StorageWriteError
from .models import Incorrect, Question, Subject, answer_matches_type

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def _write_op(name: str):
    """Translate sqlite failures of a write method into ``StorageWriteError``."""

    def decorator(method):
        @wraps(method)
        def wrapped(self, *args, **kwargs):
            try:
                return method(self, *args, **kwargs)
            except sqlite3.Error as exc:
                logger.error("%s failed: %r", name, exc)
                subject_id = args[0] if args and isinstance(args[0], str) else None
                raise StorageWriteError(
                    f"{name} failed: {exc}", operation=name, subject_id=subject_id
                ) from exc

        return wrapped

    return decorator


def _load_options(raw: Optional[str]) -> Dict[int, str]:
    data = json.loads(raw or "{}")
    return {int(k): str(v) for k, v in data.items()}


def _row_to_question(row: sqlite3.Row) -> Question:
    return Question(
        subject_id=row["subject_id"],
        question_id=int(row["question_id"]),
        chapter=row["chapter"],
        question_type=row["question_type"],
        question_text=row["question_text"],
        options=_load_options(row["options_json"]),
        answer=json.loads(row["answer_json"] or "[]"),
        explanation=row["explanation"] or "",
    )


class QuizStore:
    """Storage collaborator over one explicitly owned sqlite connection.

    Write methods never commit; whoever drives a unit of work calls
    ``commit`` or ``rollback``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        conn.row_factory = sqlite3.Row
        self.conn = conn

    @classmethod
    def open(cls, db_path: Union[str, Path]) -> "QuizStore":
        conn = sqlite3.connect(str(db_path))
        store = cls(conn)
        store.ensure_schema()
        return store

    def ensure_schema(self) -> None:
        self.conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "QuizStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- Unit of work ---

    @_write_op("commit")
    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()

    # --- Writes ---

    @_write_op("upsertSubject")
    def upsert_subject(self, subject_id: str, name: str) -> None:
        self.conn.execute(
            """
            INSERT INTO subject (id, name) VALUES (?, ?)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name
            """,
            (subject_id, name),
        )

    @_write_op("deleteQuestionsBySubject")
    def delete_questions_by_subject(self, subject_id: str) -> int:
        cur = self.conn.execute("DELETE FROM question WHERE subject_id=?", (subject_id,))
        return cur.rowcount

    @_write_op("deleteIncorrectsBySubject")
    def delete_incorrects_by_subject(self, subject_id: str) -> int:
        cur = self.conn.execute("DELETE FROM incorrect WHERE subject_id=?", (subject_id,))
        return cur.rowcount

    @_write_op("upsertQuestion")
    def upsert_question(self, subject_id: str, question_id: int, fields: Mapping[str, Any]) -> None:
        question_type = fields["question_type"]
        answer = list(fields.get("answer") or [])
        if not answer_matches_type(question_type, answer):
            raise StorageWriteError(
                f"answer {answer!r} does not match question type {question_type}",
                operation="upsertQuestion",
                subject_id=subject_id,
            )
        options = {str(k): v for k, v in dict(fields.get("options") or {}).items()}
        self.conn.execute(
            """
            INSERT INTO question
                (subject_id, question_id, chapter, question_type, question_text,
                 options_json, answer_json, explanation)
            VALUES (?,?,?,?,?,?,?,?)
            ON CONFLICT(subject_id, question_id) DO UPDATE SET
                chapter=excluded.chapter,
                question_type=excluded.question_type,
                question_text=excluded.question_text,
                options_json=excluded.options_json,
                answer_json=excluded.answer_json,
                explanation=excluded.explanation
            """,
            (
                subject_id,
                question_id,
                fields["chapter"],
                question_type,
                fields["question_text"],
                json.dumps(options, ensure_ascii=False, sort_keys=True),
                json.dumps(answer, ensure_ascii=False),
                fields.get("explanation") or "",
            ),
        )

    def save_question(self, question: Question) -> None:
        self.upsert_question(
            question.subject_id,
            question.question_id,
            {
                "chapter": question.chapter,
                "question_type": question.question_type,
                "question_text": question.question_text,
                "options": question.options,
                "answer": question.answer,
                "explanation": question.explanation,
            },
        )

    @_write_op("deleteSubject")
    def delete_subject(self, subject_id: str) -> bool:
        """Delete a subject together with its questions and bookmarks."""
        self.conn.execute("DELETE FROM incorrect WHERE subject_id=?", (subject_id,))
        self.conn.execute("DELETE FROM question WHERE subject_id=?", (subject_id,))
        cur = self.conn.execute("DELETE FROM subject WHERE id=?", (subject_id,))
        return cur.rowcount > 0

    @_write_op("upsertIncorrect")
    def upsert_incorrect(self, subject_id: str, question_id: int, chapter: str) -> None:
        self.conn.execute(
            """
            INSERT INTO incorrect (subject_id, question_id, chapter) VALUES (?,?,?)
            ON CONFLICT(subject_id, question_id, chapter) DO NOTHING
            """,
            (subject_id, question_id, chapter),
        )

    @_write_op("deleteIncorrect")
    def delete_incorrect(
        self, subject_id: str, question_id: int, chapter: Optional[str] = None
    ) -> int:
        if chapter is None:
            cur = self.conn.execute(
                "DELETE FROM incorrect WHERE subject_id=? AND question_id=?",
                (subject_id, question_id),
            )
        else:
            cur = self.conn.execute(
                "DELETE FROM incorrect WHERE subject_id=? AND question_id=? AND chapter=?",
                (subject_id, question_id, chapter),
            )
        return cur.rowcount

    # --- Reads ---

    def find_subjects(self) -> List[Subject]:
        rows = self.conn.execute("SELECT id, name FROM subject ORDER BY id").fetchall()
        return [Subject(id=row["id"], name=row["name"]) for row in rows]

    def find_chapters(self, subject_id: str) -> List[str]:
        rows = self.conn.execute(
            """
            SELECT chapter, MIN(question_id) AS first_id
            FROM question
            WHERE subject_id=?
            GROUP BY chapter
            ORDER BY first_id
            """,
            (subject_id,),
        ).fetchall()
        return [row["chapter"] for row in rows]

    def find_questions(self, subject_id: Optional[str] = None, chapter: Optional[str] = None) -> List[Question]:
        clauses = []
        params: List[Any] = []
        if subject_id is not None:
            clauses.append("subject_id=?")
            params.append(subject_id)
        if chapter:
            clauses.append("chapter=?")
            params.append(chapter)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.conn.execute(
            f"SELECT * FROM question {where} ORDER BY subject_id, question_id",
            params,
        ).fetchall()
        return [_row_to_question(row) for row in rows]

    def find_incorrects(self, subject_id: Optional[str] = None) -> List[Incorrect]:
        if subject_id is None:
            rows = self.conn.execute(
                "SELECT * FROM incorrect ORDER BY subject_id, question_id"
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM incorrect WHERE subject_id=? ORDER BY question_id",
                (subject_id,),
            ).fetchall()
        return [
            Incorrect(
                subject_id=row["subject_id"],
                question_id=int(row["question_id"]),
                chapter=row["chapter"],
            )
            for row in rows
        ]


__all__ = ["QuizStore", "SCHEMA_PATH"]
