"""Test configuration and fixtures."""

import csv
import os
import sys
from pathlib import Path

import pytest

APP_DIR = Path(__file__).resolve().parent.parent
REPO_ROOT = APP_DIR.parent

# Ensure the package root is importable
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from quizbank.store import QuizStore

HEADER = [
    "subject",
    "chapter",
    "type",
    "question",
    "option_1",
    "option_2",
    "option_3",
    "option_4",
    "option_5",
    "option_6",
    "answer",
    "explanation",
]


def mcq_row(subject, chapter, n, answer="1"):
    return {
        "subject": subject,
        "chapter": chapter,
        "type": "MCQ",
        "question": f"{subject} question {n}",
        "option_1": f"A{n}",
        "option_2": f"B{n}",
        "option_3": f"C{n}",
        "option_4": f"D{n}",
        "answer": answer,
        "explanation": f"Explanation {n}",
    }


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "quiz.db"


@pytest.fixture
def store(db_path):
    """Store over an isolated temporary database."""
    s = QuizStore.open(db_path)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to ``tmp_path/<name>`` and return the path."""

    def _write(name, rows, header=None, bom=False):
        header = header or HEADER
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        encoding = "utf-8-sig" if bom else "utf-8"
        with path.open("w", newline="", encoding=encoding) as handle:
            writer = csv.DictWriter(handle, fieldnames=header, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return _write


@pytest.fixture
def client(db_path, tmp_path):
    """Create test client with isolated database configuration."""
    upload_dir = tmp_path / "uploads"
    os.environ["QUIZBANK_DB"] = str(db_path)
    os.environ["QUIZBANK_UPLOAD_DIR"] = str(upload_dir)

    from quizbank.app import app

    app.config["TESTING"] = True
    try:
        with app.test_client() as c:
            c.upload_dir = upload_dir
            yield c
    finally:
        os.environ.pop("QUIZBANK_DB", None)
        os.environ.pop("QUIZBANK_UPLOAD_DIR", None)
