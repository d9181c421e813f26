"""Seed a small demonstration question bank for quick testing."""
from __future__ import annotations

import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from typing import Optional

from quizbank.batch import build_batch
from quizbank.db_utils import ensure_db_path
from quizbank.importer import commit_batch
from quizbank.normalize import validate_row
from quizbank.store import QuizStore

DEMO_ROWS = [
    {
        "subject": "math",
        "subject_name": "Mathematics",
        "chapter": "Algebra",
        "type": "MCQ",
        "question": "What is 2 + 2?",
        "option_1": "3",
        "option_2": "4",
        "option_3": "5",
        "option_4": "6",
        "answer": "2",
        "explanation": "2 + 2 equals 4.",
    },
    {
        "subject": "science",
        "subject_name": "Science",
        "chapter": "Physics",
        "type": "FIB",
        "question": "The force of gravity on Earth is ____ m/s².",
        "answer": "9.8",
        "explanation": "The standard gravity is 9.8 m/s².",
    },
]


def seed(store: QuizStore) -> int:
    """Replace the demo subjects with the demo questions; returns questions written."""
    batch = build_batch(
        (validate_row(row, "demo.csv", line) for line, row in enumerate(DEMO_ROWS, start=2)),
        source="demo",
    )
    commit_batch(store, batch)
    return len(batch.questions)


def main(db_path: Optional[str] = None) -> None:
    with QuizStore.open(ensure_db_path(db_path)) as store:
        count = seed(store)
    print(f"Database seeded with {count} demo question(s).")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
