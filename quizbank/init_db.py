from pathlib import Path
from typing import Optional

from .db_utils import ensure_db_path
from .store import QuizStore


def initialize_database(db_path: Optional[str] = None) -> Path:
    path = ensure_db_path(db_path)
    with QuizStore.open(path):
        pass
    return path


if __name__ == "__main__":
    db = initialize_database()
    print(f"Database initialized at: {db}")
