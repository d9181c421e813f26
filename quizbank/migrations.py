"""
Safe database migrations for the quiz store.
Re-keys legacy array-shaped question options into the index-keyed mapping
without touching rows that are already migrated.
"""

import json
import sqlite3
import sys
from typing import Optional

from .db_utils import ensure_db_path


def migrate_legacy_options(conn: sqlite3.Connection) -> int:
    """Rewrite ``["a", "b"]`` options as ``{"0": "a", "1": "b"}``. Returns rows changed."""
    rows = conn.execute(
        "SELECT subject_id, question_id, options_json FROM question"
    ).fetchall()

    migrated = 0
    for subject_id, question_id, options_json in rows:
        try:
            options = json.loads(options_json or "{}")
        except ValueError:
            print(f"[DB MIGRATE] {subject_id}/{question_id}: unreadable options, left as is")
            continue
        if not isinstance(options, list):
            continue
        keyed = {str(i): str(text) for i, text in enumerate(options)}
        conn.execute(
            "UPDATE question SET options_json=? WHERE subject_id=? AND question_id=?",
            (json.dumps(keyed, ensure_ascii=False, sort_keys=True), subject_id, question_id),
        )
        migrated += 1
    return migrated


def run_migrations(db_path: Optional[str] = None) -> int:
    """Run all pending migrations on the database."""
    conn = sqlite3.connect(str(ensure_db_path(db_path)))
    try:
        cur = conn.execute("PRAGMA table_info(question)")
        columns = [row[1] for row in cur.fetchall()]
        if "options_json" not in columns:
            print("Migration skipped: question.options_json does not exist")
            return 0

        migrated = migrate_legacy_options(conn)
        conn.commit()
        if migrated:
            print(f"Migration completed: re-keyed options of {migrated} question(s)")
        else:
            print("Migration skipped: no array-shaped options found")
        return migrated
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()


if __name__ == "__main__":
    run_migrations(sys.argv[1] if len(sys.argv) > 1 else None)
