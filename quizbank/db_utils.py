"""Filesystem locations of the quiz store and its import inputs.

All of them come from environment variables (``.env`` is loaded by the
entry points) and are read on every call, so tests can repoint them.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

PACKAGE_ROOT = Path(__file__).resolve().parent
DEFAULT_DB_RELATIVE = Path("instance/quizbank.db")
DEFAULT_CSV_DIR = Path("csv_data")

DB_ENV = "QUIZBANK_DB"
CSV_DIR_ENV = "QUIZBANK_CSV_DIR"
UPLOAD_DIR_ENV = "QUIZBANK_UPLOAD_DIR"


def _env_path(value: Optional[str]) -> str:
    # .env values are often pasted with their quotes
    return (value or "").strip().strip('"').strip("'")


def resolve_db_path(raw: Optional[str] = None) -> Path:
    """Quiz store location: ``raw``, else ``QUIZBANK_DB``, else the packaged default.

    Relative paths are taken relative to the package, never the cwd.
    """
    if raw is None:
        raw = os.environ.get(DB_ENV)
    candidate = Path(_env_path(raw) or DEFAULT_DB_RELATIVE)
    if not candidate.is_absolute():
        candidate = PACKAGE_ROOT / candidate
    return candidate


def ensure_db_path(raw: Optional[str] = None) -> Path:
    path = resolve_db_path(raw)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def csv_dir() -> Path:
    """Directory the batch import scans when given no paths (cwd-relative)."""
    return Path(_env_path(os.environ.get(CSV_DIR_ENV)) or DEFAULT_CSV_DIR)


def upload_dir() -> Path:
    """Where uploaded question banks wait for import; created on demand."""
    raw = _env_path(os.environ.get(UPLOAD_DIR_ENV))
    if not raw:
        return Path(tempfile.gettempdir())
    path = Path(raw)
    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "resolve_db_path",
    "ensure_db_path",
    "csv_dir",
    "upload_dir",
    "DEFAULT_DB_RELATIVE",
    "DB_ENV",
]
