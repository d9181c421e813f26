"""Row-level normalization for CSV question banks.

Raw records pass through four steps before they reach an import batch:

* header names are canonicalized (``normalize_header``),
* ``option_1`` .. ``option_6`` collapse into a sparse index map
  (``collect_options``),
* the raw answer is encoded for its question type (``encode_answer``),
* ``validate_row`` assembles the canonical row and returns either a
  ``ValidRow`` or a ``SkippedRow``.

Nothing here touches storage or shared state.
"""
from __future__ import annotations

import re
from pathlib import PurePath
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import RowValidationError
from .models import DEFAULT_QUESTION_TYPE, QUESTION_TYPES, SkippedRow, ValidRow

BOM = "\ufeff"
HEADER_ALIASES = {
    "type": "questiontype",
    "answers": "answer",
    "subject_id": "subject",
}
REQUIRED_FIELDS = ("subject", "chapter", "question")
OPTION_COUNT = 6
DEFAULT_ANSWER = "1"

_WHITESPACE = re.compile(r"\s+")


def normalize_header(name: Optional[str]) -> str:
    """Return the canonical field name for a raw CSV column name."""
    if name is None:
        return ""
    cleaned = name.lstrip(BOM).strip().lower()
    cleaned = _WHITESPACE.sub("_", cleaned)
    return HEADER_ALIASES.get(cleaned, cleaned)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        # csv.DictReader puts surplus cells in a list
        return ",".join(_text(v) for v in value)
    return str(value)


def _raw_copy(raw: Mapping[Any, Any]) -> Dict[str, Any]:
    return {str(k): v for k, v in raw.items() if k is not None}


def normalize_record(raw: Mapping[Any, Any]) -> Dict[str, str]:
    """Re-key a raw record by canonical header.

    When two raw columns collapse to the same canonical name, the first
    non-blank value wins.
    """
    row: Dict[str, str] = {}
    for key, value in raw.items():
        if key is None:
            continue
        canonical = normalize_header(str(key))
        if not canonical:
            continue
        text = _text(value)
        if canonical in row and row[canonical].strip():
            continue
        row[canonical] = text
    return row


def collect_options(row: Mapping[str, str]) -> Dict[int, str]:
    """Collect non-empty ``option_N`` values keyed by their zero-based position.

    The mapping keeps gaps: a blank ``option_2`` leaves key 1 absent.
    """
    options: Dict[int, str] = {}
    for i in range(1, OPTION_COUNT + 1):
        value = (row.get(f"option_{i}") or "").strip()
        if value:
            options[i - 1] = value
    return options


def encode_answer(question_type: str, raw_answer: str) -> Union[List[str], List[int]]:
    """Convert a raw answer cell into its stored form.

    FIB keeps the trimmed text verbatim. MCQ and SA answers are
    comma-separated 1-based positions stored as 0-based integers.
    """
    answer = (raw_answer or "").strip()
    if question_type == "FIB":
        return [answer]

    indices: List[int] = []
    for token in answer.split(","):
        token = token.strip()
        digits = token[1:] if token[:1] in "+-" else token
        if not (digits.isascii() and digits.isdigit()):
            raise RowValidationError("invalid:answer")
        position = int(token, 10)
        if position < 1:
            raise RowValidationError("invalid:answer")
        indices.append(position - 1)
    return indices


def subject_from_filename(basename: str) -> str:
    """``physics_ch1.csv`` -> ``PHYSICS``."""
    stem = PurePath(basename or "").stem
    return stem.split("_", 1)[0].strip().upper()


def validate_row(
    raw: Mapping[Any, Any], basename: str, line_number: int = 0
) -> Union[ValidRow, SkippedRow]:
    """Validate one raw CSV record.

    Returns a ``ValidRow`` or a ``SkippedRow``; row-level problems never
    raise out of this function.
    """
    row = normalize_record(raw)

    if not (row.get("subject") or "").strip():
        row["subject"] = subject_from_filename(basename)

    missing = tuple(f for f in REQUIRED_FIELDS if not (row.get(f) or "").strip())
    if missing:
        return SkippedRow(
            line_number=line_number,
            reason="missing:" + ",".join(missing),
            raw=_raw_copy(raw),
            missing=missing,
        )

    question_type = (row.get("questiontype") or "").strip().upper() or DEFAULT_QUESTION_TYPE
    if question_type not in QUESTION_TYPES:
        return SkippedRow(line_number=line_number, reason="invalid:questiontype", raw=_raw_copy(raw))

    raw_answer = (row.get("answer") or "").strip() or DEFAULT_ANSWER

    try:
        answer = encode_answer(question_type, raw_answer)
    except RowValidationError as exc:
        return SkippedRow(line_number=line_number, reason=exc.reason, raw=_raw_copy(raw))

    subject_name = (row.get("subject_name") or "").strip() or None
    return ValidRow(
        subject_id=row["subject"].strip(),
        chapter=row["chapter"].strip(),
        question_type=question_type,
        question_text=row["question"].strip(),
        options={} if question_type == "FIB" else collect_options(row),
        answer=answer,
        explanation=(row.get("explanation") or "").strip(),
        subject_name=subject_name,
    )


__all__ = [
    "normalize_header",
    "normalize_record",
    "collect_options",
    "encode_answer",
    "subject_from_filename",
    "validate_row",
]
