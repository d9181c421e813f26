"""Error kinds raised by the question bank import pipeline."""
from __future__ import annotations

from typing import Optional


class QuizImportError(RuntimeError):
    """Base class for import failures surfaced to callers."""

    kind = "import_error"

    def __init__(self, message: str, rows_processed: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.rows_processed = rows_processed

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "message": self.message,
            "rowsProcessed": self.rows_processed,
        }


class RowValidationError(QuizImportError):
    """A single row cannot be accepted. Never leaves the row validator."""

    kind = "row_validation"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class EmptyResultError(QuizImportError):
    """No row of a file survived validation."""

    kind = "empty_result"


class MalformedStreamError(QuizImportError):
    """The CSV stream could not be opened, decoded or parsed."""

    kind = "malformed_stream"


class StorageWriteError(QuizImportError):
    """A delete or upsert against the store failed."""

    kind = "storage_write"

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        subject_id: Optional[str] = None,
        questions_written: Optional[int] = None,
        rows_processed: Optional[int] = None,
    ) -> None:
        super().__init__(message, rows_processed=rows_processed)
        self.operation = operation
        self.subject_id = subject_id
        self.questions_written = questions_written

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            {
                "operation": self.operation,
                "subjectId": self.subject_id,
                "questionsWritten": self.questions_written,
            }
        )
        return data


__all__ = [
    "QuizImportError",
    "RowValidationError",
    "EmptyResultError",
    "MalformedStreamError",
    "StorageWriteError",
]
