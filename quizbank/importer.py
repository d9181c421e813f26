"""Import CSV question banks into the quiz store.

Each file is one ``ImportJob``::

    PARSING -> VALIDATING -> ACCUMULATED -> COMMITTING -> DONE
                    |             |              |
                    +-----------> FAILED <-------+

A re-import replaces every subject the file mentions: the subject's
questions and incorrect-answer bookmarks are deleted before the file's
rows are written. The whole commit runs in one transaction and is rolled
back if any write fails.

Usage::

    python -m quizbank.importer [--db path] [file.csv | file.xlsx | directory ...]
"""
from __future__ import annotations

import argparse
import csv
import enum
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, TextIO, Tuple, Union

from dotenv import load_dotenv

from .batch import ImportBatch
from .db_utils import csv_dir, ensure_db_path
from .errors import (
    EmptyResultError,
    MalformedStreamError,
    QuizImportError,
    StorageWriteError,
)
from .models import SkippedRow
from .normalize import validate_row
from .store import QuizStore

logger = logging.getLogger(__name__)

SPREADSHEET_SUFFIXES = {".xlsx", ".xlsm"}

RawRow = Tuple[int, Mapping[Any, Any]]


class ImportState(enum.Enum):
    PARSING = "parsing"
    VALIDATING = "validating"
    ACCUMULATED = "accumulated"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    ImportState.PARSING: {ImportState.VALIDATING, ImportState.FAILED},
    ImportState.VALIDATING: {ImportState.ACCUMULATED, ImportState.FAILED},
    ImportState.ACCUMULATED: {ImportState.COMMITTING, ImportState.FAILED},
    ImportState.COMMITTING: {ImportState.DONE, ImportState.FAILED},
    ImportState.DONE: set(),
    ImportState.FAILED: set(),
}


@dataclass(frozen=True)
class ImportResult:
    source: str
    questions_processed: int
    subjects_processed: int
    skipped: Tuple[SkippedRow, ...] = ()
    rows_processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionsProcessed": self.questions_processed,
            "subjectsProcessed": self.subjects_processed,
            "rowsSkipped": len(self.skipped),
        }


@dataclass(frozen=True)
class FileReport:
    source: str
    result: Optional[ImportResult] = None
    error: Optional[QuizImportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# --- Reading ---

def iter_csv_rows(handle: TextIO) -> Iterator[RawRow]:
    """Yield ``(line_number, record)`` pairs from an open CSV text stream."""
    try:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise MalformedStreamError("CSV file has no header row.")
        for raw in reader:
            yield reader.line_num, raw
    except (csv.Error, UnicodeDecodeError) as exc:
        raise MalformedStreamError(f"Unreadable CSV stream: {exc}") from exc


def read_csv_file(path: Union[str, Path]) -> Iterator[RawRow]:
    """Stream the records of a UTF-8 CSV file (with or without BOM)."""
    try:
        handle = open(path, newline="", encoding="utf-8-sig")
    except OSError as exc:
        raise MalformedStreamError(f"Cannot open {path}: {exc}") from exc
    with handle:
        yield from iter_csv_rows(handle)


def collect_batch(rows: Iterable[RawRow], source: str) -> ImportBatch:
    """Validate every row of one file into a fresh batch."""
    batch = ImportBatch(source=source)
    for line_number, raw in rows:
        outcome = validate_row(raw, source, line_number)
        if isinstance(outcome, SkippedRow):
            logger.warning("%s line %d skipped: %s", source, line_number, outcome.reason)
        batch = batch.add(outcome)
    return batch


# --- Commit ---

def commit_batch(store: QuizStore, batch: ImportBatch) -> None:
    """Replace every touched subject's content with the batch's questions.

    All writes share one transaction; a failed write rolls it back and
    re-raises with the failing subject and the number of questions written.
    """
    written = 0
    current: Optional[str] = None
    try:
        for subject in batch.subjects():
            current = subject.id
            store.delete_questions_by_subject(subject.id)
            store.delete_incorrects_by_subject(subject.id)
            store.upsert_subject(subject.id, subject.name)
        for question in batch.questions:
            current = question.subject_id
            store.save_question(question)
            written += 1
        store.commit()
    except StorageWriteError as exc:
        store.rollback()
        if exc.subject_id is None:
            exc.subject_id = current
        exc.questions_written = written
        exc.rows_processed = batch.rows_seen
        logger.error(
            "%s: commit rolled back at %s for subject %r after %d question(s)",
            batch.source,
            exc.operation,
            exc.subject_id,
            written,
        )
        raise


# --- Job ---

class ImportJob:
    """One run of the pipeline over one file."""

    def __init__(self, store: QuizStore, source: str) -> None:
        self.store = store
        self.source = source
        self.state = ImportState.PARSING
        self.batch: Optional[ImportBatch] = None
        self.error: Optional[QuizImportError] = None
        self.rows_seen = 0
        self._started = False

    def _transition(self, target: ImportState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal import transition {self.state.name} -> {target.name}")
        self.state = target

    def _count(self, rows: Iterable[RawRow]) -> Iterator[RawRow]:
        for row in rows:
            self.rows_seen += 1
            yield row

    def _fail(self, exc: QuizImportError) -> None:
        self.error = exc
        self._transition(ImportState.FAILED)

    def run(self, rows: Iterable[RawRow]) -> ImportResult:
        if self._started:
            raise RuntimeError("an import job runs only once")
        self._started = True

        self._transition(ImportState.VALIDATING)
        try:
            batch = collect_batch(self._count(rows), self.source)
        except MalformedStreamError as exc:
            if exc.rows_processed is None:
                exc.rows_processed = self.rows_seen
            self._fail(exc)
            raise
        self.batch = batch
        self._transition(ImportState.ACCUMULATED)

        if batch.is_empty:
            exc = EmptyResultError(
                f"{self.source}: no valid rows ({len(batch.skipped)} skipped)",
                rows_processed=batch.rows_seen,
            )
            self._fail(exc)
            raise exc

        self._transition(ImportState.COMMITTING)
        try:
            commit_batch(self.store, batch)
        except StorageWriteError as exc:
            self._fail(exc)
            raise
        self._transition(ImportState.DONE)

        result = ImportResult(
            source=self.source,
            questions_processed=len(batch.questions),
            subjects_processed=len(batch.subject_ids),
            skipped=batch.skipped,
            rows_processed=batch.rows_seen,
        )
        logger.info(
            "%s imported: %d question(s), %d subject(s), %d skipped",
            self.source,
            result.questions_processed,
            result.subjects_processed,
            len(result.skipped),
        )
        return result


def import_csv_file(
    store: QuizStore, path: Union[str, Path], basename: Optional[str] = None
) -> ImportResult:
    """Import one CSV file. ``basename`` overrides the name used for subject inference."""
    source = basename or Path(path).name
    return ImportJob(store, source).run(read_csv_file(path))


def import_directory(store: QuizStore, directory: Union[str, Path]) -> List[FileReport]:
    """Import every ``*.csv`` in a directory, one file after another."""
    reports: List[FileReport] = []
    for path in sorted(Path(directory).glob("*.csv")):
        try:
            result = import_csv_file(store, path)
        except QuizImportError as exc:
            logger.error("%s failed: %s", path.name, exc)
            reports.append(FileReport(source=path.name, error=exc))
            continue
        reports.append(FileReport(source=path.name, result=result))
    return reports


def import_path(store: QuizStore, path: Union[str, Path], basename: Optional[str] = None) -> ImportResult:
    """Import a CSV file or a spreadsheet, chosen by file suffix."""
    name = basename or Path(path).name
    if Path(name).suffix.lower() in SPREADSHEET_SUFFIXES:
        from .import_excel import import_workbook

        return import_workbook(store, path, basename=name)
    return import_csv_file(store, path, basename=name)


def import_upload(store: QuizStore, upload_path: Union[str, Path], filename: str) -> Dict[str, Any]:
    """Import an uploaded artifact and delete it whatever the outcome.

    Returns ``{"questionsProcessed", "subjectsProcessed", ...}`` on success or
    ``{"error", "message", "rowsProcessed", ...}`` on failure.
    """
    try:
        result = import_path(store, upload_path, basename=filename)
        return result.to_dict()
    except QuizImportError as exc:
        return exc.to_dict()
    finally:
        try:
            os.unlink(upload_path)
        except FileNotFoundError:
            pass


# --- CLI ---

def _print_result(result: ImportResult) -> None:
    print(
        f"[OK] {result.source}: {result.questions_processed} question(s), "
        f"{result.subjects_processed} subject(s)"
    )
    for skip in result.skipped:
        print(f"[WARN] {result.source} line {skip.line_number}: {skip.reason}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv()
    parser = argparse.ArgumentParser(description="Import CSV question banks into the quiz store")
    parser.add_argument("paths", nargs="*", help="CSV/XLSX files or directories")
    parser.add_argument("--db", default=None, help="Database file path")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    paths = args.paths or [str(csv_dir())]
    failures = 0
    with QuizStore.open(ensure_db_path(args.db)) as store:
        for raw_path in paths:
            path = Path(raw_path)
            if path.is_dir():
                print(f"[INFO] Importing directory {path}")
                for report in import_directory(store, path):
                    if report.ok:
                        _print_result(report.result)
                    else:
                        failures += 1
                        print(f"[ERROR] {report.source}: {report.error}")
                continue
            try:
                _print_result(import_path(store, path))
            except QuizImportError as exc:
                failures += 1
                print(f"[ERROR] {path.name}: {exc}")

    if failures:
        print(f"Import finished with {failures} failed file(s).")
        return 1
    print("All question banks imported.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
