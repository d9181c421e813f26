"""
Excel import utilities for the quiz store.
Imports questions from the ``questions`` sheet of an .xlsx workbook using the
same header rules, row validation and replace semantics as CSV files.
"""

import argparse
import sys
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd
from dotenv import load_dotenv

from .db_utils import ensure_db_path
from .errors import MalformedStreamError, QuizImportError
from .importer import ImportJob, ImportResult
from .store import QuizStore

DEFAULT_SHEET = "questions"


def read_workbook_rows(
    questions_file: Union[str, Path], sheet_name: str = DEFAULT_SHEET
) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield ``(line_number, record)`` pairs from one worksheet.

    Every cell is read as text so answers such as ``2`` or ``9.8`` reach the
    validator exactly as typed.
    """
    try:
        df = pd.read_excel(
            questions_file,
            sheet_name=sheet_name,
            dtype=str,
            keep_default_na=False,
        )
    except (ValueError, OSError, zipfile.BadZipFile) as exc:
        raise MalformedStreamError(f"Cannot read workbook {questions_file}: {exc}") from exc

    columns = [str(col) for col in df.columns]
    # header is row 1 in the sheet
    for idx, values in enumerate(df.itertuples(index=False, name=None), start=2):
        yield idx, dict(zip(columns, values))


def import_workbook(
    store: QuizStore,
    questions_file: Union[str, Path],
    sheet_name: str = DEFAULT_SHEET,
    basename: Optional[str] = None,
) -> ImportResult:
    """Import questions from an Excel workbook."""
    source = basename or Path(questions_file).name
    job = ImportJob(store, source)
    return job.run(read_workbook_rows(questions_file, sheet_name))


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv()
    parser = argparse.ArgumentParser(description="Import an Excel question bank into the quiz store")
    parser.add_argument("workbook", help="Questions Excel file path")
    parser.add_argument("--db", default=None, help="Database file path")
    parser.add_argument("--sheet", default=DEFAULT_SHEET, help="Worksheet holding the questions")

    args = parser.parse_args(argv)

    try:
        with QuizStore.open(ensure_db_path(args.db)) as store:
            result = import_workbook(store, args.workbook, sheet_name=args.sheet)
    except QuizImportError as e:
        print(f"Import failed: {e}")
        return 1

    print(
        f"Successfully imported {result.questions_processed} questions "
        f"for {result.subjects_processed} subject(s)"
    )
    for skip in result.skipped:
        print(f"Warning: row {skip.line_number} skipped ({skip.reason})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
