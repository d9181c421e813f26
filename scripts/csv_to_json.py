"""Export validated CSV question banks as per-subject JSON seed files.

Rows go through the same validation as a real import but nothing is written
to the database.
"""
from __future__ import annotations

import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
import json
from typing import Dict, List, Optional

from quizbank.errors import QuizImportError
from quizbank.importer import collect_batch, read_csv_file

DEFAULT_CSV_DIR = ROOT / "csv_data"
DEFAULT_OUTPUT_DIR = ROOT / "seed_data"


def export_directory(csv_dir: Path, output_dir: Path) -> Dict[str, int]:
    """Write ``<subject>.json`` for every subject found; returns question counts."""
    output_dir.mkdir(parents=True, exist_ok=True)
    counts: Dict[str, int] = {}
    for path in sorted(csv_dir.glob("*.csv")):
        try:
            batch = collect_batch(read_csv_file(path), path.name)
        except QuizImportError as exc:
            print(f"[ERROR] {path.name}: {exc}")
            continue
        for skip in batch.skipped:
            print(f"[WARN] {path.name} line {skip.line_number}: {skip.reason}")
        for subject_id, questions in batch.questions_by_subject().items():
            target = output_dir / f"{subject_id}.json"
            payload = [q.to_dict() for q in questions]
            target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            counts[subject_id] = len(payload)
            print(f"[OK] Transformed {path.name} -> {target.name} ({len(payload)} questions)")
    return counts


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) > 2:
        raise SystemExit("Usage: python scripts/csv_to_json.py [csv_dir] [output_dir]")
    csv_dir = Path(argv[0]) if argv else DEFAULT_CSV_DIR
    output_dir = Path(argv[1]) if len(argv) > 1 else DEFAULT_OUTPUT_DIR
    if not csv_dir.is_dir():
        raise SystemExit(f"CSV directory not found at {csv_dir}")
    export_directory(csv_dir, output_dir)


if __name__ == "__main__":
    main()
