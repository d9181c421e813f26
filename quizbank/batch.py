"""Immutable accumulation of one file's validated and skipped rows."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, Mapping, Tuple, Union

from .models import Question, SkippedRow, Subject, ValidRow


@dataclass(frozen=True)
class ImportBatch:
    """Accepted questions, skipped rows and touched subjects for one file.

    Every step returns a new batch; question ids are the 1-based position of
    the question among accepted rows.
    """

    source: str = ""
    questions: Tuple[Question, ...] = ()
    skipped: Tuple[SkippedRow, ...] = ()
    subject_ids: FrozenSet[str] = frozenset()
    subject_names: Tuple[Tuple[str, str], ...] = ()
    rows_seen: int = 0

    @property
    def next_question_id(self) -> int:
        return len(self.questions) + 1

    @property
    def is_empty(self) -> bool:
        return not self.questions

    def accept(self, row: ValidRow) -> "ImportBatch":
        question = row.to_question(self.next_question_id)
        names = self.subject_names
        if row.subject_name and row.subject_id not in dict(names):
            names = names + ((row.subject_id, row.subject_name),)
        return replace(
            self,
            questions=self.questions + (question,),
            subject_ids=self.subject_ids | {row.subject_id},
            subject_names=names,
            rows_seen=self.rows_seen + 1,
        )

    def reject(self, skip: SkippedRow) -> "ImportBatch":
        return replace(self, skipped=self.skipped + (skip,), rows_seen=self.rows_seen + 1)

    def add(self, outcome: Union[ValidRow, SkippedRow]) -> "ImportBatch":
        if isinstance(outcome, SkippedRow):
            return self.reject(outcome)
        return self.accept(outcome)

    def subjects(self) -> Tuple[Subject, ...]:
        """Touched subjects, each once, with a supplied or derived display name."""
        names: Mapping[str, str] = dict(self.subject_names)
        return tuple(
            Subject(id=sid, name=names.get(sid) or sid.upper())
            for sid in sorted(self.subject_ids)
        )

    def questions_by_subject(self) -> Dict[str, Tuple[Question, ...]]:
        grouped: Dict[str, Tuple[Question, ...]] = {}
        for question in self.questions:
            grouped[question.subject_id] = grouped.get(question.subject_id, ()) + (question,)
        return grouped


def build_batch(
    outcomes: Iterable[Union[ValidRow, SkippedRow]], source: str = ""
) -> ImportBatch:
    batch = ImportBatch(source=source)
    for outcome in outcomes:
        batch = batch.add(outcome)
    return batch


__all__ = ["ImportBatch", "build_batch"]
