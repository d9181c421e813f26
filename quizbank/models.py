"""Records exchanged between the import pipeline and the store."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

QUESTION_TYPES = ("MCQ", "FIB", "SA")
DEFAULT_QUESTION_TYPE = "MCQ"

Answer = Union[List[str], List[int]]


def answer_matches_type(question_type: str, answer: Any) -> bool:
    """FIB answers hold exactly one string; MCQ/SA answers are all integers."""
    if not isinstance(answer, (list, tuple)):
        return False
    if question_type == "FIB":
        return len(answer) == 1 and isinstance(answer[0], str)
    return all(isinstance(item, int) and not isinstance(item, bool) for item in answer)


@dataclass(frozen=True)
class Subject:
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class Question:
    subject_id: str
    question_id: int
    chapter: str
    question_type: str
    question_text: str
    options: Dict[int, str] = field(default_factory=dict)
    answer: Answer = field(default_factory=list)
    explanation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subjectId": self.subject_id,
            "questionId": self.question_id,
            "chapter": self.chapter,
            "questionType": self.question_type,
            "questionText": self.question_text,
            "options": {str(k): v for k, v in sorted(self.options.items())},
            "answer": list(self.answer),
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class Incorrect:
    subject_id: str
    question_id: int
    chapter: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subjectId": self.subject_id,
            "questionId": self.question_id,
            "chapter": self.chapter,
        }


@dataclass(frozen=True)
class ValidRow:
    """A row that passed validation but has no question id yet."""

    subject_id: str
    chapter: str
    question_type: str
    question_text: str
    options: Dict[int, str]
    answer: Answer
    explanation: str
    subject_name: Optional[str] = None

    def to_question(self, question_id: int) -> Question:
        return Question(
            subject_id=self.subject_id,
            question_id=question_id,
            chapter=self.chapter,
            question_type=self.question_type,
            question_text=self.question_text,
            options=dict(self.options),
            answer=list(self.answer),
            explanation=self.explanation,
        )


@dataclass(frozen=True)
class SkippedRow:
    line_number: int
    reason: str
    raw: Mapping[str, Any]
    missing: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line_number,
            "reason": self.reason,
            "missing": list(self.missing),
            "row": dict(self.raw),
        }


__all__ = [
    "QUESTION_TYPES",
    "DEFAULT_QUESTION_TYPE",
    "answer_matches_type",
    "Subject",
    "Question",
    "Incorrect",
    "ValidRow",
    "SkippedRow",
]
