"""
Immutable data model for one loaded questionnaire.

Exports:
- QuestionType: closed set of supported variant tags
- Option, TableRow, Question, Form, Payload (frozen dataclasses)
- FormStatus

Payload snapshots are never mutated. `Payload.with_answer` returns a new
snapshot that shares every untouched Question (and its rows) by reference.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class QuestionType(str, Enum):
    BOOLEAN = "boolean"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    CURRENCY = "currency"
    TEXT = "text"
    NUMBER = "number"
    ATTACHMENT = "attachment"
    TABLE = "table"

    @classmethod
    def parse(cls, tag: Any) -> Optional["QuestionType"]:
        try:
            return cls(tag)
        except ValueError:
            return None


class FormStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    order: int = 0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Option":
        value = str(raw.get("value", ""))
        return cls(value=value, label=str(raw.get("label") or value), order=int(raw.get("order") or 0))


@dataclass(frozen=True)
class TableRow:
    row_index: int
    row: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TableRow":
        idx = int(raw.get("row_index", 0))
        if idx < 0:
            raise ValueError(f"row_index must be non-negative, got {idx}")
        return cls(row_index=idx, row=dict(raw.get("row") or {}))

    def to_dict(self) -> Dict[str, Any]:
        return {"row_index": self.row_index, "row": dict(self.row)}


@dataclass(frozen=True)
class Question:
    code: str
    type: str
    label: str
    help: Optional[str] = None
    config: Dict[str, Any] = field(default_factory=dict)
    options: Tuple[Option, ...] = ()
    answer: Any = None
    table_rows: Tuple[TableRow, ...] = ()

    @property
    def kind(self) -> Optional[QuestionType]:
        """The variant, or None when the tag is not one we know how to render."""
        return QuestionType.parse(self.type)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Question":
        code = raw.get("code")
        if not code:
            raise ValueError("question without a 'code'")
        options = sorted(
            (Option.from_dict(o) for o in (raw.get("options") or []) if isinstance(o, Mapping)),
            key=lambda o: o.order,
        )
        rows = tuple(TableRow.from_dict(r) for r in (raw.get("table_rows") or []) if isinstance(r, Mapping))
        return cls(
            code=str(code),
            type=str(raw.get("type") or ""),
            label=str(raw.get("label") or code),
            help=raw.get("help") or None,
            config=dict(raw.get("config") or {}),
            options=tuple(options),
            answer=raw.get("answer"),
            table_rows=rows,
        )


@dataclass(frozen=True)
class Form:
    id: str
    status: str = FormStatus.DRAFT.value
    company: Optional[str] = None
    contact: Any = None

    @property
    def is_submitted(self) -> bool:
        return self.status == FormStatus.SUBMITTED

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Form":
        return cls(
            id=str(raw.get("id") or ""),
            status=str(raw.get("status") or FormStatus.DRAFT.value),
            company=raw.get("company"),
            contact=raw.get("contact"),
        )


@dataclass(frozen=True)
class Payload:
    form: Form
    questions: Tuple[Question, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Payload":
        if not isinstance(raw, Mapping) or not isinstance(raw.get("form"), Mapping):
            raise ValueError("payload must be an object with a 'form' object")
        questions: List[Question] = []
        seen: set[str] = set()
        for q in raw.get("questions") or []:
            if not isinstance(q, Mapping):
                continue
            question = Question.from_dict(q)
            if question.code in seen:
                raise ValueError(f"duplicate question code '{question.code}'")
            seen.add(question.code)
            questions.append(question)
        return cls(form=Form.from_dict(raw["form"]), questions=tuple(questions))

    def find(self, code: str) -> Optional[Question]:
        for q in self.questions:
            if q.code == code:
                return q
        return None

    def with_answer(self, code: str, answer: Any) -> "Payload":
        """New snapshot with only `code`'s answer replaced; self when code is unknown."""
        for i, q in enumerate(self.questions):
            if q.code == code:
                updated = dataclasses.replace(q, answer=answer)
                return dataclasses.replace(
                    self, questions=self.questions[:i] + (updated,) + self.questions[i + 1:]
                )
        logger.debug("with_answer: no question %r in payload", code)
        return self
