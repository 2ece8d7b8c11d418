"""
Answer sync: write one question's answer remotely, commit locally only on success.

Each question code has a tiny state machine:

    IDLE -> PENDING -> COMMITTED
                    -> IDLE        (write failed; value left as it was)

A failed write returns the field to IDLE but keeps the error text, so the
page can show it under the widget until the next edit clears it. A new edit
from any state starts another PENDING cycle. Edits are never coalesced: two
quick edits mean two remote calls, and whichever settles last is what ends
up committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from errors import PersistFailure, RpcError
from form_models import Question
from value_codec import conforms

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"


class AnswerWriter(Protocol):
    async def upsert_answer(self, form_id: str, question_code: str, value: Any) -> None: ...


@dataclass
class FieldSync:
    state: SyncState = SyncState.IDLE
    in_flight: int = 0
    error: Optional[str] = None


class AnswerSync:
    def __init__(
        self,
        writer: AnswerWriter,
        form_id: str,
        commit: Callable[[str, Any], Any],
        lookup: Callable[[str], Optional[Question]],
    ) -> None:
        self._writer = writer
        self._form_id = form_id
        self._commit = commit
        self._lookup = lookup
        self._fields: Dict[str, FieldSync] = {}

    def field(self, code: str) -> FieldSync:
        return self._fields.setdefault(code, FieldSync())

    def state(self, code: str) -> SyncState:
        return self.field(code).state

    def error(self, code: str) -> Optional[str]:
        return self.field(code).error

    def reject(self, code: str, message: str) -> None:
        """Mark an edit that never left the widget (the codec refused it)."""
        f = self.field(code)
        f.error = message
        if f.in_flight == 0:
            f.state = SyncState.IDLE

    def _begin(self, code: str) -> FieldSync:
        f = self.field(code)
        f.in_flight += 1
        f.state = SyncState.PENDING
        f.error = None
        return f

    def _settle(self, f: FieldSync, outcome: SyncState, error: Optional[str] = None) -> None:
        f.in_flight -= 1
        if error is not None:
            f.error = error
        # Stay pending while a later edit of the same field is still in flight
        if f.in_flight == 0:
            f.state = outcome

    async def persist_answer(self, code: str, value: Any) -> Any:
        """
        Upsert `value` for question `code`; on success commit it and return it.

        Raises PersistFailure when the remote write fails. Nothing local changes
        in that case.
        """
        question = self._lookup(code)
        if question is not None and not conforms(question.kind, value):
            raise ValueError(f"value {value!r} does not fit a {question.type!r} answer")

        f = self._begin(code)
        try:
            await self._writer.upsert_answer(self._form_id, code, value)
        except RpcError as e:
            logger.warning("persist %s failed: %s", code, e.message)
            self._settle(f, SyncState.IDLE, e.message)
            raise PersistFailure(e.message, question_code=code) from e
        except Exception as e:
            self._settle(f, SyncState.IDLE, str(e))
            raise

        self._commit(code, value)
        logger.debug("committed answer for %s", code)
        self._settle(f, SyncState.COMMITTED)
        return value
