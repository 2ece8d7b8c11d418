"""
One user's session on one form: the loaded Payload plus load/submit.

The session is the only owner of the Payload. Other components read
`session.payload` and ask for changes through `mutate_answer`, which swaps in
a new snapshot instead of editing the old one.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from answer_sync import AnswerSync
from errors import LoadFailure, RpcError, SubmitFailure, ValidationFailure
from form_models import Payload, Question
from rpc_client import SubmitResponse
from table_editor import TableEditor

logger = logging.getLogger(__name__)


class FormBackend(Protocol):
    async def fetch_payload(self, form_id: str, lang: str) -> Payload: ...

    async def upsert_answer(self, form_id: str, question_code: str, value: Any) -> None: ...

    async def upsert_table_row(self, form_id: str, question_code: str, row_index: int, row: Dict[str, Any]) -> None: ...

    async def submit_form(self, form_id: str) -> SubmitResponse: ...


class FormSession:
    def __init__(self, client: FormBackend, form_id: str, lang: str) -> None:
        self.client = client
        self.form_id = form_id
        self.lang = lang
        self.payload: Optional[Payload] = None
        self.loading = False
        self.submitting = False
        self.error: Optional[LoadFailure] = None
        self.closed = False
        # Bumped on every successful load; table drafts re-seed when it moves
        self.generation = 0
        self.answers = AnswerSync(client, form_id, self.mutate_answer, self.find_question)
        self._tables: Dict[str, TableEditor] = {}

    # ---------------- state ----------------

    def find_question(self, code: str) -> Optional[Question]:
        return self.payload.find(code) if self.payload is not None else None

    def mutate_answer(self, code: str, value: Any) -> Optional[Payload]:
        """Commit `value` as `code`'s answer. Unknown codes leave the Payload as is."""
        prev = self.payload
        if prev is None:
            return prev
        nxt = prev.with_answer(code, value)
        if nxt is prev:
            logger.info("mutate_answer: question %r not in payload, ignored", code)
            return prev
        self.payload = nxt
        return nxt

    @property
    def can_submit(self) -> bool:
        return (
            self.payload is not None
            and not self.submitting
            and not self.payload.form.is_submitted
        )

    def table_editor(self, question: Question) -> TableEditor:
        editor = self._tables.get(question.code)
        if editor is None:
            editor = TableEditor(self.client, self.form_id, question.code, question.table_rows, self.generation)
            self._tables[question.code] = editor
        else:
            editor.sync_from(question.table_rows, self.generation)
        return editor

    # ---------------- remote ----------------

    async def load(self) -> Optional[Payload]:
        self.loading = True
        try:
            payload = await self.client.fetch_payload(self.form_id, self.lang)
        except RpcError as e:
            logger.error("load %s failed: %s", self.form_id, e.message)
            self.error = LoadFailure(e.message)
            return None
        finally:
            self.loading = False
        logger.info("loaded form %s (%d questions, status=%s)", self.form_id, len(payload.questions), payload.form.status)
        self.error = None
        self.payload = payload
        self.generation += 1
        return payload

    async def submit(self) -> Optional[SubmitResponse]:
        """
        Submit the form. Returns None without calling out when submitting is not
        allowed right now.

        Raises ValidationFailure when required answers are missing (the Payload
        is left untouched) and SubmitFailure when the remote call fails. On
        success the form is reloaded to pick up its new status.
        """
        if not self.can_submit:
            logger.info("submit %s skipped (submitting=%s)", self.form_id, self.submitting)
            return None
        self.submitting = True
        try:
            result = await self.client.submit_form(self.form_id)
        except RpcError as e:
            logger.error("submit %s failed: %s", self.form_id, e.message)
            raise SubmitFailure(e.message) from e
        finally:
            self.submitting = False

        if not result.ok:
            logger.info("submit %s rejected, missing=%r", self.form_id, result.missing_required)
            raise ValidationFailure(result.missing_required)

        logger.info("submitted form %s", self.form_id)
        await self.load()
        return result

    def close(self) -> None:
        self._tables.clear()
        self.closed = True
