"""
Draft editor for one "table" question's repeating rows.

The draft starts as a copy of the parent's `table_rows` and is rebuilt only
when the parent hands over rows from a newer load generation.
Field edits stay local until `save_row`; `add_row` appends only after the
empty row was written remotely.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from errors import PersistFailure, RpcError
from form_models import TableRow

logger = logging.getLogger(__name__)


class RowWriter(Protocol):
    async def upsert_table_row(self, form_id: str, question_code: str, row_index: int, row: Dict[str, Any]) -> None: ...


def next_row_index(rows: Sequence[TableRow]) -> int:
    if not rows:
        return 0
    return max(r.row_index for r in rows) + 1


class TableEditor:
    def __init__(
        self,
        writer: RowWriter,
        form_id: str,
        question_code: str,
        rows: Sequence[TableRow] = (),
        generation: int = 0,
    ) -> None:
        self._writer = writer
        self._form_id = form_id
        self.question_code = question_code
        self.generation: Optional[int] = None
        self.rows: List[TableRow] = []
        self.sync_from(rows, generation)

    def sync_from(self, rows: Sequence[TableRow], generation: int) -> bool:
        """
        Re-seed the draft when `generation` differs from the one it was seeded
        from. Returns True if it did.

        Row identity is no use here: every empty table shares the same `()`.
        """
        if generation == self.generation:
            return False
        self.generation = generation
        self.rows = [TableRow(row_index=r.row_index, row=dict(r.row)) for r in rows]
        return True

    def find(self, row_index: int) -> Optional[TableRow]:
        for r in self.rows:
            if r.row_index == row_index:
                return r
        return None

    async def add_row(self) -> Optional[TableRow]:
        idx = next_row_index(self.rows)
        new_row = TableRow(row_index=idx, row={})
        try:
            await self._writer.upsert_table_row(self._form_id, self.question_code, idx, dict(new_row.row))
        except RpcError as e:
            # Not added; the user can press the button again
            logger.warning("add_row %s[%d] failed: %s", self.question_code, idx, e.message)
            return None
        self.rows.append(new_row)
        return new_row

    def update_field(self, row_index: int, key: str, value: Any) -> None:
        for i, r in enumerate(self.rows):
            if r.row_index == row_index:
                self.rows[i] = TableRow(row_index=row_index, row={**r.row, key: value})
                return
        logger.debug("update_field: no row %d in %s", row_index, self.question_code)

    async def save_row(self, row_index: int) -> bool:
        """
        Persist the current draft of one row. Returns False when the row does not
        exist; raises PersistFailure when the write fails.
        """
        target = self.find(row_index)
        if target is None:
            return False
        try:
            await self._writer.upsert_table_row(self._form_id, self.question_code, row_index, dict(target.row))
        except RpcError as e:
            logger.warning("save_row %s[%d] failed: %s", self.question_code, row_index, e.message)
            raise PersistFailure(e.message, question_code=self.question_code, row_index=row_index) from e
        logger.info("saved row %s[%d]", self.question_code, row_index)
        return True
