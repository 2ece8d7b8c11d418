"""
Failure taxonomy for the questionnaire page.

- LoadFailure: the payload fetch failed; the whole page shows an error.
- PersistFailure: one answer or table row write failed; only that question shows it.
- ValidationFailure: submit rejected because required answers are missing.
- SubmitFailure: the submit call itself failed remotely.

RpcError is what the client raises for any remote/transport error; the
session and sync layers translate it into one of the failures above.
"""

from __future__ import annotations

from typing import Any, Optional


class FormError(Exception):
    """Base class for every error surfaced to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RpcError(FormError):
    def __init__(self, message: str, *, function: str = "", status: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.function = function
        self.status = status
        self.code = code


class LoadFailure(FormError):
    pass


class PersistFailure(FormError):
    def __init__(self, message: str, *, question_code: str, row_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.question_code = question_code
        self.row_index = row_index


class ValidationFailure(FormError):
    def __init__(self, missing_required: Any) -> None:
        self.missing_required = missing_required
        super().__init__(f"missing required fields: {describe_missing(missing_required)}")

    @property
    def missing_count(self) -> Optional[int]:
        missing = self.missing_required
        if isinstance(missing, bool):
            return None
        if isinstance(missing, int):
            return missing
        if isinstance(missing, (list, tuple)):
            return len(missing)
        return None


class SubmitFailure(FormError):
    pass


def describe_missing(missing_required: Any) -> str:
    """Text shown for the missing-required data returned by submit ("?" when absent)."""
    if missing_required is None:
        return "?"
    if isinstance(missing_required, (list, tuple)):
        return ", ".join(str(x) for x in missing_required) if missing_required else "0"
    return str(missing_required)
