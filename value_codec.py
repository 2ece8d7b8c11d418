"""
Per-variant translation between what a widget shows and what gets persisted.

Exports:
- encode_boolean / encode_single_select / toggle_multi_select
- encode_date / decode_date
- parse_currency / format_currency / encode_currency / decode_currency
- encode_text / encode_number / decode_number
- conforms(question_type, value) -> bool

Everything here is pure: no Streamlit, no network.
"""

from __future__ import annotations

import datetime
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, Iterable, List, Optional, Sequence

from form_models import QuestionType

DEFAULT_CURRENCY = "BRL"

# Plain decimal notation only: no exponents, no NaN or Infinity
_AMOUNT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")


# ---------------- boolean / choice ----------------

def encode_boolean(raw: Any) -> bool:
    return bool(raw)


def encode_single_select(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    return str(raw)


def toggle_multi_select(
    current: Any,
    option_values: Sequence[str],
    value: str,
    checked: bool,
) -> List[str]:
    """
    Add or remove one value from a multi-select answer.

    Values listed in `option_values` come back in option order; selected values
    the option list does not know are kept after them, in their previous order.
    """
    selected: List[str] = [str(v) for v in current] if isinstance(current, (list, tuple)) else []
    chosen = set(selected)
    if checked:
        chosen.add(value)
    else:
        chosen.discard(value)

    known = set(option_values)
    out = [v for v in option_values if v in chosen]
    seen = set(out)
    for v in selected:
        if v not in known and v in chosen and v not in seen:
            out.append(v)
            seen.add(v)
    if checked and value not in known and value not in seen:
        out.append(value)
    return out


# ---------------- date ----------------

def encode_date(raw: Any) -> str:
    # Strings are stored exactly as given
    if raw is None:
        return ""
    if isinstance(raw, (datetime.date, datetime.datetime)):
        return raw.isoformat()[:10]
    return str(raw)


def decode_date(answer: Any) -> Optional[datetime.date]:
    """Widget value for a stored ISO date; None when empty or not parseable."""
    if isinstance(answer, datetime.date):
        return answer
    if not isinstance(answer, str) or not answer:
        return None
    try:
        return datetime.date.fromisoformat(answer[:10])
    except ValueError:
        return None


# ---------------- currency ----------------

def parse_currency(text: Any) -> Decimal:
    """
    "1.234,56" -> Decimal("1234.56"). Grouping dots are stripped first, then the
    decimal comma becomes a dot. Anything that does not parse counts as zero.
    """
    if text is None:
        return Decimal(0)
    clean = str(text).strip().replace(".", "").replace(",", ".", 1)
    if not _AMOUNT_RE.match(clean):
        return Decimal(0)
    try:
        return Decimal(clean)
    except InvalidOperation:
        return Decimal(0)


def format_currency(amount_cents: int) -> str:
    """1234567 -> "12.345,67"."""
    sign = "-" if amount_cents < 0 else ""
    units, cents = divmod(abs(int(amount_cents)), 100)
    grouped = f"{units:,}".replace(",", ".")
    return f"{sign}{grouped},{cents:02d}"


def encode_currency(raw: Any, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    amount = parse_currency(raw)
    # Enough precision for every digit the user typed, so scaling stays exact
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + 4)
        cents = int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    currency = (config or {}).get("currency") or DEFAULT_CURRENCY
    return {"amount_cents": cents, "currency": str(currency)}


def decode_currency(answer: Any) -> str:
    # Zero and missing amounts both show an empty input
    if not isinstance(answer, dict):
        return ""
    cents = answer.get("amount_cents")
    if not cents or isinstance(cents, bool):
        return ""
    return format_currency(int(cents))


# ---------------- text / number ----------------

def encode_text(raw: Any) -> str:
    return "" if raw is None else str(raw)


def encode_number(raw: Any) -> Optional[float | int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError("a boolean is not a number")
    if isinstance(raw, (int, float)):
        return raw
    text = str(raw).strip()
    if text == "":
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"not a number: {raw!r}") from None


def decode_number(answer: Any) -> Optional[float | int]:
    if isinstance(answer, bool) or not isinstance(answer, (int, float)):
        return None
    return answer


# ---------------- shape invariant ----------------

def _is_str_list(value: Iterable[Any]) -> bool:
    return all(isinstance(v, str) for v in value)


def conforms(question_type: Optional[QuestionType], value: Any) -> bool:
    """Whether `value` has the answer shape the variant prescribes (None always does)."""
    if value is None:
        return True
    if question_type is QuestionType.BOOLEAN:
        return isinstance(value, bool)
    if question_type in (QuestionType.SINGLE_SELECT, QuestionType.DATE, QuestionType.TEXT):
        return isinstance(value, str)
    if question_type is QuestionType.MULTI_SELECT:
        return isinstance(value, list) and _is_str_list(value)
    if question_type is QuestionType.CURRENCY:
        return (
            isinstance(value, dict)
            and isinstance(value.get("amount_cents"), int)
            and not isinstance(value.get("amount_cents"), bool)
            and isinstance(value.get("currency"), str)
        )
    if question_type is QuestionType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    # attachment and table answers are not written through this path
    return False
