import datetime
from decimal import Decimal

import pytest

import value_codec
from form_models import QuestionType


def test_currency_display_round_trip():
    persisted = value_codec.encode_currency("12,50")
    assert persisted == {"amount_cents": 1250, "currency": "BRL"}
    assert value_codec.decode_currency(persisted) == "12,50"


def test_currency_strips_grouping_before_decimal_comma():
    assert value_codec.parse_currency("1.234.567,89") == Decimal("1234567.89")
    assert value_codec.encode_currency("1.234,5")["amount_cents"] == 123450


def test_currency_formats_with_grouping():
    assert value_codec.format_currency(123456789) == "1.234.567,89"
    assert value_codec.format_currency(5) == "0,05"
    assert value_codec.decode_currency({"amount_cents": 123456, "currency": "BRL"}) == "1.234,56"


@pytest.mark.parametrize("raw", ["", "   ", "abc", None, "12,3,4x"])
def test_currency_unparseable_input_is_zero(raw):
    assert value_codec.encode_currency(raw)["amount_cents"] == 0


@pytest.mark.parametrize("raw", ["1e30", "1E5", "2,5e3", "NaN", "Infinity", "-inf"])
def test_currency_exponent_and_special_values_are_zero(raw):
    assert value_codec.parse_currency(raw) == 0
    assert value_codec.encode_currency(raw)["amount_cents"] == 0


def test_currency_huge_amounts_scale_exactly():
    assert value_codec.encode_currency("1" + "0" * 26)["amount_cents"] == 10**28
    assert value_codec.encode_currency("9" * 30)["amount_cents"] == int("9" * 30) * 100
    assert value_codec.encode_currency("9" * 30 + ",995")["amount_cents"] == (int("9" * 30) + 1) * 100


def test_currency_takes_code_from_config():
    assert value_codec.encode_currency("3", {"currency": "USD"}) == {"amount_cents": 300, "currency": "USD"}
    assert value_codec.encode_currency("3", {})["currency"] == "BRL"


def test_currency_rounds_half_up_to_cents():
    assert value_codec.encode_currency("0,005")["amount_cents"] == 1
    assert value_codec.encode_currency("10,994")["amount_cents"] == 1099


def test_currency_zero_or_missing_shows_empty_input():
    assert value_codec.decode_currency(None) == ""
    assert value_codec.decode_currency({"amount_cents": 0, "currency": "BRL"}) == ""


def test_multi_select_toggle_keeps_other_values_in_option_order():
    options = ["cpf", "health", "biometric"]
    current = ["biometric", "cpf"]
    assert value_codec.toggle_multi_select(current, options, "health", True) == ["cpf", "health", "biometric"]
    assert value_codec.toggle_multi_select(current, options, "cpf", False) == ["biometric"]


def test_multi_select_toggle_keeps_values_unknown_to_options():
    options = ["cpf", "health"]
    current = ["legacy", "cpf"]
    assert value_codec.toggle_multi_select(current, options, "health", True) == ["cpf", "health", "legacy"]


def test_multi_select_toggle_from_null_answer():
    assert value_codec.toggle_multi_select(None, ["a", "b"], "b", True) == ["b"]
    assert value_codec.toggle_multi_select(None, ["a", "b"], "b", False) == []


def test_date_is_stored_verbatim():
    assert value_codec.encode_date("2024-02-29") == "2024-02-29"
    assert value_codec.encode_date(datetime.date(2024, 2, 29)) == "2024-02-29"
    assert value_codec.encode_date(None) == ""
    assert value_codec.decode_date("2024-02-29") == datetime.date(2024, 2, 29)
    assert value_codec.decode_date("29/02/2024") is None
    assert value_codec.decode_date(None) is None


def test_text_is_not_trimmed():
    assert value_codec.encode_text("  spaced  ") == "  spaced  "
    assert value_codec.encode_text(None) == ""


def test_number_parsing():
    assert value_codec.encode_number("") is None
    assert value_codec.encode_number(None) is None
    assert value_codec.encode_number("42") == 42
    assert value_codec.encode_number("4.5") == 4.5
    assert value_codec.encode_number(7.25) == 7.25
    with pytest.raises(ValueError):
        value_codec.encode_number("many")


def test_boolean_and_single_select():
    assert value_codec.encode_boolean(True) is True
    assert value_codec.encode_boolean(False) is False
    assert value_codec.encode_single_select("tech") == "tech"
    assert value_codec.encode_single_select(None) is None


@pytest.mark.parametrize(
    "kind,value,ok",
    [
        (QuestionType.BOOLEAN, True, True),
        (QuestionType.BOOLEAN, "true", False),
        (QuestionType.CURRENCY, {"amount_cents": 100, "currency": "BRL"}, True),
        (QuestionType.CURRENCY, {"amount_cents": 1.5, "currency": "BRL"}, False),
        (QuestionType.CURRENCY, {"amount_cents": 100}, False),
        (QuestionType.MULTI_SELECT, ["a", "b"], True),
        (QuestionType.MULTI_SELECT, "a", False),
        (QuestionType.NUMBER, 3, True),
        (QuestionType.NUMBER, True, False),
        (QuestionType.TEXT, "x", True),
        (QuestionType.DATE, "2024-01-01", True),
        (QuestionType.TABLE, {"rows": []}, False),
        (None, None, True),
    ],
)
def test_conforms(kind, value, ok):
    assert value_codec.conforms(kind, value) is ok
