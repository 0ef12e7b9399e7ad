from datetime import date
from decimal import Decimal

import pytest

from agency_finance.utils.validators import (
    parse_bool,
    parse_choice,
    parse_date,
    parse_email,
    parse_int,
    parse_number,
    parse_percentage,
    parse_period,
    parse_uuid,
    require_str,
)


def test_parse_period():
    assert parse_period("2024", "3") == (2024, 3)


@pytest.mark.parametrize("year,month", [(2019, 1), (2024, 0), (2024, 13), (None, 1), ("x", 2)])
def test_parse_period_rejects(year, month):
    with pytest.raises(ValueError):
        parse_period(year, month)


def test_parse_number_bounds_and_defaults():
    assert parse_number({"a": "12.5"}, "a") == Decimal("12.5")
    assert parse_number({}, "a", default=0) == Decimal("0")
    assert parse_number({}, "a", required=False) is None
    with pytest.raises(ValueError, match="is required"):
        parse_number({}, "a")
    with pytest.raises(ValueError, match="must be a number"):
        parse_number({"a": "abc"}, "a")
    with pytest.raises(ValueError, match=">= 0"):
        parse_number({"a": -1}, "a", min_value=0)


def test_parse_int_requires_whole_number():
    assert parse_int({"n": "3"}, "n") == 3
    assert parse_int({"n": Decimal("2.00")}, "n") == 2
    assert parse_int({}, "n", default=1) == 1
    with pytest.raises(ValueError, match="whole number"):
        parse_int({"n": "2.5"}, "n")
    with pytest.raises(ValueError):
        parse_int({"n": 0}, "n", min_value=1)


def test_parse_percentage_range():
    assert parse_percentage({"p": 100}, "p") == Decimal("100")
    with pytest.raises(ValueError):
        parse_percentage({"p": 101}, "p")


def test_parse_bool():
    assert parse_bool({"f": "true"}, "f") is True
    assert parse_bool({"f": False}, "f") is False
    assert parse_bool({}, "f", default=True) is True
    with pytest.raises(ValueError):
        parse_bool({"f": "maybe"}, "f")


def test_parse_uuid():
    u = "11111111-1111-1111-1111-111111111111"
    assert parse_uuid({"id": u}, "id") == u
    assert parse_uuid({}, "id", required=False) is None
    with pytest.raises(ValueError, match="valid uuid"):
        parse_uuid({"id": "nope"}, "id")


def test_parse_date():
    assert parse_date({"d": "2024-05-01"}, "d") == date(2024, 5, 1)
    assert parse_date({"d": "2024-05-01T10:00:00Z"}, "d") == date(2024, 5, 1)
    assert parse_date({}, "d", default=date(2024, 1, 1)) == date(2024, 1, 1)
    with pytest.raises(ValueError):
        parse_date({"d": "05/01/2024"}, "d")


def test_strings_and_choices():
    assert require_str({"n": "  Acme "}, "n") == "Acme"
    with pytest.raises(ValueError):
        require_str({"n": "   "}, "n")
    assert parse_email({"email": " Ana@Example.COM "}) == "ana@example.com"
    with pytest.raises(ValueError):
        parse_email({"email": "ana"})
    assert parse_choice({}, "role", ("admin", "viewer"), default="viewer") == "viewer"
    with pytest.raises(ValueError):
        parse_choice({"role": "root"}, "role", ("admin", "viewer"))
