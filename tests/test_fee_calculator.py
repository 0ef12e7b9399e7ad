from decimal import Decimal

import pytest

from agency_finance.utils.fee_calculator import (
    DEFAULT_FEE_CONFIG,
    calculate_fee,
    fee_with_minimum,
    get_fee_percent,
    get_platform_costs,
    normalize_fee_config,
    round_currency,
    validate_fee_config,
)

TIERED = {
    "fee_type": "variable",
    "fixed_pct": 12,
    "variable_ranges": [
        {"min": 0, "max": 10000, "pct": 15},
        {"min": 10000.01, "max": 50000, "pct": 10},
        {"min": 50000.01, "max": None, "pct": 7},
    ],
    "use_platform_costs": True,
    "platform_cost_first": 700,
    "platform_cost_additional": 300,
}


@pytest.mark.parametrize(
    "investment,expected_pct",
    [
        (0, 15),
        (5000, 15),
        (10000, 15),
        (10000.01, 10),
        (50000, 10),
        (50000.01, 7),
        (1000000, 7),
    ],
)
def test_tiered_percentage_picks_first_matching_range(investment, expected_pct):
    assert get_fee_percent(investment, TIERED) == Decimal(expected_pct)


def test_investment_outside_every_range_falls_back_to_fixed_pct():
    cfg = {**TIERED, "variable_ranges": [{"min": 100, "max": 200, "pct": 20}]}
    assert get_fee_percent(50, cfg) == Decimal("12")
    assert get_fee_percent(500, cfg) == Decimal("12")


@pytest.mark.parametrize(
    "count,expected",
    [(0, 700), (-3, 700), (1, 700), (2, 1000), (4, 1600)],
)
def test_platform_costs_clamp_extra_platforms_at_zero(count, expected):
    assert get_platform_costs(count, DEFAULT_FEE_CONFIG) == Decimal(expected)


def test_platform_costs_disabled():
    cfg = {**DEFAULT_FEE_CONFIG, "use_platform_costs": False}
    assert get_platform_costs(3, cfg) == 0


@pytest.mark.parametrize(
    "investment,count,include,expected_fee",
    [
        (20000, 1, True, Decimal("2700")),
        (20000, 3, True, Decimal("3300")),
        (20000, 3, False, Decimal("2000")),
        (5000, 2, True, Decimal("1750")),
    ],
)
def test_calculate_fee(investment, count, include, expected_fee):
    pct, plat, fee = calculate_fee(investment, TIERED, count, include_platform_costs=include)
    assert fee == expected_fee
    assert fee == Decimal(investment) * pct / 100 + plat


def test_calculate_fee_rejects_negative_investment():
    with pytest.raises(ValueError):
        calculate_fee(-1, TIERED, 1)


def test_missing_config_uses_agency_default():
    pct, plat, fee = calculate_fee(1000, None, 1)
    assert pct == Decimal("10")
    assert plat == Decimal("700")
    assert fee == Decimal("800")


def test_round_currency_half_up():
    assert round_currency("1234.5") == Decimal("1235")
    assert round_currency("1234.49") == Decimal("1234")


def test_fee_with_minimum():
    assert fee_with_minimum(1000, 10, 500) == Decimal("500")
    assert fee_with_minimum(10000, 10, 500) == Decimal("1000")


def test_normalize_partial_config_keeps_platform_costs_enabled():
    cfg = normalize_fee_config({"fee_type": "fixed", "fixed_pct": 8})
    assert cfg["use_platform_costs"] is True
    assert cfg["platform_cost_first"] == 0
    assert cfg["calculation_type"] == "auto"


def test_validate_fee_config_returns_json_numbers():
    out = validate_fee_config(TIERED)
    assert out["variable_ranges"][0] == {"min": 0, "max": 10000, "pct": 15}
    assert out["variable_ranges"][2]["max"] is None
    assert out["variable_ranges"][1]["min"] == 10000.01


@pytest.mark.parametrize(
    "patch,message",
    [
        ({"fee_type": "tiered"}, "fee_type"),
        ({"fixed_pct": 120}, "fixed_pct"),
        ({"platform_cost_first": -1}, "platform costs"),
        ({"variable_ranges": [{"min": 10, "max": 5, "pct": 5}]}, "max must be >= min"),
        (
            {"variable_ranges": [{"min": 0, "max": 100, "pct": 5}, {"min": 50, "max": 200, "pct": 5}]},
            "overlaps",
        ),
        (
            {"variable_ranges": [{"min": 0, "max": None, "pct": 5}, {"min": 50, "max": 200, "pct": 5}]},
            "unbounded",
        ),
        ({"variable_ranges": []}, "at least one range"),
    ],
)
def test_validate_fee_config_rejects(patch, message):
    with pytest.raises(ValueError, match=message):
        validate_fee_config({**TIERED, **patch})
