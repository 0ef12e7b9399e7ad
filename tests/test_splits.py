from decimal import Decimal

import pytest

from agency_finance.utils.splits import allocate, prorate_by_weight, splits_sum_to_100


def test_allocate_last_share_takes_remainder():
    splits = [
        {"department_id": "a", "split_percentage": 33.33},
        {"department_id": "b", "split_percentage": 33.33},
        {"department_id": "c", "split_percentage": 33.34},
    ]
    out = allocate(100, splits)
    assert [s["split_amount"] for s in out] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(s["split_amount"] for s in out) == Decimal("100.00")


def test_allocate_keeps_other_keys():
    out = allocate("10.00", [{"department_id": "a", "split_percentage": 100, "note": "x"}])
    assert out == [{"department_id": "a", "split_percentage": 100, "note": "x", "split_amount": Decimal("10.00")}]


def test_splits_sum_to_100_tolerance():
    assert splits_sum_to_100([{"split_percentage": 60}, {"split_percentage": "40"}])
    assert splits_sum_to_100([{"split_percentage": 99.995}])
    assert not splits_sum_to_100([{"split_percentage": 60}, {"split_percentage": 30}])
    assert not splits_sum_to_100([])


def test_prorate_by_weight():
    out = prorate_by_weight(1000, {"a": 3000, "b": 1000})
    by_dept = {s["department_id"]: s for s in out}
    assert by_dept["a"]["split_amount"] == Decimal("750.00")
    assert by_dept["b"]["split_amount"] == Decimal("250.00")
    assert by_dept["a"]["split_percentage"] == Decimal("75.00")


def test_prorate_all_zero_weights_shares_equally():
    out = prorate_by_weight(100, {"a": 0, "b": 0, "c": 0})
    amounts = [s["split_amount"] for s in out]
    assert amounts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]


def test_prorate_rejects_negative_weight():
    with pytest.raises(ValueError):
        prorate_by_weight(100, {"a": -1, "b": 2})


def test_prorate_no_departments():
    assert prorate_by_weight(100, {}) == []
