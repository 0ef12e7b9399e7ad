from datetime import date
from decimal import Decimal

import psycopg2
import pytest

from agency_finance.services import ledger_service
from agency_finance.services.ledger_service import (
    LedgerBatchError,
    commission_entry,
    create_entries,
    general_expense_entries,
    invoice_entries,
    payroll_entries,
    reversal_entries,
)

TX = "44444444-4444-4444-4444-444444444444"
DAY = date(2024, 5, 31)


def test_invoice_entries_are_positive_and_skip_zero_shares():
    splits = [
        {"department_id": "d1", "department_name": "IMMEDIA", "split_percentage": 60, "split_amount": Decimal("600.00")},
        {"department_id": "d2", "department_name": "IMCONTENT", "split_percentage": 0, "split_amount": Decimal("0.00")},
    ]
    entries = invoice_entries(TX, "c1", None, DAY, "F-001", splits, {"base_amount": Decimal("6000")})
    assert len(entries) == 1
    e = entries[0]
    assert e["entry_type"] == "revenue"
    assert e["amount"] == Decimal("600.00")
    assert e["reference_type"] == "invoice"
    assert e["metadata"]["base_amount"] == "6000"
    assert "F-001" in e["description"]


def test_payroll_entries_are_negative():
    entries = payroll_entries(TX, "e1", "p1", DAY, [{"department_id": "d1", "split_amount": "2500.555"}])
    assert entries[0]["amount"] == Decimal("-2500.56")
    assert entries[0]["entry_type"] == "payroll"


def test_reversal_entries_cancel_and_point_back():
    booked = [
        {"id": "le1", "entry_type": "payroll", "department_id": "d1", "vertical_id": None,
         "amount": Decimal("-1800.00"), "entry_date": DAY, "description": "Payroll for employee - d1"},
    ]
    [r] = reversal_entries(TX, "payroll", "p1", booked)
    assert r["amount"] == Decimal("1800.00")
    assert r["is_adjustment"] is True
    assert r["adjustment_of"] == "le1"
    assert r["reference_id"] == "p1"
    assert r["description"].startswith("Reversal:")
    assert reversal_entries(TX, "payroll", "p1", []) == []


def test_general_expense_entries_carry_allocation():
    allocations = [{"department_id": "d1", "department_name": "IMMEDIA", "split_percentage": Decimal("25.00"), "split_amount": Decimal("250.00")}]
    entries = general_expense_entries(TX, "x1", DAY, "Rent", allocations)
    assert entries[0]["amount"] == Decimal("-250.00")
    assert entries[0]["metadata"]["allocation_percentage"] == "25.00"


def test_commission_sign_follows_direction():
    received = commission_entry(TX, "k1", "d1", Decimal("120"), DAY, "received", "Meta rebate")
    paid = commission_entry(TX, "k2", "d1", Decimal("120"), DAY, "paid", "Partner")
    assert received["amount"] == Decimal("120.00")
    assert paid["amount"] == Decimal("-120.00")


def test_create_entries_collects_failures(monkeypatch):
    calls = []

    def fake_create(**entry):
        calls.append(entry)
        if entry["department_id"] == "bad":
            raise psycopg2.IntegrityError("department missing")
        return f"id-{len(calls)}"

    monkeypatch.setattr(ledger_service, "create_ledger_entry", fake_create)
    entries = payroll_entries(
        TX, "e1", "p1", DAY,
        [
            {"department_id": "d1", "split_amount": 100},
            {"department_id": "bad", "split_amount": 100},
            {"department_id": "d3", "split_amount": 100},
        ],
    )
    with pytest.raises(LedgerBatchError) as exc:
        create_entries(entries)
    assert len(calls) == 3
    assert len(exc.value.written) == 2
    assert exc.value.failures[0]["error"] == "department missing"


def test_create_entries_returns_ids(monkeypatch):
    monkeypatch.setattr(ledger_service, "create_ledger_entry", lambda **e: "id-1")
    written = create_entries(payroll_entries(TX, "e1", "p1", DAY, [{"department_id": "d1", "split_amount": 5}]))
    assert written[0]["entry_id"] == "id-1"
    assert written[0]["transaction_id"] == TX
