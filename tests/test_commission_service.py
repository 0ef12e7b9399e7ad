from datetime import date
from decimal import Decimal

import pytest

from agency_finance.services import commission_service
from agency_finance.services.commission_service import client_revenue, commission_amount
from agency_finance.services.ledger_service import LedgerBatchError

GENERAL = {"id": "77777777-7777-7777-7777-777777777777", "code": "IMMORAL"}


def test_client_revenue_sums_department_totals():
    row = {"immedia_total": "1000", "imcontent_total": 250, "immoralia_total": None, "immoral_general_total": "0"}
    assert client_revenue(row) == Decimal("1250")


def test_commission_amount_rounds_to_cents():
    assert commission_amount(Decimal("1234.56"), Decimal("7.5")) == Decimal("92.59")


def _assignments():
    return [
        {
            "partner_id": "p1", "partner_name": "Ref Co", "client_id": "c1", "client_name": "Acme",
            "billing_id": "b1", "commission_percentage": Decimal("10"),
            "immedia_total": Decimal("2000"), "imcontent_total": Decimal("0"),
            "immoralia_total": Decimal("0"), "immoral_general_total": Decimal("0"),
        },
        {
            "partner_id": "p1", "partner_name": "Ref Co", "client_id": "c2", "client_name": "Beta",
            "billing_id": None, "commission_percentage": Decimal("10"),
        },
        {
            "partner_id": "p2", "partner_name": "Other", "client_id": "c3", "client_name": "Gamma",
            "billing_id": "b3", "commission_percentage": Decimal("5"),
            "immedia_total": Decimal("0"), "imcontent_total": Decimal("0"),
            "immoralia_total": Decimal("0"), "immoral_general_total": Decimal("0"),
        },
    ]


def test_calculate_skips_clients_without_billing(monkeypatch):
    saved = []
    monkeypatch.setattr(commission_service.partner_model, "list_active_assignments_with_revenue", lambda y, m: _assignments())
    monkeypatch.setattr(
        commission_service.partner_model,
        "save_pending_commission",
        lambda *args: saved.append(args) or {"id": "k1"},
    )
    status, payload = commission_service.calculate_partner_commissions(
        {"fiscal_year": 2024, "fiscal_month": 5, "save": True}
    )
    assert status == 200
    assert payload["skipped_without_billing"] == 1
    assert len(payload["commissions"]) == 2
    assert payload["total_commission"] == Decimal("200.00")
    # Zero commissions are reported but not stored
    assert len(saved) == 1
    assert payload["commissions"][1]["saved"] is False


def test_calculate_preview_stores_nothing(monkeypatch):
    monkeypatch.setattr(commission_service.partner_model, "list_active_assignments_with_revenue", lambda y, m: _assignments())
    monkeypatch.setattr(
        commission_service.partner_model,
        "save_pending_commission",
        lambda *args: pytest.fail("preview must not store"),
    )
    status, payload = commission_service.calculate_partner_commissions({"fiscal_year": 2024, "fiscal_month": 5})
    assert payload["saved"] is False


@pytest.fixture
def ledger(monkeypatch):
    booked = []
    monkeypatch.setattr(commission_service, "get_department_by_code", lambda code: GENERAL)
    monkeypatch.setattr(commission_service.ledger_service, "create_entries", lambda entries: booked.extend(entries) or entries)
    return booked


def test_mark_partner_paid_books_negative_entry(monkeypatch, ledger):
    updates = {}
    monkeypatch.setattr(
        commission_service.partner_model,
        "get_commission",
        lambda cid: {"payment_status": "pending", "commission_amount": Decimal("200"), "partner_name": "Ref Co", "client_name": "Acme"},
    )
    monkeypatch.setattr(
        commission_service.partner_model, "update_commission", lambda cid, **f: updates.update(f) or updates
    )
    status, payload = commission_service.mark_partner_paid(
        "k1", {"payment_date": "2024-06-05", "payment_reference": "TR-9"}
    )
    assert status == 200
    assert updates["notes"] == "Paid - Ref: TR-9"
    assert updates["payment_date"] == date(2024, 6, 5)
    assert ledger[0]["amount"] == Decimal("-200.00")
    assert ledger[0]["department_id"] == GENERAL["id"]


def test_mark_partner_paid_twice_conflicts(monkeypatch, ledger):
    monkeypatch.setattr(commission_service.partner_model, "get_commission", lambda cid: {"payment_status": "paid"})
    status, _ = commission_service.mark_partner_paid("k1", {})
    assert status == 409
    assert ledger == []


def test_mark_platform_received_books_positive_entry(monkeypatch, ledger):
    updates = {}
    monkeypatch.setattr(
        commission_service.platform_model,
        "get_commission",
        lambda cid: {"payment_status": "pending", "commission_earned": Decimal("80"), "platform_name": "Meta"},
    )
    monkeypatch.setattr(
        commission_service.platform_model, "update_commission", lambda cid, **f: updates.update(f) or updates
    )
    status, _ = commission_service.mark_platform_received("k2", {})
    assert status == 200
    assert updates["notes"] == "Received"
    assert ledger[0]["amount"] == Decimal("80.00")


def test_ledger_department_required_without_general_department(monkeypatch):
    monkeypatch.setattr(commission_service, "get_department_by_code", lambda code: None)
    with pytest.raises(ValueError):
        commission_service.mark_partner_paid("k1", {})


@pytest.fixture
def ledger_down(monkeypatch):
    def create_entries(entries):
        raise LedgerBatchError([{"error": "connection lost", "entry": entries[0]}], [])

    monkeypatch.setattr(commission_service, "get_department_by_code", lambda code: GENERAL)
    monkeypatch.setattr(commission_service.ledger_service, "create_entries", create_entries)


def test_partner_stays_pending_when_ledger_write_fails(monkeypatch, ledger_down):
    current = {"payment_status": "pending", "commission_amount": Decimal("200"), "partner_name": "Ref Co", "client_name": "Acme"}
    monkeypatch.setattr(commission_service.partner_model, "get_commission", lambda cid: current)
    monkeypatch.setattr(
        commission_service.partner_model, "update_commission", lambda cid, **f: pytest.fail("status must not change")
    )
    status, payload = commission_service.mark_partner_paid("k1", {})
    assert status == 500
    assert "connection lost" in payload["error"]
    assert payload["commission"]["payment_status"] == "pending"


def test_platform_stays_pending_when_ledger_write_fails(monkeypatch, ledger_down):
    monkeypatch.setattr(
        commission_service.platform_model,
        "get_commission",
        lambda cid: {"payment_status": "pending", "commission_earned": Decimal("80"), "platform_name": "Meta"},
    )
    monkeypatch.setattr(
        commission_service.platform_model, "update_commission", lambda cid, **f: pytest.fail("status must not change")
    )
    status, _ = commission_service.mark_platform_received("k2", {})
    assert status == 500
