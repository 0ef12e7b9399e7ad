from decimal import Decimal

from agency_finance.services import invoice_service

CONTRACT_ID = "55555555-5555-5555-5555-555555555555"
CONTRACT = {
    "id": CONTRACT_ID,
    "client_id": "22222222-2222-2222-2222-222222222222",
    "vertical_id": None,
    "contract_name": "Retainer 2024",
    "fee_percentage": Decimal("10"),
    "minimum_fee": Decimal("500"),
}
BODY = {
    "contract_id": CONTRACT_ID,
    "invoice_number": "F-2024-001",
    "invoice_date": "2024-05-31",
    "base_amount": 2000,
}


def _patch(monkeypatch, splits, written=None):
    monkeypatch.setattr(invoice_service, "get_active_contract", lambda cid: CONTRACT)
    monkeypatch.setattr(invoice_service, "list_contract_splits", lambda cid: splits)
    monkeypatch.setattr(invoice_service, "get_client", lambda cid: {"name": "Acme"})
    monkeypatch.setattr(
        invoice_service,
        "create_entries",
        lambda entries: [{"entry_id": f"e{i}", **e} for i, e in enumerate(entries)],
    )


def test_splits_not_summing_to_100_are_rejected(monkeypatch):
    _patch(
        monkeypatch,
        [
            {"department_id": "d1", "split_percentage": Decimal("60")},
            {"department_id": "d2", "split_percentage": Decimal("30")},
        ],
    )
    status, payload = invoice_service.record_invoice_issued(BODY)
    assert status == 422
    assert "90" in payload["error"]


def test_contract_without_splits(monkeypatch):
    _patch(monkeypatch, [])
    status, _ = invoice_service.record_invoice_issued(BODY)
    assert status == 422


def test_missing_contract(monkeypatch):
    _patch(monkeypatch, [])
    monkeypatch.setattr(invoice_service, "get_active_contract", lambda cid: None)
    status, _ = invoice_service.record_invoice_issued(BODY)
    assert status == 404


def test_minimum_fee_applies_and_is_split(monkeypatch):
    _patch(
        monkeypatch,
        [
            {"department_id": "d1", "department_name": "IMMEDIA", "split_percentage": Decimal("60")},
            {"department_id": "d2", "department_name": "IMCONTENT", "split_percentage": Decimal("40")},
        ],
    )
    status, payload = invoice_service.record_invoice_issued(BODY, user_id="u1")
    assert status == 201
    assert payload["invoice"]["fee_amount"] == Decimal("500.00")
    assert [s["split_amount"] for s in payload["splits"]] == [Decimal("300.00"), Decimal("200.00")]
    assert len(payload["ledger_entries"]) == 2
    assert payload["invoice"]["client"]["name"] == "Acme"


def test_fee_above_minimum(monkeypatch):
    _patch(monkeypatch, [{"department_id": "d1", "split_percentage": Decimal("100")}])
    status, payload = invoice_service.record_invoice_issued({**BODY, "base_amount": "12345.67"})
    assert status == 201
    assert payload["invoice"]["fee_amount"] == Decimal("1234.57")
