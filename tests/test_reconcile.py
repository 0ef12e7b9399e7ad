from decimal import Decimal

import psycopg2

from agency_finance.services import reconcile_service
from agency_finance.services.reconcile_service import changed_totals, compute_totals

DETAILS = [
    {"monthly_billing_id": "b1", "service_code": "PAID_MEDIA_STRATEGY", "department_code": "IMMED", "amount": "1500"},
    {"monthly_billing_id": "b1", "service_code": "SEO", "department_code": "IMMED", "amount": "300.50"},
    {"monthly_billing_id": "b1", "service_code": "VIDEO", "department_code": "imcont", "amount": 200},
    {"monthly_billing_id": "b1", "service_code": "MISC", "department_code": None, "amount": 10},
]


def test_compute_totals():
    totals = compute_totals(DETAILS)
    assert totals["fee_paid"] == Decimal("1500")
    assert totals["immedia_total"] == Decimal("1800.50")
    assert totals["imcontent_total"] == Decimal("200")
    assert totals["immoralia_total"] == Decimal("0")
    assert totals["grand_total"] == Decimal("2010.50")


def test_changed_totals_ignores_sub_cent_drift():
    billing = {"fee_paid": "1500.005", "grand_total": 100}
    totals = {"fee_paid": Decimal("1500"), "grand_total": Decimal("200")}
    assert changed_totals(billing, totals) == {"grand_total": Decimal("200")}


def _billing(bid, **cols):
    row = {"id": bid, "fiscal_year": 2024, "fiscal_month": 5}
    for col in reconcile_service.TOTAL_COLUMNS:
        row[col] = Decimal("0")
    row.update(cols)
    return row


def test_reconcile_updates_drifted_and_skips_empty(monkeypatch):
    updates = []
    monkeypatch.setattr(reconcile_service, "list_details", lambda ids: DETAILS)
    monkeypatch.setattr(reconcile_service, "update_billing", lambda bid, **cols: updates.append((bid, cols)))

    summary = reconcile_service._reconcile_records([_billing("b1"), _billing("b2")])

    assert summary["checked"] == 2
    assert summary["updated"] == 1
    assert summary["skipped"] == 1
    assert summary["failed"] == 0
    bid, cols = updates[0]
    assert bid == "b1"
    assert cols["grand_total"] == Decimal("2010.50")
    assert "immoralia_total" not in cols
    assert summary["changes"][0]["old"]["fee_paid"] == Decimal("0")


def test_reconcile_leaves_matching_record_alone(monkeypatch):
    monkeypatch.setattr(reconcile_service, "list_details", lambda ids: DETAILS)
    monkeypatch.setattr(
        reconcile_service, "update_billing", lambda *a, **k: (_ for _ in ()).throw(AssertionError("no update"))
    )
    b = _billing("b1", **compute_totals(DETAILS))
    summary = reconcile_service._reconcile_records([b])
    assert summary["updated"] == 0
    assert summary["changes"] == []


def test_reconcile_counts_failed_updates_and_continues(monkeypatch):
    details = DETAILS + [dict(d, monthly_billing_id="b2") for d in DETAILS]

    def update(bid, **cols):
        if bid == "b1":
            raise psycopg2.OperationalError("connection lost")

    monkeypatch.setattr(reconcile_service, "list_details", lambda ids: details)
    monkeypatch.setattr(reconcile_service, "update_billing", update)

    summary = reconcile_service._reconcile_records([_billing("b1"), _billing("b2")])
    assert summary["failed"] == 1
    assert summary["updated"] == 1
    assert summary["changes"][0]["billing_id"] == "b2"


def test_reconcile_period_tags_summary(monkeypatch):
    monkeypatch.setattr(reconcile_service, "is_period_closed", lambda y, m: False)
    monkeypatch.setattr(reconcile_service, "list_billing_for_year", lambda y, m: [])
    monkeypatch.setattr(reconcile_service, "list_details", lambda ids: [])
    summary = reconcile_service.reconcile_period(2024, 5)
    assert summary["fiscal_year"] == 2024
    assert summary["fiscal_month"] == 5
    assert summary["checked"] == 0


def test_reconcile_period_skips_closed_months(monkeypatch):
    details = DETAILS + [dict(d, monthly_billing_id="b2") for d in DETAILS]
    updates = []
    monkeypatch.setattr(reconcile_service, "is_period_closed", lambda y, m: m == 5)
    monkeypatch.setattr(
        reconcile_service, "list_billing_for_year", lambda y, m: [_billing("b1"), _billing("b2", fiscal_month=6)]
    )
    monkeypatch.setattr(reconcile_service, "list_details", lambda ids: [d for d in details if d["monthly_billing_id"] in ids])
    monkeypatch.setattr(reconcile_service, "update_billing", lambda bid, **cols: updates.append(bid))

    summary = reconcile_service.reconcile_period(2024)

    assert updates == ["b2"]
    assert summary["checked"] == 1
    assert summary["closed_skipped"] == 1
