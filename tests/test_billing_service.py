from datetime import date
from decimal import Decimal

import pytest

from agency_finance.services import billing_service
from agency_finance.services.billing_service import _sync_record, compute_billing

CLIENT_ID = "22222222-2222-2222-2222-222222222222"
CONFIG = {
    "fee_type": "fixed",
    "fixed_pct": 10,
    "use_platform_costs": True,
    "platform_cost_first": 700,
    "platform_cost_additional": 300,
}


def test_compute_billing_active_month():
    calc = compute_billing(8005, 2, CONFIG)
    assert calc["fee_percentage"] == Decimal("10")
    assert calc["platform_costs"] == Decimal("1000")
    assert calc["fee"] == Decimal("1801")


def test_compute_billing_idle_month_has_no_platform_costs():
    calc = compute_billing(0, 1, CONFIG)
    assert calc["platform_costs"] == Decimal("0")
    assert calc["fee"] == Decimal("0")


def test_compute_billing_two_platforms_without_spend_still_charged():
    calc = compute_billing(0, 2, CONFIG)
    assert calc["fee"] == Decimal("1000")


def test_compute_billing_explicit_percentage_wins():
    calc = compute_billing(10000, 1, CONFIG, fee_pct=5)
    assert calc["fee_percentage"] == Decimal("5")
    assert calc["fee"] == Decimal("1200")


def _record(**kw):
    base = {
        "total_actual_investment": Decimal("0"),
        "platform_count": 1,
        "applied_fee_percentage": Decimal("10"),
        "platform_costs": Decimal("0"),
        "fee_paid": Decimal("0"),
        "is_manual_override": False,
    }
    base.update(kw)
    return base


def test_sync_record_picks_up_actual_spend():
    updates, fee = _sync_record(_record(), {"total_spend": Decimal("5000"), "platforms": 3}, CONFIG)
    assert updates == {
        "total_actual_investment": Decimal("5000"),
        "platform_count": 3,
        "platform_costs": Decimal("1300"),
        "fee_paid": Decimal("1800"),
    }
    assert fee == Decimal("1800")


def test_sync_record_manual_override_keeps_fee():
    record = _record(is_manual_override=True, fee_paid=Decimal("999.60"))
    updates, fee = _sync_record(record, {"total_spend": Decimal("5000"), "platforms": 1}, CONFIG)
    assert "fee_paid" not in updates
    assert fee == Decimal("1000")


def test_sync_record_without_actuals_zeroes_investment():
    record = _record(total_actual_investment=Decimal("400"), fee_paid=Decimal("740"), platform_costs=Decimal("700"))
    updates, fee = _sync_record(record, None, CONFIG)
    assert updates["total_actual_investment"] == Decimal("0")
    assert updates["fee_paid"] == Decimal("0")
    assert fee == Decimal("0")


def test_sync_record_in_line_needs_no_update():
    record = _record(
        total_actual_investment=Decimal("1000"),
        platform_costs=Decimal("700"),
        fee_paid=Decimal("800"),
    )
    updates, _ = _sync_record(record, {"total_spend": Decimal("1000"), "platforms": 1}, CONFIG)
    assert updates == {}


@pytest.fixture
def matrix_env(monkeypatch):
    """Fake persistence for matrix cell saves."""
    state = {"billing": {"id": "b1", "fiscal_year": 2024, "fiscal_month": 5, **_record()}, "updates": []}
    client = {"id": CLIENT_ID, "name": "Acme", "fee_config": CONFIG}

    def update_billing(bid, **fields):
        state["billing"].update(fields)
        state["updates"].append(fields)
        return state["billing"]

    monkeypatch.setattr(billing_service, "closed_period_error", lambda y, m: None)
    monkeypatch.setattr(billing_service, "get_client", lambda cid: client)
    monkeypatch.setattr(billing_service, "get_or_create_billing", lambda *a, **k: state["billing"])
    monkeypatch.setattr(billing_service, "get_billing", lambda bid: state["billing"])
    monkeypatch.setattr(billing_service, "update_billing", update_billing)
    monkeypatch.setattr(billing_service, "reconcile_billing", lambda b: None)
    monkeypatch.setattr(billing_service, "invalidate_pl_cache", lambda y: None)
    monkeypatch.setattr(billing_service, "get_strategy_service", lambda: None)
    return state


def _cell(field, value, **extra):
    return {"year": 2024, "month": 5, "client_id": CLIENT_ID, "field": field, "value": value, **extra}


def test_save_cell_in_closed_period_is_forbidden(matrix_env, monkeypatch):
    monkeypatch.setattr(billing_service, "closed_period_error", lambda y, m: (403, {"error": "closed"}))
    status, payload = billing_service.save_matrix_cell(_cell("investment", 100))
    assert status == 403
    assert matrix_env["updates"] == []


def test_save_cell_unknown_client(matrix_env, monkeypatch):
    monkeypatch.setattr(billing_service, "get_client", lambda cid: None)
    status, _ = billing_service.save_matrix_cell(_cell("investment", 100))
    assert status == 404


def test_save_cell_rejects_unknown_field(matrix_env):
    with pytest.raises(ValueError):
        billing_service.save_matrix_cell(_cell("notes", "x"))


def test_save_investment_cell_recomputes_fee_and_flags_override(matrix_env):
    status, payload = billing_service.save_matrix_cell(_cell("investment", "20000"))
    assert status == 200
    b = matrix_env["billing"]
    assert b["total_actual_investment"] == Decimal("20000")
    assert b["fee_paid"] == Decimal("2700")
    assert b["is_manual_override"] is True


def test_save_platform_count_keeps_auto_mode(matrix_env):
    matrix_env["billing"]["total_actual_investment"] = Decimal("1000")
    status, _ = billing_service.save_matrix_cell(_cell("platform_count", 3))
    assert status == 200
    b = matrix_env["billing"]
    assert b["platform_count"] == 3
    assert b["fee_paid"] == Decimal("1400")
    assert b["is_manual_override"] is False


def test_save_unknown_vertical(matrix_env, monkeypatch):
    monkeypatch.setattr(billing_service, "find_vertical", lambda name: None)
    status, payload = billing_service.save_matrix_cell(_cell("vertical", "Space"))
    assert status == 404
    assert "Space" in payload["error"]


def test_due_day_is_clamped_to_month_length(matrix_env, monkeypatch):
    saved = {}
    monkeypatch.setattr(
        billing_service,
        "latest_active_contract",
        lambda cid: {"id": "c1", "effective_to": date(2024, 2, 10)},
    )
    monkeypatch.setattr(billing_service, "set_contract_end_date", lambda cid, d: saved.update(end=d))
    status, _ = billing_service.save_matrix_cell(_cell("vencimiento", 31))
    assert status == 200
    assert saved["end"] == date(2024, 2, 29)


def test_due_day_without_contract(matrix_env, monkeypatch):
    monkeypatch.setattr(billing_service, "latest_active_contract", lambda cid: None)
    status, _ = billing_service.save_matrix_cell(_cell("vencimiento", 10))
    assert status == 404


def test_service_amount_requires_service_id(matrix_env):
    with pytest.raises(ValueError, match="service_id"):
        billing_service.save_matrix_cell(_cell("service_amount", 100))


def test_clearing_service_amount_deletes_line(matrix_env, monkeypatch):
    removed = []
    service = {"id": "33333333-3333-3333-3333-333333333333", "department_id": "d1", "name": "SEO"}
    monkeypatch.setattr(billing_service, "get_service", lambda sid: service)
    monkeypatch.setattr(billing_service, "get_detail_for_service", lambda bid, sid: {"id": "det1"})
    monkeypatch.setattr(billing_service, "remove_detail", lambda did: removed.append(did))
    status, _ = billing_service.save_matrix_cell(_cell("service_amount", "0", service_id=service["id"]))
    assert status == 200
    assert removed == ["det1"]


@pytest.mark.parametrize("value", [0, -1, "2.5"])
def test_save_platform_count_rejects_non_positive_or_fractional(matrix_env, value):
    with pytest.raises(ValueError, match="platform_count"):
        billing_service.save_matrix_cell(_cell("platform_count", value))
    assert matrix_env["updates"] == []


def test_sync_period_leaves_closed_period_as_stored(monkeypatch):
    record = {"id": "b1", "client_id": CLIENT_ID, "fiscal_year": 2024, "fiscal_month": 5, **_record()}
    written = []
    monkeypatch.setattr(billing_service, "is_period_closed", lambda y, m: True)
    monkeypatch.setattr(billing_service, "list_billing_for_period", lambda y, m: [record])
    monkeypatch.setattr(
        billing_service, "actuals_by_client", lambda y, m: {CLIENT_ID: {"total_spend": Decimal("50000"), "platforms": 2}}
    )
    monkeypatch.setattr(billing_service, "update_billing", lambda bid, **f: written.append(f))
    monkeypatch.setattr(billing_service, "reconcile_billing", lambda b: written.append("reconcile"))

    synced = billing_service.sync_period(2024, 5, [{"id": CLIENT_ID, "fee_config": CONFIG}])

    assert synced == [record]
    assert written == []
    assert record["fee_paid"] == Decimal("0")
