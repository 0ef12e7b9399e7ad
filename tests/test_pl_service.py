from decimal import Decimal

import pytest

from agency_finance.models.budget import MONTH_COLUMNS
from agency_finance.services import pl_service
from agency_finance.services.pl_service import PERSONNEL_ROW, build_real_matrix, build_summary

D1, D2 = "d1", "d2"
DEPT_UUID = "88888888-8888-8888-8888-888888888888"
DEPARTMENTS = [{"id": D1, "code": "IMMED", "name": "IMMEDIA"}, {"id": D2, "code": "IMCONT", "name": "IMCONTENT"}]


def _budget_line(line_type, dept, **months):
    line = {m: Decimal("0") for m in MONTH_COLUMNS}
    line.update({"line_type": line_type, "department_id": dept})
    for k, v in months.items():
        line[k] = Decimal(v)
    return line


def test_summary_budget_against_real():
    jan = MONTH_COLUMNS[0]
    summary = build_summary(
        2024,
        DEPARTMENTS,
        [_budget_line("revenue", D1, **{jan: "5000"}), _budget_line("expense", D1, **{jan: "1000"})],
        [{"department_id": D1, "fiscal_month": 1, "amount": Decimal("4500")},
         {"department_id": D2, "fiscal_month": 2, "amount": Decimal("800")}],
        [{"department_id": D1, "fiscal_month": 1, "amount": Decimal("300")}],
        [{"department_id": D2, "fiscal_month": 2, "amount": Decimal("1200")}],
    )
    assert summary["income"]["budget"][0] == 5000.0
    assert summary["income"]["real"][:2] == [4500.0, 800.0]
    assert summary["expenses"]["real"][:2] == [300.0, 1200.0]
    assert summary["margin"]["real"][:2] == [4200.0, -400.0]
    assert summary["margin"]["budget"][0] == 4000.0
    assert summary["departments"]["IMCONT"]["expenses"]["real"][1] == 1200.0


def test_real_matrix_has_personnel_row_and_ebitda():
    sections = build_real_matrix(
        [{"department_id": D1, "department_name": "IMMEDIA", "service_name": "SEO", "service_id": "s1",
          "fiscal_month": 3, "amount": Decimal("1000")}],
        [{"department_id": D1, "department_code": "IMMED", "expense_category_id": "c1", "category_name": "Software",
          "fiscal_month": 3, "amount": Decimal("150")}],
        [{"department_id": D1, "fiscal_month": 3, "amount": Decimal("400")}],
    )
    revenue, expenses, ebitda = sections
    assert revenue["subtotal"][2] == 1000.0
    assert revenue["rows"][0]["editable"] is False
    personnel = [r for r in expenses["rows"] if r["name"] == PERSONNEL_ROW][0]
    assert personnel["values"][2] == 400.0
    assert expenses["subtotal"][2] == 550.0
    assert ebitda["values"][2] == 450.0


def test_real_revenue_cells_are_read_only(monkeypatch):
    monkeypatch.setattr(pl_service, "get_department", lambda did: {"id": did})
    status, payload = pl_service.save_matrix_cell(
        {"year": 2024, "month": 3, "type": "real", "section": "revenue", "department_id": DEPT_UUID, "value": 10}
    )
    assert status == 400
    assert "read-only" in payload["error"]


def test_real_expense_cell_in_closed_period(monkeypatch):
    monkeypatch.setattr(pl_service, "get_department", lambda did: {"id": did})
    monkeypatch.setattr(pl_service, "closed_period_error", lambda y, m: (403, {"error": "closed"}))
    status, _ = pl_service.save_matrix_cell(
        {"year": 2024, "month": 3, "type": "real", "section": "expense", "department_id": DEPT_UUID,
         "expense_category_id": DEPT_UUID, "value": 10}
    )
    assert status == 403


def test_budget_cell_saved_and_cache_dropped(monkeypatch):
    calls, dropped = [], []
    monkeypatch.setattr(pl_service, "get_department", lambda did: {"id": did})
    monkeypatch.setattr(pl_service, "set_budget_cell", lambda *a, **k: calls.append((a, k)) or {"id": "l1"})
    monkeypatch.setattr(pl_service.cache, "delete", lambda *keys: dropped.extend(keys))
    status, _ = pl_service.save_matrix_cell(
        {"year": 2024, "month": 3, "section": "revenue", "department_id": DEPT_UUID, "service_id": DEPT_UUID, "value": "2500"}
    )
    assert status == 200
    args, kwargs = calls[0]
    assert args == (2024, 3, DEPT_UUID, "revenue", Decimal("2500"))
    assert kwargs == {"service_id": DEPT_UUID}
    assert dropped == ["pl:summary:2024"]


def test_unknown_department(monkeypatch):
    monkeypatch.setattr(pl_service, "get_department", lambda did: None)
    status, _ = pl_service.save_matrix_cell(
        {"year": 2024, "month": 3, "section": "revenue", "department_id": DEPT_UUID, "value": 1}
    )
    assert status == 404


def test_summary_served_from_cache(monkeypatch):
    monkeypatch.setattr(pl_service.cache, "get_json", lambda key: {"year": 2024, "cached": True})
    assert pl_service.get_summary(2024)["cached"] is True
