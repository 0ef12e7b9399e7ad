from datetime import date
from decimal import Decimal

from agency_finance.services import expense_service

DEPARTMENTS = [
    {"id": "d1", "code": "IMMED", "name": "IMMEDIA"},
    {"id": "d2", "code": "IMCONT", "name": "IMCONTENT"},
    {"id": "d3", "code": "IMMOR", "name": "IMMORALIA"},
]
RENT = {"id": "x1", "amount": Decimal("1000.00"), "description": "Rent", "payment_date": None}


def _patch(monkeypatch, revenue, general=(RENT,)):
    monkeypatch.setattr(expense_service, "list_departments", lambda: DEPARTMENTS)
    monkeypatch.setattr(expense_service, "revenue_by_department", lambda y, m: revenue)
    monkeypatch.setattr(expense_service, "list_general_expenses", lambda y, m: list(general))


def test_proration_follows_billed_revenue(monkeypatch):
    _patch(monkeypatch, {"d1": Decimal("6000"), "d2": Decimal("4000")})
    plan = expense_service.plan_proration(2024, 5)
    assert plan["equal_split"] is False
    assert plan["total_revenue"] == Decimal("10000")
    shares = {a["department_code"]: a["split_amount"] for a in plan["expenses"][0]["allocations"]}
    assert shares == {"IMMED": Decimal("600.00"), "IMCONT": Decimal("400.00"), "IMMOR": Decimal("0.00")}
    assert plan["revenue_by_department"]["IMMOR"] == Decimal("0")


def test_proration_without_revenue_is_equal(monkeypatch):
    _patch(monkeypatch, {})
    plan = expense_service.plan_proration(2024, 5)
    assert plan["equal_split"] is True
    amounts = [a["split_amount"] for a in plan["expenses"][0]["allocations"]]
    assert sum(amounts) == Decimal("1000.00")
    assert amounts[0] == Decimal("333.33")


def test_execute_proration_writes_ledger(monkeypatch):
    _patch(monkeypatch, {"d1": Decimal("1"), "d2": Decimal("1")})
    replaced, booked = [], []
    monkeypatch.setattr(expense_service, "closed_period_error", lambda y, m: None)
    monkeypatch.setattr(expense_service, "replace_allocations", lambda eid, allocs: replaced.append((eid, allocs)))
    monkeypatch.setattr(expense_service, "invalidate_pl_cache", lambda y: None)

    def create_entries(entries):
        booked.extend(entries)
        return entries

    monkeypatch.setattr(expense_service.ledger_service, "create_entries", create_entries)
    status, payload = expense_service.execute_proration({"fiscal_year": 2024, "fiscal_month": 5})
    assert status == 200
    assert replaced[0][0] == "x1"
    # The zero share of IMMOR is not booked
    assert len(booked) == 2
    assert all(e["amount"] == Decimal("-500.00") for e in booked)
    assert booked[0]["entry_date"] == date(2024, 5, 1)
    assert payload["ledger_entries"] == 2


def test_execute_proration_nothing_to_do(monkeypatch):
    _patch(monkeypatch, {}, general=())
    monkeypatch.setattr(expense_service, "closed_period_error", lambda y, m: None)
    status, payload = expense_service.execute_proration({"fiscal_year": 2024, "fiscal_month": 5})
    assert status == 200
    assert payload["expenses"] == []


def test_execute_proration_closed_period(monkeypatch):
    monkeypatch.setattr(expense_service, "closed_period_error", lambda y, m: (403, {"error": "closed"}))
    status, _ = expense_service.execute_proration({"fiscal_year": 2024, "fiscal_month": 5})
    assert status == 403


def _created(is_general):
    return {
        "id": "x9", "department_id": "d1", "amount": Decimal("120.00"), "description": "Licenses",
        "payment_date": None, "is_general": is_general,
    }


def _add(monkeypatch, created):
    booked = []
    monkeypatch.setattr(expense_service, "closed_period_error", lambda y, m: None)
    monkeypatch.setattr(expense_service, "create_expense", lambda **f: created)
    monkeypatch.setattr(expense_service, "invalidate_pl_cache", lambda y: None)
    monkeypatch.setattr(expense_service.ledger_service, "create_entries", lambda entries: booked.extend(entries) or entries)
    status, _ = expense_service.add_expense(
        {
            "fiscal_year": 2024, "fiscal_month": 5, "amount": 120, "description": "Licenses",
            "department_id": "66666666-6666-6666-6666-666666666661",
            "expense_category_id": "66666666-6666-6666-6666-666666666662",
        }
    )
    assert status == 201
    return booked


def test_department_expense_is_booked(monkeypatch):
    booked = _add(monkeypatch, _created(False))
    assert booked[0]["amount"] == Decimal("-120.00")
    assert booked[0]["entry_date"] == date(2024, 5, 1)


def test_general_expense_waits_for_proration(monkeypatch):
    assert _add(monkeypatch, _created(True)) == []
