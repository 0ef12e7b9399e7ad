"""
Yearly P&L: budget (budget_lines) against real figures.

Real income comes from billing_details, real expenses from actual_expenses
plus payroll cost. The summary is cached in Redis for PL_CACHE_TTL seconds
and dropped whenever billing, expenses, payroll or budget change.
"""

import os
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from agency_finance.models.billing import revenue_by_month
from agency_finance.models.budget import MONTH_COLUMNS, list_budget_lines, set_budget_cell
from agency_finance.models.catalog import get_department, list_departments
from agency_finance.models.expense import expenses_by_month_and_department, set_expense_cell
from agency_finance.models.payroll import payroll_cost_by_month_and_department
from agency_finance.services.period_service import closed_period_error
from agency_finance.utils import cache
from agency_finance.utils.fee_calculator import ZERO, round_cents, to_decimal
from agency_finance.utils.logger import get_logger
from agency_finance.utils.validators import (
    parse_choice,
    parse_number,
    parse_period,
    parse_uuid,
)

log = get_logger(__name__)

PL_CACHE_TTL = int(os.getenv("PL_CACHE_TTL", "300"))
MATRIX_TYPES = ("budget", "real")
SECTIONS = ("revenue", "expense")
PERSONNEL_ROW = "Personnel"


def _cache_key(year: int) -> str:
    return f"pl:summary:{year}"


def invalidate_pl_cache(year: int) -> None:
    cache.delete(_cache_key(year))


def _zeros() -> List[Decimal]:
    return [ZERO] * 12


def _money(values: List[Decimal]) -> List[float]:
    return [float(round_cents(v)) for v in values]


def _months_of(line: Dict[str, Any]) -> List[Decimal]:
    return [to_decimal(line.get(m)) for m in MONTH_COLUMNS]


# ---- summary ----


def build_summary(
    year: int,
    departments: List[Dict[str, Any]],
    budget_lines: List[Dict[str, Any]],
    revenue_rows: List[Dict[str, Any]],
    expense_rows: List[Dict[str, Any]],
    payroll_rows: List[Dict[str, Any]],
) -> Dict[str, Any]:
    totals = {
        "income": {"budget": _zeros(), "real": _zeros()},
        "expenses": {"budget": _zeros(), "real": _zeros()},
    }
    dept_by_id = {str(d["id"]): d for d in departments}
    per_dept: Dict[str, Dict[str, Any]] = {}

    def dept_bucket(dept_id) -> Dict[str, Any]:
        key = str(dept_id)
        if key not in per_dept:
            d = dept_by_id.get(key, {})
            per_dept[key] = {
                "code": d.get("code"),
                "name": d.get("name") or "Unknown",
                "income": {"budget": _zeros(), "real": _zeros()},
                "expenses": {"budget": _zeros(), "real": _zeros()},
            }
        return per_dept[key]

    def add(kind: str, view: str, dept_id, month_idx: int, amount: Decimal) -> None:
        totals[kind][view][month_idx] += amount
        dept_bucket(dept_id)[kind][view][month_idx] += amount

    for line in budget_lines:
        kind = "income" if line["line_type"] == "revenue" else "expenses"
        for i, v in enumerate(_months_of(line)):
            add(kind, "budget", line["department_id"], i, v)

    for r in revenue_rows:
        add("income", "real", r["department_id"], r["fiscal_month"] - 1, to_decimal(r["amount"]))
    for r in expense_rows:
        add("expenses", "real", r["department_id"], r["fiscal_month"] - 1, to_decimal(r["amount"]))
    for r in payroll_rows:
        add("expenses", "real", r["department_id"], r["fiscal_month"] - 1, to_decimal(r["amount"]))

    margin = {
        view: [
            totals["income"][view][i] - totals["expenses"][view][i] for i in range(12)
        ]
        for view in ("budget", "real")
    }

    return {
        "year": year,
        "income": {v: _money(totals["income"][v]) for v in ("budget", "real")},
        "expenses": {v: _money(totals["expenses"][v]) for v in ("budget", "real")},
        "margin": {v: _money(margin[v]) for v in ("budget", "real")},
        "departments": {
            b["code"] or dept_id: {
                "name": b["name"],
                "income": {v: _money(b["income"][v]) for v in ("budget", "real")},
                "expenses": {v: _money(b["expenses"][v]) for v in ("budget", "real")},
            }
            for dept_id, b in per_dept.items()
        },
    }


def get_summary(year: int) -> Dict[str, Any]:
    cached = cache.get_json(_cache_key(year))
    if cached is not None:
        return cached
    summary = build_summary(
        year,
        list_departments(include_inactive=True),
        list_budget_lines(year),
        revenue_by_month(year),
        expenses_by_month_and_department(year),
        payroll_cost_by_month_and_department(year),
    )
    cache.set_json(_cache_key(year), summary, PL_CACHE_TTL)
    return summary


# ---- spreadsheet matrix ----


def _section(code: str, rows: List[Dict[str, Any]]) -> Tuple[Dict[str, Any], List[Decimal]]:
    subtotal = _zeros()
    for row in rows:
        for i, v in enumerate(row["values"]):
            subtotal[i] += v
    out_rows = [{**row, "values": _money(row["values"])} for row in rows]
    return {"code": code, "rows": out_rows, "subtotal": _money(subtotal)}, subtotal


def _ebitda(revenue: List[Decimal], expenses: List[Decimal]) -> Dict[str, Any]:
    return {
        "code": "EBITDA",
        "values": _money([revenue[i] - expenses[i] for i in range(12)]),
        "calculated": True,
    }


def build_budget_matrix(budget_lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    revenue, expenses = [], []
    for line in budget_lines:
        row = {
            "id": str(line["id"]),
            "department_id": str(line["department_id"]),
            "dept": line["department_name"],
            "values": _months_of(line),
            "editable": True,
        }
        if line["line_type"] == "revenue":
            row["name"] = line.get("service_name") or line.get("description") or "No description"
            row["service_id"] = line.get("service_id")
            revenue.append(row)
        else:
            row["name"] = line.get("category_name") or line.get("description") or "Other expenses"
            row["expense_category_id"] = line.get("expense_category_id")
            expenses.append(row)
    rev_section, rev_total = _section("REVENUE", revenue)
    exp_section, exp_total = _section("EXPENSES", expenses)
    return [rev_section, exp_section, _ebitda(rev_total, exp_total)]


def build_real_matrix(
    revenue_rows: List[Dict[str, Any]],
    expense_rows: List[Dict[str, Any]],
    payroll_rows: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    revenue: Dict[tuple, Dict[str, Any]] = {}
    for r in revenue_rows:
        key = (str(r["department_id"]), r["service_name"])
        row = revenue.setdefault(
            key,
            {
                "department_id": key[0],
                "dept": r["department_name"],
                "name": r["service_name"],
                "service_id": r.get("service_id"),
                "values": _zeros(),
                "editable": False,
            },
        )
        row["values"][r["fiscal_month"] - 1] += to_decimal(r["amount"])

    expenses: Dict[tuple, Dict[str, Any]] = {}
    for r in expense_rows:
        key = (str(r["department_id"]), str(r["expense_category_id"]))
        row = expenses.setdefault(
            key,
            {
                "department_id": key[0],
                "dept": r.get("department_code"),
                "name": r["category_name"],
                "expense_category_id": key[1],
                "values": _zeros(),
                "editable": True,
            },
        )
        row["values"][r["fiscal_month"] - 1] += to_decimal(r["amount"])

    personnel = _zeros()
    for r in payroll_rows:
        personnel[r["fiscal_month"] - 1] += to_decimal(r["amount"])
    expense_list = list(expenses.values())
    expense_list.append(
        {"dept": None, "name": PERSONNEL_ROW, "values": personnel, "editable": False}
    )

    rev_section, rev_total = _section("REVENUE", list(revenue.values()))
    exp_section, exp_total = _section("EXPENSES", expense_list)
    return [rev_section, exp_section, _ebitda(rev_total, exp_total)]


def get_matrix(year: int, matrix_type: str) -> Dict[str, Any]:
    if matrix_type == "budget":
        sections = build_budget_matrix(list_budget_lines(year))
    else:
        sections = build_real_matrix(
            revenue_by_month(year),
            expenses_by_month_and_department(year),
            payroll_cost_by_month_and_department(year),
        )
    return {"year": year, "type": matrix_type, "columns": list(MONTH_COLUMNS), "sections": sections}


def save_matrix_cell(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    """
    body: {year, month, type: budget|real, section: revenue|expense,
           department_id, service_id | expense_category_id, value}
    """
    year, month = parse_period(body.get("year"), body.get("month"))
    matrix_type = parse_choice(body, "type", MATRIX_TYPES, default="budget")
    section = parse_choice(body, "section", SECTIONS)
    if section is None:
        raise ValueError("section is required")
    department_id = parse_uuid(body, "department_id")
    value = parse_number(body, "value", default=0)

    if not get_department(department_id):
        return 404, {"error": "department not found"}

    if matrix_type == "real":
        if section == "revenue":
            return 400, {"error": "real revenue is read-only (it comes from billing)"}
        category_id = parse_uuid(body, "expense_category_id")
        if value < 0:
            raise ValueError("value must be >= 0")
        err = closed_period_error(year, month)
        if err:
            return err
        saved = set_expense_cell(year, month, department_id, category_id, value)
    else:
        if section == "revenue":
            saved = set_budget_cell(
                year, month, department_id, "revenue", value,
                service_id=parse_uuid(body, "service_id"),
            )
        else:
            saved = set_budget_cell(
                year, month, department_id, "expense", value,
                expense_category_id=parse_uuid(body, "expense_category_id"),
            )

    invalidate_pl_cache(year)
    log.info("P&L %s cell saved: %s %s-%02d dept=%s", matrix_type, section, year, month, department_id)
    return 200, {"success": True, "saved": saved}
