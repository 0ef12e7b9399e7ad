"""
Actual expenses, and the monthly proration of general expenses across
departments by their billed revenue.
"""

from datetime import date
from typing import Any, Dict, List, Tuple

from agency_finance.models.billing import revenue_by_department
from agency_finance.models.catalog import list_departments
from agency_finance.models.expense import (
    create_expense,
    delete_expense,
    get_expense,
    list_expenses,
    list_general_expenses,
    replace_allocations,
    update_expense,
)
from agency_finance.services import ledger_service
from agency_finance.services.ledger_service import LedgerBatchError
from agency_finance.services.period_service import closed_period_error
from agency_finance.services.pl_service import invalidate_pl_cache
from agency_finance.utils.fee_calculator import ZERO
from agency_finance.utils.logger import get_logger
from agency_finance.utils.splits import prorate_by_weight
from agency_finance.utils.validators import (
    optional_str,
    parse_date,
    parse_number,
    parse_period,
    parse_uuid,
    require_any,
    require_str,
)

log = get_logger(__name__)


def expenses_for_period(year: int, month: int, department_id=None) -> Dict[str, Any]:
    items = list_expenses(year, month, department_id)
    by_department: Dict[str, Any] = {}
    by_category: Dict[str, Any] = {}
    for e in items:
        by_department[e["department_code"]] = by_department.get(e["department_code"], ZERO) + e["amount"]
        by_category[e["category_name"]] = by_category.get(e["category_name"], ZERO) + e["amount"]
    return {
        "expenses": items,
        "totals": {
            "total": sum((e["amount"] for e in items), ZERO),
            "by_department": by_department,
            "by_category": by_category,
        },
    }


def _expense_fields(body: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if not partial or "department_id" in body:
        fields["department_id"] = parse_uuid(body, "department_id")
    if not partial or "expense_category_id" in body:
        fields["expense_category_id"] = parse_uuid(body, "expense_category_id")
    if not partial or "amount" in body:
        fields["amount"] = parse_number(body, "amount", min_value=0)
    if not partial or "description" in body:
        fields["description"] = require_str(body, "description")
    if "payment_date" in body:
        fields["payment_date"] = parse_date(body, "payment_date", required=False)
    for f in ("vendor", "invoice_number"):
        if f in body:
            fields[f] = optional_str(body, f) or None
    return fields


def add_expense(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    fields = _expense_fields(body, partial=False)
    err = closed_period_error(year, month)
    if err:
        return err
    expense = create_expense(fiscal_year=year, fiscal_month=month, **fields)
    invalidate_pl_cache(year)
    # General expenses reach the ledger through proration
    if not expense["is_general"]:
        entry = ledger_service.expense_entry(
            ledger_service.new_transaction_id(),
            str(expense["id"]),
            str(expense["department_id"]),
            expense["amount"],
            expense["payment_date"] or date(year, month, 1),
            expense["description"],
        )
        try:
            ledger_service.create_entries([entry])
        except LedgerBatchError as exc:
            return 500, {"error": str(exc), "expense": expense}
    return 201, expense


def edit_expense(expense_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = require_any(_expense_fields(body, partial=True))
    expense = get_expense(expense_id)
    if not expense:
        return 404, {"error": "expense not found"}
    err = closed_period_error(expense["fiscal_year"], expense["fiscal_month"])
    if err:
        return err
    updated = update_expense(expense_id, **fields)
    invalidate_pl_cache(expense["fiscal_year"])
    return 200, updated


def remove_expense(expense_id: str) -> Tuple[int, Dict[str, Any]]:
    expense = get_expense(expense_id)
    if not expense:
        return 404, {"error": "expense not found"}
    err = closed_period_error(expense["fiscal_year"], expense["fiscal_month"])
    if err:
        return err
    delete_expense(expense_id)
    invalidate_pl_cache(expense["fiscal_year"])
    return 200, {"success": True}


# ---- proration ----


def plan_proration(year: int, month: int) -> Dict[str, Any]:
    """
    Allocation of every general expense of the period. Departments with no
    billed revenue get nothing unless no department billed at all, in which
    case every active department gets an equal share.
    """
    departments = {str(d["id"]): d for d in list_departments()}
    revenue = revenue_by_department(year, month)
    weights = {d_id: revenue.get(d_id, ZERO) for d_id in departments}
    total_revenue = sum(weights.values(), ZERO)

    plans = []
    for e in list_general_expenses(year, month):
        allocations = prorate_by_weight(e["amount"], weights)
        for a in allocations:
            dept = departments[a["department_id"]]
            a["department_code"] = dept["code"]
            a["department_name"] = dept["name"]
        plans.append({"expense": e, "allocations": allocations})
    return {
        "fiscal_year": year,
        "fiscal_month": month,
        "total_revenue": total_revenue,
        "revenue_by_department": {departments[k]["code"]: v for k, v in weights.items()},
        "equal_split": total_revenue == ZERO,
        "expenses": plans,
    }


def preview_proration(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    return 200, {"success": True, "preview": True, **plan_proration(year, month)}


def execute_proration(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    err = closed_period_error(year, month)
    if err:
        return err

    plan = plan_proration(year, month)
    if not plan["expenses"]:
        return 200, {"success": True, "message": "no general expenses to prorate", **plan}

    entry_date = date(year, month, 1)
    transaction_id = ledger_service.new_transaction_id()
    entries: List[Dict[str, Any]] = []
    for p in plan["expenses"]:
        e = p["expense"]
        replace_allocations(e["id"], p["allocations"])
        entries.extend(
            ledger_service.general_expense_entries(
                transaction_id, e["id"], e["payment_date"] or entry_date, e["description"], p["allocations"]
            )
        )
    try:
        written = ledger_service.create_entries(entries)
    except LedgerBatchError as exc:
        return 500, {"error": str(exc), "transaction_id": transaction_id}

    invalidate_pl_cache(year)
    log.info(
        "prorated %d general expenses for %s-%02d (%d ledger entries)",
        len(plan["expenses"]),
        year,
        month,
        len(written),
    )
    return 200, {
        "success": True,
        "transaction_id": transaction_id,
        "ledger_entries": len(written),
        **plan,
    }
