"""
Employees, salary history and monthly payroll.

A payroll row's total_company_cost is shared across departments by its
splits: the employee's configured allocation, 100% on the primary
department when there is none, or a manual split. Splits are posted to the
ledger as negative payroll entries.
"""

import time
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from agency_finance.models.catalog import list_departments
from agency_finance.models.employee import (
    change_salary,
    create_employee,
    delete_employee,
    get_employee,
    list_allocations,
    list_employees,
    list_salary_history,
    update_employee,
)
from agency_finance.models.ledger import open_entries
from agency_finance.models.payroll import (
    create_payroll,
    get_payroll,
    list_payroll_for_period,
    list_splits,
    replace_splits,
    update_payroll,
)
from agency_finance.services import ledger_service
from agency_finance.services.ledger_service import LedgerBatchError
from agency_finance.services.period_service import closed_period_error
from agency_finance.services.pl_service import invalidate_pl_cache
from agency_finance.utils.fee_calculator import HUNDRED, ZERO, round_cents, to_decimal
from agency_finance.utils.logger import get_logger
from agency_finance.utils.splits import allocate, splits_sum_to_100
from agency_finance.utils.validators import (
    optional_str,
    parse_bool,
    parse_date,
    parse_email,
    parse_number,
    parse_percentage,
    parse_period,
    parse_uuid,
    require_any,
    require_str,
)

log = get_logger(__name__)


def generate_employee_code(first_name: str, last_name: str, now: Optional[float] = None) -> str:
    """EMP-<initials><last 6 digits of the epoch in ms>."""
    initials = ((first_name or "X")[0] + (last_name or "X")[0]).upper()
    millis = int((now if now is not None else time.time()) * 1000)
    return f"EMP-{initials}{str(millis)[-6:]}"


# ---- employees ----


def employees(is_active=None, department_id=None) -> List[Dict[str, Any]]:
    return list_employees(is_active, department_id)


def employee_with_history(employee_id: str) -> Tuple[int, Dict[str, Any]]:
    employee = get_employee(employee_id)
    if not employee:
        return 404, {"error": "employee not found"}
    employee["salary_history"] = list_salary_history(employee_id)
    employee["allocations"] = list_allocations(employee_id)
    return 200, employee


def add_employee(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    first_name = require_str(body, "first_name")
    last_name = require_str(body, "last_name")
    email = parse_email(body)
    hire_date = parse_date(body, "hire_date")
    salary = parse_number(body, "current_salary", min_value=0)
    position = require_str(body, "position")
    department_id = parse_uuid(body, "primary_department_id")
    code = optional_str(body, "employee_code") or generate_employee_code(first_name, last_name)

    employee = create_employee(
        code,
        first_name,
        last_name,
        email,
        hire_date,
        salary,
        position,
        department_id,
        currency=optional_str(body, "currency") or "EUR",
        is_active=parse_bool(body, "is_active", default=True),
    )
    log.info("employee %s created", code)
    return 201, employee


def edit_employee(employee_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    updates: Dict[str, Any] = {}
    for f in ("employee_code", "first_name", "last_name", "position", "currency"):
        if f in body:
            updates[f] = require_str(body, f)
    if "email" in body:
        updates["email"] = parse_email(body)
    if "primary_department_id" in body:
        updates["primary_department_id"] = parse_uuid(body, "primary_department_id")
    if "is_active" in body:
        updates["is_active"] = parse_bool(body, "is_active")
    require_any(updates)
    employee = update_employee(employee_id, **updates)
    if not employee:
        return 404, {"error": "employee not found"}
    return 200, employee


def record_salary_change(
    employee_id: str, body: Dict[str, Any], approved_by: Optional[str] = None
) -> Tuple[int, Dict[str, Any]]:
    new_salary = parse_number(body, "new_salary", min_value=0)
    effective_from = parse_date(body, "effective_from", default=date.today())
    reason = optional_str(body, "change_reason") or None
    history = change_salary(employee_id, new_salary, effective_from, reason, approved_by)
    if not history:
        return 404, {"error": "employee not found"}
    return 201, {"success": True, "salary_change": history}


def deactivate_employee(employee_id: str) -> Tuple[int, Dict[str, Any]]:
    if not update_employee(employee_id, is_active=False):
        return 404, {"error": "employee not found"}
    return 200, {"success": True}


def purge_employee(employee_id: str) -> Tuple[int, Dict[str, Any]]:
    if not delete_employee(employee_id):
        return 404, {"error": "employee not found"}
    log.warning("employee %s permanently deleted", employee_id)
    return 200, {"success": True}


# ---- payroll ----


def default_splits(employee: Dict[str, Any]) -> List[Dict[str, Any]]:
    allocations = list_allocations(employee["id"])
    if allocations and splits_sum_to_100(allocations):
        return [
            {"department_id": str(a["department_id"]), "split_percentage": a["split_percentage"]}
            for a in allocations
        ]
    return [{"department_id": str(employee["primary_department_id"]), "split_percentage": HUNDRED}]


def _post_to_ledger(payroll: Dict[str, Any], splits: List[Dict[str, Any]]) -> Optional[Tuple[int, Dict[str, Any]]]:
    """
    Post the payroll cost by department. Entries from an earlier split of the
    same payroll are reversed in the same transaction; the open entries of a
    payroll net to -total_company_cost.
    """
    entry_date = payroll["payment_date"] or date(payroll["fiscal_year"], payroll["fiscal_month"], 1)
    transaction_id = ledger_service.new_transaction_id()
    entries = ledger_service.reversal_entries(
        transaction_id, "payroll", str(payroll["id"]), open_entries("payroll", str(payroll["id"]))
    )
    entries += ledger_service.payroll_entries(
        transaction_id,
        str(payroll["employee_id"]),
        str(payroll["id"]),
        entry_date,
        splits,
    )
    try:
        ledger_service.create_entries(entries)
    except LedgerBatchError as exc:
        return 500, {"error": str(exc), "payroll": payroll}
    return None


def _payroll_amounts(body: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if not partial or "gross_salary" in body:
        fields["gross_salary"] = parse_number(body, "gross_salary", min_value=0)
    for f in ("social_security_company", "other_benefits"):
        if not partial or f in body:
            fields[f] = parse_number(body, f, default=0, min_value=0)
    if "total_company_cost" in body:
        fields["total_company_cost"] = parse_number(body, "total_company_cost", min_value=0)
    elif not partial:
        fields["total_company_cost"] = (
            fields["gross_salary"] + fields["social_security_company"] + fields["other_benefits"]
        )
    if "payment_date" in body:
        fields["payment_date"] = parse_date(body, "payment_date", required=False)
    if "notes" in body:
        fields["notes"] = optional_str(body, "notes")
    return fields


def add_payroll(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    employee_id = parse_uuid(body, "employee_id")
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    fields = _payroll_amounts(body, partial=False)
    auto_split = parse_bool(body, "auto_split", default=True)

    err = closed_period_error(year, month)
    if err:
        return err
    employee = get_employee(employee_id)
    if not employee:
        return 404, {"error": "employee not found"}

    payroll = create_payroll(employee_id=employee_id, fiscal_year=year, fiscal_month=month, **fields)
    splits: List[Dict[str, Any]] = []
    if auto_split:
        splits = replace_splits(payroll["id"], allocate(payroll["total_company_cost"], default_splits(employee)))
        err = _post_to_ledger(payroll, splits)
        if err:
            return err
    invalidate_pl_cache(year)
    return 201, {"success": True, "payroll": payroll, "splits": splits}


def payroll_for_period(year: int, month: int) -> Dict[str, Any]:
    items = list_payroll_for_period(year, month)
    splits_by_payroll: Dict[str, List[Dict[str, Any]]] = {}
    for s in list_splits([p["id"] for p in items]):
        splits_by_payroll.setdefault(str(s["payroll_id"]), []).append(s)

    departments = {str(d["id"]): d["code"] for d in list_departments()}
    by_department: Dict[str, Any] = {}
    totals = {k: ZERO for k in ("gross_salary", "social_security_company", "other_benefits", "total_company_cost")}
    for p in items:
        for k in totals:
            totals[k] += to_decimal(p[k])
        p["splits"] = splits_by_payroll.get(str(p["id"]), [])
        shares = p["splits"] or [
            {"department_id": p["primary_department_id"], "split_amount": p["total_company_cost"]}
        ]
        for s in shares:
            code = departments.get(str(s["department_id"]), str(s["department_id"]))
            by_department[code] = by_department.get(code, ZERO) + to_decimal(s["split_amount"])
    return {
        "payroll": items,
        "totals": {**totals, "employees": len(items)},
        "by_department": by_department,
    }


def edit_payroll(payroll_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = require_any(_payroll_amounts(body, partial=True))
    payroll = get_payroll(payroll_id)
    if not payroll:
        return 404, {"error": "payroll not found"}
    err = closed_period_error(payroll["fiscal_year"], payroll["fiscal_month"])
    if err:
        return err
    updated = update_payroll(payroll_id, **fields)
    splits = list_splits([payroll_id])
    if splits and to_decimal(updated["total_company_cost"]) != to_decimal(payroll["total_company_cost"]):
        shares = [
            {"department_id": str(s["department_id"]), "split_percentage": s["split_percentage"]}
            for s in splits
        ]
        saved = replace_splits(payroll_id, allocate(updated["total_company_cost"], shares))
        err = _post_to_ledger(updated, saved)
        if err:
            return err
    invalidate_pl_cache(payroll["fiscal_year"])
    return 200, updated


def set_manual_splits(payroll_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    raw = body.get("splits")
    if not isinstance(raw, list) or not raw:
        raise ValueError("splits are required")
    splits = [
        {
            "department_id": parse_uuid(s, "department_id"),
            "split_percentage": round_cents(parse_percentage(s, "split_percentage")),
        }
        for s in raw
    ]
    if len({s["department_id"] for s in splits}) != len(splits):
        raise ValueError("each department can only appear once")
    if not splits_sum_to_100(splits):
        return 422, {"error": "payroll splits must sum to 100%"}

    payroll = get_payroll(payroll_id)
    if not payroll:
        return 404, {"error": "payroll not found"}
    err = closed_period_error(payroll["fiscal_year"], payroll["fiscal_month"])
    if err:
        return err

    saved = replace_splits(payroll_id, allocate(payroll["total_company_cost"], splits))
    err = _post_to_ledger(payroll, saved)
    if err:
        return err
    invalidate_pl_cache(payroll["fiscal_year"])
    return 200, {"success": True, "payroll_id": payroll_id, "splits": saved}
