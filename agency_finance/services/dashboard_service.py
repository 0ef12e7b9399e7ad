from decimal import Decimal
from typing import Any, Dict, List

from agency_finance.models.billing import revenue_by_month
from agency_finance.models.expense import expenses_by_month_and_department
from agency_finance.models.payment import pending_total
from agency_finance.models.payroll import payroll_cost_by_month_and_department
from agency_finance.utils.fee_calculator import ZERO, round_cents, to_decimal


def _by_month(rows: List[Dict[str, Any]]) -> List[Decimal]:
    months = [ZERO] * 12
    for r in rows:
        months[r["fiscal_month"] - 1] += to_decimal(r["amount"])
    return months


def build_kpis(
    year: int,
    revenue_rows: List[Dict[str, Any]],
    expense_rows: List[Dict[str, Any]],
    payroll_rows: List[Dict[str, Any]],
    pending_payments: Any,
) -> Dict[str, Any]:
    revenue = _by_month(revenue_rows)
    expenses = _by_month(expense_rows)
    payroll = _by_month(payroll_rows)
    margin = [revenue[i] - expenses[i] - payroll[i] for i in range(12)]

    total_revenue = sum(revenue, ZERO)
    total_margin = sum(margin, ZERO)
    margin_pct = (total_margin / total_revenue * 100) if total_revenue else ZERO
    return {
        "year": year,
        "revenue": round_cents(total_revenue),
        "expenses": round_cents(sum(expenses, ZERO)),
        "payroll": round_cents(sum(payroll, ZERO)),
        "margin": round_cents(total_margin),
        "margin_percentage": round_cents(margin_pct),
        "pending_payments": round_cents(pending_payments),
        "monthly": {
            "revenue": [round_cents(v) for v in revenue],
            "expenses": [round_cents(v) for v in expenses],
            "payroll": [round_cents(v) for v in payroll],
            "margin": [round_cents(v) for v in margin],
        },
    }


def kpis(year: int) -> Dict[str, Any]:
    return build_kpis(
        year,
        revenue_by_month(year),
        expenses_by_month_and_department(year),
        payroll_cost_by_month_and_department(year),
        pending_total(year),
    )
