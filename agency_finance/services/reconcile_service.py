"""
Re-sum billing_details into the aggregate columns of their monthly_billing row.

  fee_paid              = lines of the PAID_MEDIA_STRATEGY service
  <department>_total    = lines billed by that department
  grand_total           = every line

Best effort: a record that fails to update is logged and the run goes on.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from psycopg2 import Error as DatabaseError

from agency_finance.models.billing import list_billing_for_year, list_details, update_billing
from agency_finance.models.catalog import STRATEGY_SERVICE_CODE
from agency_finance.models.period import is_period_closed
from agency_finance.utils.fee_calculator import ZERO, to_decimal
from agency_finance.utils.logger import get_logger

log = get_logger(__name__)

DEPARTMENT_COLUMNS = {
    "IMMED": "immedia_total",
    "IMCONT": "imcontent_total",
    "IMMOR": "immoralia_total",
    "IMMORAL": "immoral_general_total",
}
TOTAL_COLUMNS = ("fee_paid", *DEPARTMENT_COLUMNS.values(), "grand_total")
TOLERANCE = Decimal("0.01")


def compute_totals(details: Iterable[Dict[str, Any]]) -> Dict[str, Decimal]:
    totals = {col: ZERO for col in TOTAL_COLUMNS}
    for d in details:
        amount = to_decimal(d.get("amount"))
        if d.get("service_code") == STRATEGY_SERVICE_CODE:
            totals["fee_paid"] += amount
        col = DEPARTMENT_COLUMNS.get((d.get("department_code") or "").upper())
        if col:
            totals[col] += amount
        totals["grand_total"] += amount
    return totals


def changed_totals(billing: Dict[str, Any], totals: Dict[str, Decimal]) -> Dict[str, Decimal]:
    """Only the columns that drifted by more than a cent."""
    return {
        col: value
        for col, value in totals.items()
        if abs(value - to_decimal(billing.get(col))) > TOLERANCE
    }


def _reconcile_records(billings: List[Dict[str, Any]]) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "checked": len(billings),
        "updated": 0,
        "skipped": 0,
        "failed": 0,
        "changes": [],
    }
    by_billing: Dict[str, List[Dict[str, Any]]] = {}
    for d in list_details([b["id"] for b in billings]):
        by_billing.setdefault(str(d["monthly_billing_id"]), []).append(d)

    for b in billings:
        details = by_billing.get(str(b["id"]))
        if not details:
            summary["skipped"] += 1
            continue
        changes = changed_totals(b, compute_totals(details))
        if not changes:
            continue
        for col, new in changes.items():
            log.info(
                "billing %s (%s-%02d) %s: %s -> %s",
                b["id"],
                b["fiscal_year"],
                b["fiscal_month"],
                col,
                b.get(col),
                new,
            )
        try:
            update_billing(b["id"], **changes)
        except DatabaseError as e:
            log.error("billing %s update failed: %s", b["id"], e)
            summary["failed"] += 1
            continue
        summary["updated"] += 1
        summary["changes"].append(
            {
                "billing_id": str(b["id"]),
                "fiscal_month": b["fiscal_month"],
                "old": {col: b.get(col) for col in changes},
                "new": changes,
            }
        )
    return summary


def reconcile_period(year: int, month: Optional[int] = None) -> Dict[str, Any]:
    """
    Reconcile every billing record of a fiscal year, or of one month.
    Records of closed months are left untouched.
    """
    billings = list_billing_for_year(year, month)
    closed = {m for m in {b["fiscal_month"] for b in billings} if is_period_closed(year, m)}
    if closed:
        log.info("skipping closed months of %s: %s", year, sorted(closed))
    open_billings = [b for b in billings if b["fiscal_month"] not in closed]
    log.info("reconciling %d billing records for %s/%s", len(open_billings), year, month or "*")
    summary = _reconcile_records(open_billings)
    summary.update(
        {
            "fiscal_year": year,
            "fiscal_month": month,
            "closed_skipped": len(billings) - len(open_billings),
        }
    )
    log.info(
        "reconcile done: updated=%d skipped=%d failed=%d",
        summary["updated"],
        summary["skipped"],
        summary["failed"],
    )
    return summary


def reconcile_billing(billing: Dict[str, Any]) -> Dict[str, Any]:
    """Reconcile a single record (after a cell or detail edit)."""
    return _reconcile_records([billing])
