from typing import Any, Dict, Optional, Tuple

from agency_finance.models.period import (
    close_period,
    get_period,
    is_period_closed,
    list_periods,
    reopen_period,
)
from agency_finance.utils.logger import get_logger

log = get_logger(__name__)


def closed_period_error(year: int, month: int) -> Optional[Tuple[int, Dict[str, Any]]]:
    """(403, payload) when the period is closed, None when writes are allowed."""
    if is_period_closed(year, month):
        return 403, {
            "error": f"period {year}-{month:02d} is closed",
            "note": "an admin must reopen the period first",
        }
    return None


def close(year: int, month: int, user_id: Optional[str]) -> Tuple[int, Dict[str, Any]]:
    if is_period_closed(year, month):
        return 409, {"error": f"period {year}-{month:02d} is already closed"}
    period = close_period(year, month, user_id)
    log.info("period %s-%02d closed by %s", year, month, user_id)
    return 200, {"success": True, "period": period}


def reopen(year: int, month: int, user_id: Optional[str]) -> Tuple[int, Dict[str, Any]]:
    if not reopen_period(year, month, user_id):
        return 409, {"error": f"period {year}-{month:02d} is not closed"}
    log.warning("period %s-%02d reopened by %s", year, month, user_id)
    return 200, {"success": True, "period": get_period(year, month)}


def status(year: int, month: int) -> Dict[str, Any]:
    period = get_period(year, month)
    return {
        "fiscal_year": year,
        "fiscal_month": month,
        "is_closed": bool(period and period["is_closed"]),
        "period": period,
    }


def periods(year: Optional[int] = None):
    return list_periods(year)
