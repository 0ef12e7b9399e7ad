from typing import Any, Dict, Tuple

from agency_finance.models.client import get_client
from agency_finance.models.payment import PAYMENT_STATUSES, create_payment, list_schedule, set_status
from agency_finance.utils.fee_calculator import ZERO
from agency_finance.utils.validators import (
    optional_str,
    parse_choice,
    parse_date,
    parse_number,
    parse_period,
    parse_uuid,
)


def schedule(year: int, month: int) -> Dict[str, Any]:
    items = list_schedule(year, month)
    by_status = {s: ZERO for s in PAYMENT_STATUSES}
    for p in items:
        by_status[p["status"]] += p["amount"]
    return {"payments": items, "totals": by_status}


def add_payment(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    client_id = parse_uuid(body, "client_id")
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    due_date = parse_date(body, "due_date")
    amount = parse_number(body, "amount", min_value=0)
    if not get_client(client_id):
        return 404, {"error": "client not found"}
    payment = create_payment(client_id, year, month, due_date, amount, optional_str(body, "notes") or None)
    return 201, payment


def change_status(payment_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    status = parse_choice(body, "status", PAYMENT_STATUSES)
    if status is None:
        raise ValueError("status is required")
    payment = set_status(payment_id, status, optional_str(body, "notes"))
    if not payment:
        return 404, {"error": "payment not found"}
    return 200, payment
