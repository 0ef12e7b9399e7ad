"""
Commissions in both directions: partner commissions we pay on the revenue
of the clients they brought, and platform commissions we receive.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from agency_finance.models import partner as partner_model
from agency_finance.models import platform_commission as platform_model
from agency_finance.models.catalog import GENERAL_DEPARTMENT_CODE, get_department_by_code
from agency_finance.services import ledger_service
from agency_finance.services.ledger_service import LedgerBatchError
from agency_finance.utils.fee_calculator import HUNDRED, ZERO, round_cents, to_decimal
from agency_finance.utils.logger import get_logger
from agency_finance.utils.validators import (
    optional_str,
    parse_bool,
    parse_choice,
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

PARTNER_STATUSES = ("pending", "paid", "cancelled")
PLATFORM_STATUSES = ("pending", "received", "cancelled")
PAYMENT_METHODS = ("bank_transfer", "paypal", "other")
REVENUE_COLUMNS = ("immedia_total", "imcontent_total", "immoralia_total", "immoral_general_total")


def client_revenue(row: Dict[str, Any]) -> Any:
    return sum((to_decimal(row.get(c)) for c in REVENUE_COLUMNS), ZERO)


def commission_amount(revenue: Any, pct: Any) -> Any:
    return round_cents(to_decimal(revenue) * to_decimal(pct) / HUNDRED)


def _payment_note(prefix: str, reference: Optional[str]) -> str:
    return f"{prefix} - Ref: {reference}" if reference else prefix


def _ledger_department(body: Dict[str, Any]) -> str:
    department_id = parse_uuid(body, "department_id", required=False)
    if department_id:
        return department_id
    general = get_department_by_code(GENERAL_DEPARTMENT_CODE)
    if not general:
        raise ValueError("department_id is required")
    return str(general["id"])


def _book(commission_id: str, department_id: str, amount, when: date, kind: str, description: str):
    entry = ledger_service.commission_entry(
        ledger_service.new_transaction_id(), commission_id, department_id, amount, when, kind, description
    )
    if entry["amount"] == ZERO:
        return None
    try:
        return ledger_service.create_entries([entry])[0]
    except LedgerBatchError as exc:
        log.error("commission %s not booked: %s", commission_id, exc)
        raise


# ---- partners ----


def partners(is_active=None):
    return partner_model.list_partners(is_active)


def add_partner(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = {
        "name": require_str(body, "name"),
        "email": parse_email(body) if body.get("email") else None,
        "phone": optional_str(body, "phone") or None,
        "default_commission_percentage": parse_percentage(body, "default_commission_percentage", required=False),
        "payment_method": parse_choice(body, "payment_method", PAYMENT_METHODS),
        "bank_details": optional_str(body, "bank_details") or None,
        "notes": optional_str(body, "notes") or None,
    }
    return 201, partner_model.create_partner(**fields)


def assign_client(partner_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    client_id = parse_uuid(body, "client_id")
    pct = parse_percentage(body, "commission_percentage", required=False)
    effective_from = parse_date(body, "effective_from", default=date.today())
    partner = partner_model.get_partner(partner_id)
    if not partner:
        return 404, {"error": "partner not found"}
    if pct is None:
        pct = partner["default_commission_percentage"]
    row = partner_model.assign_client(
        partner_id, client_id, pct, effective_from, optional_str(body, "notes") or None
    )
    return 201, row


def calculate_partner_commissions(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    """
    Commission per active assignment on the client's billed revenue of the
    period. Clients without a billing record are skipped. save=true stores
    positive commissions as pending.
    """
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    save = parse_bool(body, "save", default=False)

    results: List[Dict[str, Any]] = []
    skipped = 0
    for row in partner_model.list_active_assignments_with_revenue(year, month):
        if row["billing_id"] is None:
            skipped += 1
            continue
        revenue = client_revenue(row)
        amount = commission_amount(revenue, row["commission_percentage"])
        item = {
            "partner_id": str(row["partner_id"]),
            "partner_name": row["partner_name"],
            "client_id": str(row["client_id"]),
            "client_name": row["client_name"],
            "client_revenue": revenue,
            "commission_percentage": row["commission_percentage"],
            "commission_amount": amount,
            "saved": False,
        }
        if save and amount > ZERO:
            stored = partner_model.save_pending_commission(
                row["partner_id"], row["client_id"], year, month, revenue,
                row["commission_percentage"], amount,
            )
            item["saved"] = stored is not None
            item["id"] = str(stored["id"]) if stored else None
        results.append(item)

    total = sum((r["commission_amount"] for r in results), ZERO)
    log.info("partner commissions %s-%02d: %d computed, %d skipped", year, month, len(results), skipped)
    return 200, {
        "success": True,
        "fiscal_year": year,
        "fiscal_month": month,
        "saved": save,
        "commissions": results,
        "skipped_without_billing": skipped,
        "total_commission": total,
    }


def partner_commissions(year: int, month: int, partner_id=None, payment_status=None) -> Dict[str, Any]:
    items = partner_model.list_commissions(year, month, partner_id, payment_status)
    by_partner: Dict[str, Dict[str, Any]] = {}
    for c in items:
        p = by_partner.setdefault(
            str(c["partner_id"]),
            {"partner_name": c["partner_name"], "total": ZERO, "pending": ZERO, "paid": ZERO},
        )
        p["total"] += c["commission_amount"]
        if c["payment_status"] in ("pending", "paid"):
            p[c["payment_status"]] += c["commission_amount"]
    return {
        "commissions": items,
        "by_partner": by_partner,
        "total": sum((c["commission_amount"] for c in items), ZERO),
    }


def edit_partner_commission(commission_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    updates: Dict[str, Any] = {}
    if "commission_percentage" in body:
        updates["commission_percentage"] = parse_percentage(body, "commission_percentage")
    if "commission_amount" in body:
        updates["commission_amount"] = parse_number(body, "commission_amount", min_value=0)
    if "payment_status" in body:
        updates["payment_status"] = parse_choice(body, "payment_status", PARTNER_STATUSES)
    if "notes" in body:
        updates["notes"] = optional_str(body, "notes")
    require_any(updates)

    current = partner_model.get_commission(commission_id)
    if not current:
        return 404, {"error": "commission not found"}
    if "commission_percentage" in updates and "commission_amount" not in updates:
        updates["commission_amount"] = commission_amount(
            current["client_revenue"], updates["commission_percentage"]
        )
    return 200, partner_model.update_commission(commission_id, **updates)


def mark_partner_paid(commission_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    payment_date = parse_date(body, "payment_date", default=date.today())
    reference = optional_str(body, "payment_reference")
    department_id = _ledger_department(body)

    current = partner_model.get_commission(commission_id)
    if not current:
        return 404, {"error": "commission not found"}
    if current["payment_status"] == "paid":
        return 409, {"error": "commission already paid"}

    # Ledger first: the status only changes once the entry is written
    try:
        entry = _book(
            commission_id,
            department_id,
            current["commission_amount"],
            payment_date,
            "paid",
            f"Commission paid to {current['partner_name']} ({current['client_name']})",
        )
    except LedgerBatchError as exc:
        return 500, {"error": str(exc), "commission": current}
    updated = partner_model.update_commission(
        commission_id,
        payment_status="paid",
        payment_date=payment_date,
        notes=_payment_note("Paid", reference),
    )
    return 200, {"success": True, "commission": updated, "ledger_entry": entry}


# ---- platforms ----


def platforms(is_active=None):
    return platform_model.list_platforms(is_active)


def add_platform(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = {
        "name": require_str(body, "name"),
        "platform_type": optional_str(body, "platform_type") or None,
        "default_commission_percentage": parse_percentage(body, "default_commission_percentage", required=False),
        "payment_frequency": optional_str(body, "payment_frequency") or None,
        "contact_email": parse_email(body, "contact_email") if body.get("contact_email") else None,
        "notes": optional_str(body, "notes") or None,
    }
    return 201, platform_model.create_platform(**fields)


def register_platform_commission(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    platform_id = parse_uuid(body, "platform_id")
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    spending = parse_number(body, "total_client_spending", default=0, min_value=0)
    pct = parse_percentage(body, "commission_percentage", required=False)
    earned = parse_number(body, "commission_earned", required=False, min_value=0)
    if earned is None:
        if pct is None:
            raise ValueError("commission_earned or commission_percentage is required")
        earned = commission_amount(spending, pct)

    row = platform_model.create_commission(
        platform_id=platform_id,
        fiscal_year=year,
        fiscal_month=month,
        total_client_spending=spending,
        commission_percentage=pct,
        commission_earned=earned,
        payment_status="pending",
        notes=optional_str(body, "notes") or None,
    )
    return 201, row


def platform_commissions(year: int, month: int, platform_id=None, payment_status=None) -> Dict[str, Any]:
    items = platform_model.list_commissions(year, month, platform_id, payment_status)
    by_platform: Dict[str, Dict[str, Any]] = {}
    for c in items:
        p = by_platform.setdefault(
            str(c["platform_id"]),
            {"platform_name": c["platform_name"], "total": ZERO, "pending": ZERO, "received": ZERO},
        )
        p["total"] += c["commission_earned"]
        if c["payment_status"] in ("pending", "received"):
            p[c["payment_status"]] += c["commission_earned"]
    return {
        "commissions": items,
        "by_platform": by_platform,
        "total": sum((c["commission_earned"] for c in items), ZERO),
    }


def edit_platform_commission(commission_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    updates: Dict[str, Any] = {}
    if "total_client_spending" in body:
        updates["total_client_spending"] = parse_number(body, "total_client_spending", min_value=0)
    if "commission_percentage" in body:
        updates["commission_percentage"] = parse_percentage(body, "commission_percentage")
    if "commission_earned" in body:
        updates["commission_earned"] = parse_number(body, "commission_earned", min_value=0)
    if "payment_status" in body:
        updates["payment_status"] = parse_choice(body, "payment_status", PLATFORM_STATUSES)
    if "notes" in body:
        updates["notes"] = optional_str(body, "notes")
    require_any(updates)
    row = platform_model.update_commission(commission_id, **updates)
    if not row:
        return 404, {"error": "commission not found"}
    return 200, row


def mark_platform_received(commission_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    payment_date = parse_date(body, "payment_date", default=date.today())
    reference = optional_str(body, "payment_reference")
    department_id = _ledger_department(body)

    current = platform_model.get_commission(commission_id)
    if not current:
        return 404, {"error": "commission not found"}
    if current["payment_status"] == "received":
        return 409, {"error": "commission already received"}

    try:
        entry = _book(
            commission_id,
            department_id,
            current["commission_earned"],
            payment_date,
            "received",
            f"Commission received from {current['platform_name']}",
        )
    except LedgerBatchError as exc:
        return 500, {"error": str(exc), "commission": current}
    updated = platform_model.update_commission(
        commission_id,
        payment_status="received",
        payment_date=payment_date,
        notes=_payment_note("Received", reference),
    )
    return 200, {"success": True, "commission": updated, "ledger_entry": entry}
