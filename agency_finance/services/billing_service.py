"""
Monthly billing: the per-period matrix of clients x catalog services.

Reading the matrix first syncs every billing record of the period with the
actual ad investment and recomputes its fee from the client's fee config.
A record flagged is_manual_override keeps its fee_paid.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from prometheus_client import Counter

from agency_finance.models.ad_investment import actuals_by_client
from agency_finance.models.billing import (
    get_billing,
    get_billing_for_period,
    get_detail,
    get_detail_for_service,
    get_or_create_billing,
    list_billing_for_period,
    list_details,
    update_billing,
    upsert_billing_from_calculation,
    upsert_service_line,
    create_detail as insert_detail,
    delete_detail as remove_detail,
    update_detail as modify_detail,
)
from agency_finance.models.catalog import (
    find_vertical,
    get_service,
    get_strategy_service,
    list_services,
)
from agency_finance.models.client import get_client, list_clients, update_client
from agency_finance.models.contract import (
    active_contract_end_dates,
    latest_active_contract,
    set_contract_end_date,
)
from agency_finance.models.period import is_period_closed
from agency_finance.realtime import broadcast_billing_updated
from agency_finance.services.period_service import closed_period_error
from agency_finance.services.pl_service import invalidate_pl_cache
from agency_finance.services.reconcile_service import reconcile_billing
from agency_finance.utils.fee_calculator import (
    HUNDRED,
    ZERO,
    calculate_fee,
    get_platform_costs,
    round_currency,
    to_decimal,
)
from agency_finance.utils.logger import get_logger
from agency_finance.utils.validators import (
    parse_bool,
    parse_choice,
    parse_int,
    parse_number,
    parse_period,
    parse_uuid,
    require_any,
    require_str,
)

log = get_logger(__name__)

MATRIX_SYNCS = Counter("billing_matrix_syncs_total", "Billing matrix reads that synced a period")
MATRIX_SAVES = Counter("billing_matrix_saves_total", "Billing matrix cell edits", ["field"])

DEFAULT_DUE_DAY = 15
MATRIX_FIELDS = ("service_amount", "investment", "fee_pct", "platform_count", "vertical", "vencimiento")
# Records created by a first cell edit
NEW_RECORD_DEFAULTS = {"total_ad_investment": 0, "applied_fee_percentage": 10, "platform_count": 1}

PATCHABLE = {
    "applied_fee_percentage": {"min_value": 0, "max_value": 100},
    "platform_costs": {"min_value": 0},
    "fee_paid": {"min_value": 0},
    "immedia_total": {"min_value": 0},
    "imcontent_total": {"min_value": 0},
    "immoralia_total": {"min_value": 0},
    "immoral_general_total": {"min_value": 0},
}


def compute_billing(
    investment: Any,
    platform_count: Any,
    fee_config: Optional[Dict[str, Any]],
    fee_pct: Any = None,
) -> Dict[str, Any]:
    """
    Fee of one billing month. Platform costs only apply to an active month
    (investment > 0 or more than one platform). fee_pct, when given,
    replaces the percentage from the config.
    """
    inv = to_decimal(investment)
    count = max(1, int(platform_count or 1))
    active = inv > 0 or count > 1
    pct, plat, fee = calculate_fee(inv, fee_config, count, include_platform_costs=active)
    if fee_pct is not None:
        pct = to_decimal(fee_pct)
        fee = inv * pct / HUNDRED + plat
    return {
        "investment": inv,
        "platform_count": count,
        "fee_percentage": pct,
        "platform_costs": round_currency(plat),
        "fee": round_currency(fee),
    }


def _sync_record(
    record: Dict[str, Any],
    actual: Optional[Dict[str, Any]],
    fee_config: Optional[Dict[str, Any]],
) -> Tuple[Dict[str, Any], Decimal]:
    """
    Returns (column updates, fee to show on the strategy line) for one record.
    """
    updates: Dict[str, Any] = {}
    real_inv = actual["total_spend"] if actual else ZERO
    if to_decimal(record.get("total_actual_investment")) != real_inv:
        updates["total_actual_investment"] = real_inv

    count = int(record.get("platform_count") or 1)
    if actual:
        new_count = actual["platforms"] if actual["platforms"] > 0 else 1
        if new_count != count:
            updates["platform_count"] = new_count
            count = new_count

    calc = compute_billing(real_inv, count, fee_config)
    if abs(to_decimal(record.get("applied_fee_percentage")) - calc["fee_percentage"]) > Decimal("0.001"):
        updates["applied_fee_percentage"] = calc["fee_percentage"]
    if to_decimal(record.get("platform_costs")) != calc["platform_costs"]:
        updates["platform_costs"] = calc["platform_costs"]

    if record.get("is_manual_override"):
        fee = round_currency(record.get("fee_paid"))
    else:
        fee = calc["fee"]
        if abs(to_decimal(record.get("fee_paid")) - fee) > Decimal("0.01"):
            updates["fee_paid"] = fee
    return updates, fee


def sync_period(year: int, month: int, clients: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Bring every billing record of the period in line with the actual investment.
    A closed period is returned as stored.
    """
    records = list_billing_for_period(year, month)
    if is_period_closed(year, month):
        return records
    actuals = actuals_by_client(year, month)
    configs = {str(c["id"]): c.get("fee_config") for c in clients}
    strategy = get_strategy_service()

    synced = []
    for r in records:
        client_id = str(r["client_id"])
        if client_id not in configs:
            synced.append(r)
            continue
        updates, fee = _sync_record(r, actuals.get(client_id), configs[client_id])
        if updates:
            r = update_billing(r["id"], **updates) or r
        if strategy:
            upsert_service_line(r["id"], strategy, fee)
        reconcile_billing(r)
        synced.append(get_billing(r["id"]) or r)
    MATRIX_SYNCS.inc()
    return synced


def _due_day(end_date: Optional[date]) -> int:
    return end_date.day if end_date else DEFAULT_DUE_DAY


def get_matrix(year: int, month: int) -> Dict[str, Any]:
    clients = list_clients()
    records = {str(r["client_id"]): r for r in sync_period(year, month, clients)}
    services = list_services()
    details_by_billing: Dict[str, Dict[str, Decimal]] = {}
    for d in list_details([r["id"] for r in records.values()]):
        if d["service_id"] is None:
            continue
        details_by_billing.setdefault(str(d["monthly_billing_id"]), {})[str(d["service_id"])] = d["amount"]
    end_dates = active_contract_end_dates()

    rows = []
    for c in clients:
        b = records.get(str(c["id"]))
        amounts = details_by_billing.get(str(b["id"]), {}) if b else {}
        rows.append(
            {
                "client_id": str(c["id"]),
                "client_name": c["name"],
                "vertical": c.get("vertical_name"),
                "vencimiento": _due_day(end_dates.get(str(c["id"]))),
                "fee_config": c.get("fee_config"),
                "billing_id": str(b["id"]) if b else None,
                "metadata": {
                    "investment": b["total_actual_investment"] if b else 0,
                    "planned_investment": b["total_ad_investment"] if b else 0,
                    "fee_pct": b["applied_fee_percentage"] if b else 0,
                    "platform_count": b["platform_count"] if b else 1,
                    "platform_costs": b["platform_costs"] if b else 0,
                    "fee_paid": b["fee_paid"] if b else 0,
                    "is_manual_override": bool(b and b["is_manual_override"]),
                    "immedia_total": b["immedia_total"] if b else 0,
                    "imcontent_total": b["imcontent_total"] if b else 0,
                    "immoralia_total": b["immoralia_total"] if b else 0,
                    "immoral_general_total": b["immoral_general_total"] if b else 0,
                    "grand_total": b["grand_total"] if b else 0,
                },
                "services": {str(s["id"]): amounts.get(str(s["id"]), 0) for s in services},
            }
        )
    return {"year": year, "month": month, "columns": services, "rows": rows}


# ---- cell edits ----


def _cell_amount(value: Any) -> Optional[Decimal]:
    """None for an empty or zero cell."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    amount = parse_number({"value": value}, "value", min_value=0)
    return amount if amount != ZERO else None


def _save_service_amount(billing: Dict[str, Any], service_id: Optional[str], value: Any):
    if not service_id:
        raise ValueError("service_id is required for service_amount")
    service = get_service(service_id)
    if not service:
        return 404, {"error": "service not found"}
    amount = _cell_amount(value)

    strategy = get_strategy_service()
    if strategy and str(strategy["id"]) == str(service["id"]):
        update_billing(billing["id"], is_manual_override=True, fee_paid=amount or ZERO)

    existing = get_detail_for_service(billing["id"], service["id"])
    if amount is None:
        if existing:
            remove_detail(existing["id"])
    elif existing:
        modify_detail(existing["id"], amount=amount)
    else:
        insert_detail(
            billing["id"], service["department_id"], service["name"], amount, service_id=service["id"]
        )
    return None


def _save_fee_inputs(billing: Dict[str, Any], client: Dict[str, Any], field: str, value: Any):
    if field == "investment":
        inv = parse_number({"investment": value}, "investment", min_value=0)
    else:
        inv = to_decimal(billing.get("total_actual_investment"))
    if field == "platform_count":
        count = parse_int({"platform_count": value}, "platform_count", min_value=1)
    else:
        count = int(billing.get("platform_count") or 1)

    if field == "fee_pct":
        pct = parse_number({"fee_pct": value}, "fee_pct", min_value=0, max_value=100)
    elif billing.get("is_manual_override"):
        pct = billing.get("applied_fee_percentage")
    else:
        pct = None

    calc = compute_billing(inv, count, client.get("fee_config"), fee_pct=pct)
    updates: Dict[str, Any] = {
        "applied_fee_percentage": calc["fee_percentage"],
        "platform_costs": calc["platform_costs"],
        "fee_paid": calc["fee"],
    }
    if field == "investment":
        updates["total_actual_investment"] = inv
    if field == "platform_count":
        updates["platform_count"] = calc["platform_count"]
    if field in ("investment", "fee_pct"):
        updates["is_manual_override"] = True
    update_billing(billing["id"], **updates)

    strategy = get_strategy_service()
    if strategy:
        upsert_service_line(billing["id"], strategy, calc["fee"])
    return None


def _save_vertical(client: Dict[str, Any], value: Any):
    vertical = find_vertical(str(value or "").strip())
    if not vertical:
        return 404, {"error": f"vertical not found: {value}"}
    update_client(client["id"], vertical_id=vertical["id"])
    return None


def _save_due_day(client: Dict[str, Any], value: Any):
    day = int(parse_number({"vencimiento": value}, "vencimiento", min_value=1, max_value=31))
    contract = latest_active_contract(client["id"])
    if not contract:
        return 404, {"error": "client has no active contract"}
    base = contract.get("effective_to") or date.today()
    last_day = calendar.monthrange(base.year, base.month)[1]
    set_contract_end_date(contract["id"], base.replace(day=min(day, last_day)))
    return None


def save_matrix_cell(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    year, month = parse_period(body.get("year"), body.get("month"))
    client_id = parse_uuid(body, "client_id")
    field = parse_choice(body, "field", MATRIX_FIELDS)
    if field is None:
        raise ValueError("field is required")
    value = body.get("value")

    err = closed_period_error(year, month)
    if err:
        return err
    client = get_client(client_id)
    if not client:
        return 404, {"error": "client not found"}

    billing = get_or_create_billing(client_id, year, month, **NEW_RECORD_DEFAULTS)

    if field == "service_amount":
        err = _save_service_amount(billing, parse_uuid(body, "service_id", required=False), value)
    elif field in ("investment", "fee_pct", "platform_count"):
        err = _save_fee_inputs(billing, client, field, value)
    elif field == "vertical":
        err = _save_vertical(client, value)
    else:
        err = _save_due_day(client, value)
    if err:
        return err

    billing = get_billing(billing["id"])
    reconcile_billing(billing)
    billing = get_billing(billing["id"])
    MATRIX_SAVES.labels(field).inc()
    invalidate_pl_cache(year)
    log.info("matrix cell %s saved for client %s (%s-%02d)", field, client_id, year, month)
    broadcast_billing_updated(
        year, month, {"client_id": client_id, "field": field, "billing_id": str(billing["id"])}
    )
    return 200, {"success": True, "billing": billing}


# ---- records ----


def calculate(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    """Suggested billing for one client/period. Stored only with save=true."""
    client_id = parse_uuid(body, "client_id")
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    save = parse_bool(body, "save", default=False)

    client = get_client(client_id)
    if not client:
        return 404, {"error": "client not found"}

    existing = get_billing_for_period(client_id, year, month)
    actual = actuals_by_client(year, month).get(client_id)
    if actual:
        investment = actual["total_spend"]
        count = actual["platforms"] or 1
    else:
        investment = to_decimal(existing["total_actual_investment"]) if existing else ZERO
        count = int(existing["platform_count"]) if existing else 1

    calc = compute_billing(investment, count, client.get("fee_config"))
    calc["planned_investment"] = existing["total_ad_investment"] if existing else ZERO
    calc["platform_costs_full"] = get_platform_costs(count, client.get("fee_config"))
    calc.update({"client_id": client_id, "fiscal_year": year, "fiscal_month": month})

    if not save:
        return 200, {
            "success": True,
            "saved": False,
            "message": "billing calculated (preview only)",
            "calculation": calc,
        }

    err = closed_period_error(year, month)
    if err:
        return err
    billing = upsert_billing_from_calculation(client_id, year, month, calc)
    strategy = get_strategy_service()
    if strategy:
        upsert_service_line(billing["id"], strategy, round_currency(billing["fee_paid"]))
    reconcile_billing(billing)
    invalidate_pl_cache(year)
    return 200, {
        "success": True,
        "saved": True,
        "message": "billing calculated and saved",
        "calculation": calc,
        "billing": get_billing(billing["id"]),
    }


def list_period(year: int, month: int) -> List[Dict[str, Any]]:
    return list_billing_for_period(year, month)


def get_with_details(client_id: str, year: int, month: int) -> Tuple[int, Dict[str, Any]]:
    billing = get_billing_for_period(client_id, year, month)
    if not billing:
        return 404, {"error": "billing not found for this period"}
    return 200, {
        "success": True,
        "billing": billing,
        "details": list_details([billing["id"]]),
        "editable": not billing["is_finalized"],
    }


def patch(billing_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    updates: Dict[str, Any] = {}
    for field, bounds in PATCHABLE.items():
        if field in body:
            updates[field] = parse_number(body, field, **bounds)
    if "notes" in body:
        updates["notes"] = body["notes"] or ""
    if "is_finalized" in body:
        updates["is_finalized"] = parse_bool(body, "is_finalized")
    require_any(updates)

    billing = get_billing(billing_id)
    if not billing:
        return 404, {"error": "billing not found"}
    err = closed_period_error(billing["fiscal_year"], billing["fiscal_month"])
    if err:
        return err
    updated = update_billing(billing_id, **updates)
    invalidate_pl_cache(billing["fiscal_year"])
    return 200, {"success": True, "billing": updated}


# ---- detail lines ----


def _billing_guard(billing_id) -> Tuple[Optional[Dict[str, Any]], Optional[Tuple[int, Dict[str, Any]]]]:
    billing = get_billing(billing_id)
    if not billing:
        return None, (404, {"error": "billing not found"})
    return billing, closed_period_error(billing["fiscal_year"], billing["fiscal_month"])


def _after_detail_change(billing: Dict[str, Any]) -> None:
    reconcile_billing(get_billing(billing["id"]))
    invalidate_pl_cache(billing["fiscal_year"])


def add_detail(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    billing_id = parse_uuid(body, "monthly_billing_id")
    department_id = parse_uuid(body, "department_id")
    service_id = parse_uuid(body, "service_id", required=False)
    service_name = require_str(body, "service_name")
    amount = parse_number(body, "amount", min_value=0)
    is_fee_paid = parse_bool(body, "is_fee_paid", default=False)

    billing, err = _billing_guard(billing_id)
    if err:
        return err
    detail = insert_detail(
        billing_id,
        department_id,
        service_name,
        amount,
        service_id=service_id,
        is_fee_paid=is_fee_paid,
        notes=body.get("notes"),
    )
    _after_detail_change(billing)
    return 201, {"success": True, "detail": detail}


def edit_detail(detail_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    updates: Dict[str, Any] = {}
    if "service_name" in body:
        updates["service_name"] = require_str(body, "service_name")
    if "amount" in body:
        updates["amount"] = parse_number(body, "amount", min_value=0)
    if "notes" in body:
        updates["notes"] = body["notes"] or ""
    require_any(updates)

    detail = get_detail(detail_id)
    if not detail:
        return 404, {"error": "detail not found"}
    billing, err = _billing_guard(detail["monthly_billing_id"])
    if err:
        return err
    updated = modify_detail(detail_id, **updates)
    _after_detail_change(billing)
    return 200, {"success": True, "detail": updated}


def drop_detail(detail_id: str) -> Tuple[int, Dict[str, Any]]:
    detail = get_detail(detail_id)
    if not detail:
        return 404, {"error": "detail not found"}
    billing, err = _billing_guard(detail["monthly_billing_id"])
    if err:
        return err
    remove_detail(detail_id)
    _after_detail_change(billing)
    return 200, {"success": True}
