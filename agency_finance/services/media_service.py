from typing import Any, Dict, Tuple

from agency_finance.models.ad_investment import (
    list_investment_for_period,
    list_platforms,
    upsert_platform_investment,
)
from agency_finance.models.billing import get_or_create_billing, list_billing_for_period, update_billing
from agency_finance.models.client import get_client, list_clients
from agency_finance.services.period_service import closed_period_error
from agency_finance.utils.fee_calculator import ZERO
from agency_finance.utils.validators import optional_str, parse_number, parse_period, parse_uuid


def platforms():
    return list_platforms()


def investment_view(year: int, month: int) -> Dict[str, Any]:
    """Planned investment from billing plus per-platform actuals, per active client."""
    planned = {str(b["client_id"]): b["total_ad_investment"] for b in list_billing_for_period(year, month)}
    by_client: Dict[str, list] = {}
    for row in list_investment_for_period(year, month):
        by_client.setdefault(str(row["client_id"]), []).append(row)

    rows = []
    for c in list_clients():
        cid = str(c["id"])
        lines = by_client.get(cid, [])
        rows.append(
            {
                "client_id": cid,
                "client_name": c["name"],
                "planned_investment": planned.get(cid, ZERO),
                "actual_investment": sum((l["actual_amount"] for l in lines), ZERO),
                "platforms": {str(l["platform_id"]): l for l in lines},
            }
        )
    return {"year": year, "month": month, "platforms": list_platforms(), "clients": rows}


def set_planned(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    client_id = parse_uuid(body, "client_id")
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    amount = parse_number(body, "planned_investment", min_value=0)

    err = closed_period_error(year, month)
    if err:
        return err
    if not get_client(client_id):
        return 404, {"error": "client not found"}
    billing = get_or_create_billing(client_id, year, month)
    billing = update_billing(billing["id"], total_ad_investment=amount)
    return 200, {"success": True, "billing": billing}


def set_platform_actual(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    client_id = parse_uuid(body, "client_id")
    platform_id = parse_uuid(body, "platform_id")
    year, month = parse_period(body.get("fiscal_year"), body.get("fiscal_month"))
    actual = parse_number(body, "actual_amount", min_value=0)
    planned = parse_number(body, "planned_amount", required=False, min_value=0)

    err = closed_period_error(year, month)
    if err:
        return err
    row = upsert_platform_investment(
        client_id, platform_id, year, month, actual, planned, optional_str(body, "notes")
    )
    return 200, {"success": True, "investment": row}
