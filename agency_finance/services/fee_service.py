"""Per-client fee configs and ad-hoc fee previews."""

from typing import Any, Dict, Tuple

from agency_finance.models.client import get_fee_config, set_fee_config
from agency_finance.utils.fee_calculator import (
    DEFAULT_FEE_CONFIG,
    calculate_fee,
    get_platform_costs,
    normalize_fee_config,
    round_currency,
    validate_fee_config,
)
from agency_finance.utils.logger import get_logger
from agency_finance.utils.validators import parse_bool, parse_int, parse_number

log = get_logger(__name__)


def client_fee_config(client_id: str) -> Tuple[int, Dict[str, Any]]:
    row = get_fee_config(client_id)
    if not row:
        return 404, {"error": "client not found"}
    return 200, {
        "client_id": str(row["id"]),
        "client_name": row["name"],
        "fee_config": row["fee_config"] or DEFAULT_FEE_CONFIG,
        "is_default": not row["fee_config"],
    }


def save_client_fee_config(client_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    config = validate_fee_config(body.get("fee_config", body))
    if not set_fee_config(client_id, config):
        return 404, {"error": "client not found"}
    log.info("fee config updated for client %s (%s)", client_id, config["fee_type"])
    return 200, {"success": True, "client_id": client_id, "fee_config": config}


def preview(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    body: {investment, platform_count?, fee_config?, include_platform_costs?}
    Nothing is stored.
    """
    investment = parse_number(body, "investment", min_value=0)
    platform_count = parse_int(body, "platform_count", default=1, min_value=0)
    include_plat = parse_bool(body, "include_platform_costs", default=True)
    raw = body.get("fee_config")
    config = validate_fee_config(raw) if raw else DEFAULT_FEE_CONFIG

    pct, plat, fee = calculate_fee(
        investment, config, platform_count, include_platform_costs=include_plat
    )
    cfg = normalize_fee_config(config)
    return {
        "investment": investment,
        "platform_count": platform_count,
        "fee_type": cfg["fee_type"],
        "fee_percentage": pct,
        "percentage_fee": investment * pct / 100,
        "platform_costs": plat,
        "platform_costs_full": get_platform_costs(platform_count, config),
        "fee": fee,
        "fee_rounded": round_currency(fee),
    }
