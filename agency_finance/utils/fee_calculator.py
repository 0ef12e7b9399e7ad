"""
Agency fee calculation for a client's monthly paid-media investment.

A client's fee config (stored as JSON on clients.fee_config) is either:
  fixed     -> one percentage for any investment
  variable  -> ordered [min, max] investment ranges, each with its own percentage
               (inclusive on both ends, max=None means unbounded, first match wins)

On top of the percentage fee, each month can carry flat platform costs:

  fee = investment * pct / 100
        + platform_cost_first
        + max(0, platform_count - 1) * platform_cost_additional

An investment that falls outside every range is charged the fixed percentage.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

FEE_TYPES = ("fixed", "variable")
CALCULATION_TYPES = ("auto", "manual")

DEFAULT_FEE_CONFIG: Dict[str, Any] = {
    "fee_type": "fixed",
    "fixed_pct": 10,
    "variable_ranges": [],
    "use_platform_costs": True,
    "platform_cost_first": 700,
    "platform_cost_additional": 300,
    "calculation_type": "auto",
}

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_UNIT = Decimal("1")
_CENT = Decimal("0.01")


def to_decimal(value: Any, default: Any = ZERO) -> Decimal:
    """Coerce numbers, numeric strings and None into Decimal."""
    if value is None or value == "":
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"not a number: {value!r}")


def round_currency(amount: Any) -> Decimal:
    """Whole currency units, half up (how billing stores fee_paid)."""
    return to_decimal(amount).quantize(_UNIT, rounding=ROUND_HALF_UP)


def round_cents(amount: Any) -> Decimal:
    return to_decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)


def _normalize_range(rg: Dict[str, Any]) -> Dict[str, Optional[Decimal]]:
    max_val = rg.get("max")
    return {
        "min": to_decimal(rg.get("min")),
        "max": None if max_val is None or max_val == "" else to_decimal(max_val),
        "pct": to_decimal(rg.get("pct")),
    }


def normalize_fee_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Fill in a stored fee config. A missing config is the agency default;
    a partial one gets zero costs and percentages for the keys it omits.
    """
    if not config:
        config = DEFAULT_FEE_CONFIG
    use_plat = config.get("use_platform_costs")
    return {
        "fee_type": config.get("fee_type") or "fixed",
        "fixed_pct": to_decimal(config.get("fixed_pct")),
        "variable_ranges": [
            _normalize_range(rg) for rg in (config.get("variable_ranges") or [])
        ],
        "use_platform_costs": True if use_plat is None else bool(use_plat),
        "platform_cost_first": to_decimal(config.get("platform_cost_first")),
        "platform_cost_additional": to_decimal(config.get("platform_cost_additional")),
        "calculation_type": config.get("calculation_type") or "auto",
    }


def validate_fee_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a fee config before it is stored. Raises ValueError.
    Returns the JSON-safe config to persist.
    """
    if not isinstance(config, dict):
        raise ValueError("fee_config must be an object")
    cfg = normalize_fee_config(config)

    if cfg["fee_type"] not in FEE_TYPES:
        raise ValueError(f"fee_type must be one of {', '.join(FEE_TYPES)}")
    if cfg["calculation_type"] not in CALCULATION_TYPES:
        raise ValueError(
            f"calculation_type must be one of {', '.join(CALCULATION_TYPES)}"
        )
    if not ZERO <= cfg["fixed_pct"] <= HUNDRED:
        raise ValueError("fixed_pct must be between 0 and 100")
    if cfg["platform_cost_first"] < 0 or cfg["platform_cost_additional"] < 0:
        raise ValueError("platform costs must be >= 0")

    prev_max: Optional[Decimal] = None
    for i, rg in enumerate(cfg["variable_ranges"]):
        if rg["min"] < 0:
            raise ValueError(f"range {i}: min must be >= 0")
        if rg["max"] is not None and rg["max"] < rg["min"]:
            raise ValueError(f"range {i}: max must be >= min")
        if not ZERO <= rg["pct"] <= HUNDRED:
            raise ValueError(f"range {i}: pct must be between 0 and 100")
        if i > 0:
            if prev_max is None:
                raise ValueError(f"range {i}: follows an unbounded range")
            if rg["min"] < prev_max:
                raise ValueError(f"range {i}: overlaps the previous range")
        prev_max = rg["max"]

    if cfg["fee_type"] == "variable" and not cfg["variable_ranges"]:
        raise ValueError("variable fee_type needs at least one range")

    return fee_config_to_json(cfg)


def fee_config_to_json(cfg: Dict[str, Any]) -> Dict[str, Any]:
    def num(d: Optional[Decimal]):
        if d is None:
            return None
        return int(d) if d == d.to_integral_value() else float(d)

    return {
        "fee_type": cfg["fee_type"],
        "fixed_pct": num(cfg["fixed_pct"]),
        "variable_ranges": [
            {"min": num(r["min"]), "max": num(r["max"]), "pct": num(r["pct"])}
            for r in cfg["variable_ranges"]
        ],
        "use_platform_costs": cfg["use_platform_costs"],
        "platform_cost_first": num(cfg["platform_cost_first"]),
        "platform_cost_additional": num(cfg["platform_cost_additional"]),
        "calculation_type": cfg["calculation_type"],
    }


def match_range_pct(
    investment: Decimal, ranges: List[Dict[str, Optional[Decimal]]]
) -> Optional[Decimal]:
    for rg in ranges:
        upper = rg["max"]
        if investment >= rg["min"] and (upper is None or investment <= upper):
            return rg["pct"]
    return None


def get_fee_percent(investment: Any, config: Optional[Dict[str, Any]]) -> Decimal:
    cfg = normalize_fee_config(config)
    inv = to_decimal(investment)
    if cfg["fee_type"] == "variable":
        pct = match_range_pct(inv, cfg["variable_ranges"])
        if pct is not None:
            return pct
    return cfg["fixed_pct"]


def get_platform_costs(platform_count: Any, config: Optional[Dict[str, Any]]) -> Decimal:
    cfg = normalize_fee_config(config)
    if not cfg["use_platform_costs"]:
        return ZERO
    extra = max(0, int(platform_count or 0) - 1)
    return cfg["platform_cost_first"] + extra * cfg["platform_cost_additional"]


def calculate_fee(
    investment: Any,
    config: Optional[Dict[str, Any]],
    platform_count: Any = 1,
    *,
    include_platform_costs: bool = True,
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Return (fee_percent, platform_costs, fee). Nothing is rounded here.

    include_platform_costs=False drops the flat term (billing does this for
    months with no investment and a single platform).
    """
    inv = to_decimal(investment)
    if inv < 0:
        raise ValueError("investment must be >= 0")
    pct = get_fee_percent(inv, config)
    plat = get_platform_costs(platform_count, config) if include_platform_costs else ZERO
    fee = inv * (pct / HUNDRED) + plat
    return (pct, plat, fee)


def fee_with_minimum(base_amount: Any, fee_percent: Any, minimum_fee: Any = 0) -> Decimal:
    """Contract fee for an invoice: percentage of the base, never below the minimum."""
    fee = to_decimal(base_amount) * to_decimal(fee_percent) / HUNDRED
    minimum = to_decimal(minimum_fee)
    return minimum if fee < minimum else fee
