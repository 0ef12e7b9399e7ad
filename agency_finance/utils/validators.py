"""
Request body parsing. Every helper raises ValueError with a message that
routes return as-is with a 400.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import UUID

from agency_finance.utils.fee_calculator import to_decimal

MIN_FISCAL_YEAR = 2020
EMAIL_RE = re.compile(r"^[^@]+@[^@]+\.[^@]+$")

_MISSING = object()


def is_uuid(v: Any) -> bool:
    try:
        UUID(str(v))
        return True
    except (TypeError, ValueError):
        return False


def parse_period(year: Any, month: Any) -> Tuple[int, int]:
    try:
        y, m = int(year), int(month)
    except (TypeError, ValueError):
        raise ValueError("fiscal year and month are required")
    if y < MIN_FISCAL_YEAR:
        raise ValueError(f"fiscal_year must be >= {MIN_FISCAL_YEAR}")
    if not 1 <= m <= 12:
        raise ValueError("fiscal_month must be between 1 and 12")
    return y, m


def parse_year(year: Any) -> int:
    y, _ = parse_period(year, 1)
    return y


def parse_uuid(body: Dict[str, Any], field: str, required: bool = True) -> Optional[str]:
    v = body.get(field)
    if v in (None, ""):
        if required:
            raise ValueError(f"{field} is required")
        return None
    if not is_uuid(v):
        raise ValueError(f"{field} must be a valid uuid")
    return str(v)


def parse_number(
    body: Dict[str, Any],
    field: str,
    *,
    required: bool = True,
    default: Any = _MISSING,
    min_value: Any = None,
    max_value: Any = None,
) -> Optional[Decimal]:
    v = body.get(field)
    if v is None or v == "":
        if default is not _MISSING:
            return None if default is None else to_decimal(default)
        if required:
            raise ValueError(f"{field} is required")
        return None
    try:
        d = to_decimal(v)
    except ValueError:
        raise ValueError(f"{field} must be a number")
    if min_value is not None and d < to_decimal(min_value):
        raise ValueError(f"{field} must be >= {min_value}")
    if max_value is not None and d > to_decimal(max_value):
        raise ValueError(f"{field} must be <= {max_value}")
    return d


def parse_int(body: Dict[str, Any], field: str, **kwargs) -> Optional[int]:
    v = parse_number(body, field, **kwargs)
    if v is None:
        return None
    if v != v.to_integral_value():
        raise ValueError(f"{field} must be a whole number")
    return int(v)


def parse_percentage(body: Dict[str, Any], field: str, **kwargs) -> Optional[Decimal]:
    return parse_number(body, field, min_value=0, max_value=100, **kwargs)


def parse_bool(body: Dict[str, Any], field: str, default: bool = False) -> bool:
    v = body.get(field)
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.lower() in ("true", "1", "yes"):
        return True
    if isinstance(v, str) and v.lower() in ("false", "0", "no"):
        return False
    raise ValueError(f"{field} must be a boolean")


def parse_date(
    body: Dict[str, Any], field: str, required: bool = True, default: Any = None
) -> Optional[date]:
    v = body.get(field)
    if v in (None, ""):
        if required and default is None:
            raise ValueError(f"{field} is required")
        return default
    if isinstance(v, date):
        return v
    try:
        return datetime.fromisoformat(str(v).replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError(f"{field} must be an ISO date")


def require_str(body: Dict[str, Any], field: str) -> str:
    v = (body.get(field) or "").strip() if isinstance(body.get(field), str) else ""
    if not v:
        raise ValueError(f"{field} is required")
    return v


def optional_str(body: Dict[str, Any], field: str) -> Optional[str]:
    v = body.get(field)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ValueError(f"{field} must be a string")
    return v.strip()


def parse_email(body: Dict[str, Any], field: str = "email") -> str:
    email = (body.get(field) or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError(f"{field} must be a valid email")
    return email


def parse_choice(
    body: Dict[str, Any], field: str, choices: Iterable[str], default: Optional[str] = None
) -> Optional[str]:
    v = body.get(field)
    if v in (None, ""):
        return default
    if v not in choices:
        raise ValueError(f"{field} must be one of {', '.join(choices)}")
    return v


def require_any(updates: Dict[str, Any]) -> Dict[str, Any]:
    if not updates:
        raise ValueError("at least one field is required")
    return updates
