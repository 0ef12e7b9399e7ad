"""Ad platforms that pay the agency a commission on client spend."""

from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

COMMISSION_EDITABLE = (
    "total_client_spending",
    "commission_percentage",
    "commission_earned",
    "payment_status",
    "payment_date",
    "notes",
)

_PLATFORM_COLS = """
  id, name, platform_type, default_commission_percentage, payment_frequency,
  contact_email, notes, is_active
"""

_COMMISSION_SELECT = """
  SELECT m.id, m.platform_id, p.name AS platform_name, m.fiscal_year, m.fiscal_month,
         m.total_client_spending, m.commission_percentage, m.commission_earned,
         m.payment_status, m.payment_date, m.notes
  FROM monthly_platform_commissions m
  JOIN commission_platforms p ON p.id = m.platform_id
"""


def list_platforms(is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
    sql = f"""
      SELECT {_PLATFORM_COLS} FROM commission_platforms
      WHERE %s::boolean IS NULL OR is_active = %s::boolean
      ORDER BY name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (is_active, is_active))
        return fetch_all(cur)


def create_platform(**fields) -> Dict[str, Any]:
    cols = [
        k
        for k in (
            "name",
            "platform_type",
            "default_commission_percentage",
            "payment_frequency",
            "contact_email",
            "notes",
        )
        if fields.get(k) is not None
    ]
    vals = [fields[k] for k in cols]
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"""
    INSERT INTO commission_platforms ({', '.join(cols)}) VALUES ({placeholders})
    RETURNING {_PLATFORM_COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, vals)
        row = fetch_one(cur)
        conn.commit()
        return row


def create_commission(**fields) -> Dict[str, Any]:
    cols = ["platform_id", "fiscal_year", "fiscal_month"] + [
        k for k in COMMISSION_EDITABLE if fields.get(k) is not None
    ]
    vals = [fields[k] for k in cols]
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"""
    INSERT INTO monthly_platform_commissions ({', '.join(cols)}) VALUES ({placeholders})
    RETURNING id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, vals)
        new_id = cur.fetchone()[0]
        conn.commit()
    return get_commission(new_id)


def get_commission(commission_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_COMMISSION_SELECT + " WHERE m.id = %s", (commission_id,))
        return fetch_one(cur)


def list_commissions(
    year: int,
    month: int,
    platform_id: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    sql = _COMMISSION_SELECT + """
      WHERE m.fiscal_year = %s AND m.fiscal_month = %s
        AND (%s::uuid IS NULL OR m.platform_id = %s::uuid)
        AND (%s::text IS NULL OR m.payment_status = %s::text)
      ORDER BY p.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month, platform_id, platform_id, payment_status, payment_status))
        return fetch_all(cur)


def update_commission(commission_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("monthly_platform_commissions", fields, COMMISSION_EDITABLE)
    if prefix is None:
        return get_commission(commission_id)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"{prefix} WHERE id = %s", (*params, commission_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_commission(commission_id) if found else None
