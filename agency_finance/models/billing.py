"""monthly_billing (one row per client and fiscal month) and its billing_details lines."""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

BILLING_COLS = """
  id, client_id, fiscal_year, fiscal_month, total_ad_investment, total_actual_investment,
  platform_count, applied_fee_percentage, platform_costs, fee_paid, is_manual_override,
  immedia_total, imcontent_total, immoralia_total, immoral_general_total, grand_total,
  notes, is_finalized, created_at, updated_at
"""

BILLING_EDITABLE = (
    "total_ad_investment",
    "total_actual_investment",
    "platform_count",
    "applied_fee_percentage",
    "platform_costs",
    "fee_paid",
    "is_manual_override",
    "immedia_total",
    "imcontent_total",
    "immoralia_total",
    "immoral_general_total",
    "grand_total",
    "notes",
    "is_finalized",
)

DETAIL_COLS = """
  bd.id, bd.monthly_billing_id, bd.service_id, bd.department_id, bd.service_name,
  bd.amount, bd.is_fee_paid, bd.notes,
  d.code AS department_code, d.name AS department_name, s.code AS service_code
"""
_DETAIL_FROM = """
  FROM billing_details bd
  JOIN departments d ON d.id = bd.department_id
  LEFT JOIN services s ON s.id = bd.service_id
"""


def get_billing(billing_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {BILLING_COLS} FROM monthly_billing WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (billing_id,))
        return fetch_one(cur)


def get_billing_for_period(client_id: str, year: int, month: int) -> Optional[Dict[str, Any]]:
    sql = f"""
      SELECT {BILLING_COLS} FROM monthly_billing
      WHERE client_id = %s AND fiscal_year = %s AND fiscal_month = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (client_id, year, month))
        return fetch_one(cur)


def list_billing_for_period(year: int, month: int) -> List[Dict[str, Any]]:
    sql = """
      SELECT mb.*, c.name AS client_name
      FROM monthly_billing mb
      JOIN clients c ON c.id = mb.client_id
      WHERE mb.fiscal_year = %s AND mb.fiscal_month = %s
      ORDER BY c.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_all(cur)


def list_billing_for_year(year: int, month: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"""
      SELECT {BILLING_COLS} FROM monthly_billing
      WHERE fiscal_year = %s AND (%s IS NULL OR fiscal_month = %s)
      ORDER BY fiscal_month
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month, month))
        return fetch_all(cur)


def get_or_create_billing(
    client_id: str, year: int, month: int, **defaults
) -> Dict[str, Any]:
    """
    Insert the period record when missing. Existing rows are returned untouched.
    """
    cols = ["client_id", "fiscal_year", "fiscal_month"]
    vals: List[Any] = [client_id, year, month]
    for k, v in defaults.items():
        if k in BILLING_EDITABLE:
            cols.append(k)
            vals.append(v)
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"""
    INSERT INTO monthly_billing ({', '.join(cols)})
    VALUES ({placeholders})
    ON CONFLICT (client_id, fiscal_year, fiscal_month) DO NOTHING
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, vals)
        conn.commit()
    return get_billing_for_period(client_id, year, month)


def update_billing(billing_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("monthly_billing", fields, BILLING_EDITABLE)
    if prefix is None:
        return get_billing(billing_id)
    sql = f"{prefix} WHERE id = %s RETURNING {BILLING_COLS}"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (*params, billing_id))
        row = fetch_one(cur)
        conn.commit()
        return row


def upsert_billing_from_calculation(client_id: str, year: int, month: int, calc: Dict[str, Any]):
    sql = f"""
    INSERT INTO monthly_billing (client_id, fiscal_year, fiscal_month, total_ad_investment,
                                 total_actual_investment, platform_count,
                                 applied_fee_percentage, platform_costs, fee_paid)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
    ON CONFLICT (client_id, fiscal_year, fiscal_month) DO UPDATE SET
      total_actual_investment = EXCLUDED.total_actual_investment,
      platform_count = EXCLUDED.platform_count,
      applied_fee_percentage = EXCLUDED.applied_fee_percentage,
      platform_costs = EXCLUDED.platform_costs,
      fee_paid = CASE WHEN monthly_billing.is_manual_override
                      THEN monthly_billing.fee_paid ELSE EXCLUDED.fee_paid END,
      updated_at = now()
    RETURNING {BILLING_COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                client_id,
                year,
                month,
                calc["planned_investment"],
                calc["investment"],
                calc["platform_count"],
                calc["fee_percentage"],
                calc["platform_costs"],
                calc["fee"],
            ),
        )
        row = fetch_one(cur)
        conn.commit()
        return row


# ---- details ----


def list_details(billing_ids: Iterable[str]) -> List[Dict[str, Any]]:
    ids = [str(i) for i in billing_ids]
    if not ids:
        return []
    sql = f"SELECT {DETAIL_COLS} {_DETAIL_FROM} WHERE bd.monthly_billing_id = ANY(%s::uuid[]) ORDER BY d.display_order, bd.service_name"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (ids,))
        return fetch_all(cur)


def get_detail(detail_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {DETAIL_COLS} {_DETAIL_FROM} WHERE bd.id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (detail_id,))
        return fetch_one(cur)


def get_detail_for_service(billing_id: str, service_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {DETAIL_COLS} {_DETAIL_FROM} WHERE bd.monthly_billing_id = %s AND bd.service_id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (billing_id, service_id))
        return fetch_one(cur)


def create_detail(
    monthly_billing_id: str,
    department_id: str,
    service_name: str,
    amount: Decimal,
    service_id: Optional[str] = None,
    is_fee_paid: bool = False,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    sql = """
    INSERT INTO billing_details (monthly_billing_id, department_id, service_id, service_name,
                                 amount, is_fee_paid, notes)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
    RETURNING id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (monthly_billing_id, department_id, service_id, service_name, amount, is_fee_paid, notes),
        )
        new_id = cur.fetchone()[0]
        conn.commit()
    return get_detail(new_id)


def upsert_service_line(
    billing_id: str, service: Dict[str, Any], amount: Decimal
) -> None:
    sql = """
    INSERT INTO billing_details (monthly_billing_id, service_id, department_id, service_name, amount)
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (monthly_billing_id, service_id)
    DO UPDATE SET amount = EXCLUDED.amount, updated_at = now()
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (billing_id, service["id"], service["department_id"], service["name"], amount),
        )
        conn.commit()


def update_detail(detail_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update(
        "billing_details", fields, ("service_name", "amount", "notes", "is_fee_paid")
    )
    if prefix is None:
        return get_detail(detail_id)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"{prefix} WHERE id = %s", (*params, detail_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_detail(detail_id) if found else None


def delete_detail(detail_id: str) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM billing_details WHERE id = %s", (detail_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


# ---- aggregates used by proration, commissions and P&L ----


def revenue_by_department(year: int, month: int) -> Dict[str, Decimal]:
    sql = """
      SELECT bd.department_id, COALESCE(SUM(bd.amount), 0)
      FROM billing_details bd
      JOIN monthly_billing mb ON mb.id = bd.monthly_billing_id
      WHERE mb.fiscal_year = %s AND mb.fiscal_month = %s
      GROUP BY bd.department_id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return {str(r[0]): r[1] for r in cur.fetchall()}


def revenue_by_month(year: int) -> List[Dict[str, Any]]:
    """Billed amounts of a year grouped by month, department and service line."""
    sql = """
      SELECT mb.fiscal_month, bd.department_id, d.code AS department_code,
             d.name AS department_name, bd.service_id, bd.service_name,
             SUM(bd.amount) AS amount
      FROM billing_details bd
      JOIN monthly_billing mb ON mb.id = bd.monthly_billing_id
      JOIN departments d ON d.id = bd.department_id
      WHERE mb.fiscal_year = %s
      GROUP BY mb.fiscal_month, bd.department_id, d.code, d.name, d.display_order,
               bd.service_id, bd.service_name
      ORDER BY d.display_order, bd.service_name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year,))
        return fetch_all(cur)
