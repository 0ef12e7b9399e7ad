"""Partners we pay commissions to, their client assignments and monthly commissions."""

from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

COMMISSION_EDITABLE = (
    "commission_percentage",
    "commission_amount",
    "payment_status",
    "payment_date",
    "notes",
)

_COMMISSION_SELECT = """
  SELECT mpc.id, mpc.partner_id, p.name AS partner_name, mpc.client_id, c.name AS client_name,
         mpc.fiscal_year, mpc.fiscal_month, mpc.client_revenue, mpc.commission_percentage,
         mpc.commission_amount, mpc.payment_status, mpc.payment_date, mpc.notes
  FROM monthly_partner_commissions mpc
  JOIN partners p ON p.id = mpc.partner_id
  JOIN clients c ON c.id = mpc.client_id
"""


def list_partners(is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
    sql = """
      SELECT p.id, p.name, p.email, p.phone, p.default_commission_percentage,
             p.payment_method, p.bank_details, p.notes, p.is_active,
             COALESCE(
               json_agg(json_build_object('client_id', c.id, 'client_name', c.name,
                                          'commission_percentage', pc.commission_percentage))
               FILTER (WHERE c.id IS NOT NULL), '[]'
             ) AS clients
      FROM partners p
      LEFT JOIN partner_clients pc ON pc.partner_id = p.id AND pc.is_active
      LEFT JOIN clients c ON c.id = pc.client_id
      WHERE %s::boolean IS NULL OR p.is_active = %s::boolean
      GROUP BY p.id
      ORDER BY p.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (is_active, is_active))
        return fetch_all(cur)


def get_partner(partner_id: str) -> Optional[Dict[str, Any]]:
    sql = """
      SELECT id, name, email, phone, default_commission_percentage, payment_method,
             bank_details, notes, is_active
      FROM partners WHERE id = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (partner_id,))
        return fetch_one(cur)


def create_partner(**fields) -> Dict[str, Any]:
    cols = [
        k
        for k in (
            "name",
            "email",
            "phone",
            "default_commission_percentage",
            "payment_method",
            "bank_details",
            "notes",
        )
        if fields.get(k) is not None
    ]
    vals = [fields[k] for k in cols]
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"INSERT INTO partners ({', '.join(cols)}) VALUES ({placeholders}) RETURNING id"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, vals)
        new_id = cur.fetchone()[0]
        conn.commit()
    return get_partner(new_id)


def assign_client(
    partner_id: str, client_id: str, commission_percentage, effective_from, notes=None
) -> Dict[str, Any]:
    sql = """
    INSERT INTO partner_clients (partner_id, client_id, commission_percentage, effective_from, notes)
    VALUES (%s, %s, %s, %s, %s)
    RETURNING id, partner_id, client_id, commission_percentage, effective_from, notes, is_active
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (partner_id, client_id, commission_percentage, effective_from, notes))
        row = fetch_one(cur)
        conn.commit()
        return row


def list_active_assignments_with_revenue(year: int, month: int) -> List[Dict[str, Any]]:
    """
    Active partner/client assignments joined with the client's billing record
    of the period. Billing columns are NULL when the client was not billed.
    """
    sql = """
      SELECT pc.partner_id, p.name AS partner_name, pc.client_id, c.name AS client_name,
             pc.commission_percentage, mb.id AS billing_id,
             mb.immedia_total, mb.imcontent_total, mb.immoralia_total, mb.immoral_general_total
      FROM partner_clients pc
      JOIN partners p ON p.id = pc.partner_id
      JOIN clients c ON c.id = pc.client_id
      LEFT JOIN monthly_billing mb
        ON mb.client_id = pc.client_id AND mb.fiscal_year = %s AND mb.fiscal_month = %s
      WHERE pc.is_active
      ORDER BY p.name, c.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_all(cur)


def save_pending_commission(
    partner_id: str,
    client_id: str,
    year: int,
    month: int,
    client_revenue,
    commission_percentage,
    commission_amount,
) -> Optional[Dict[str, Any]]:
    """
    Insert as pending; a recalculation only overwrites rows that are still pending.
    """
    sql = """
    INSERT INTO monthly_partner_commissions (partner_id, client_id, fiscal_year, fiscal_month,
                                             client_revenue, commission_percentage,
                                             commission_amount, payment_status)
    VALUES (%s, %s, %s, %s, %s, %s, %s, 'pending')
    ON CONFLICT (partner_id, client_id, fiscal_year, fiscal_month) DO UPDATE SET
      client_revenue = EXCLUDED.client_revenue,
      commission_percentage = EXCLUDED.commission_percentage,
      commission_amount = EXCLUDED.commission_amount,
      updated_at = now()
    WHERE monthly_partner_commissions.payment_status = 'pending'
    RETURNING id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                partner_id,
                client_id,
                year,
                month,
                client_revenue,
                commission_percentage,
                commission_amount,
            ),
        )
        row = cur.fetchone()
        conn.commit()
    return get_commission(row[0]) if row else None


def list_commissions(
    year: int,
    month: int,
    partner_id: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    sql = _COMMISSION_SELECT + """
      WHERE mpc.fiscal_year = %s AND mpc.fiscal_month = %s
        AND (%s::uuid IS NULL OR mpc.partner_id = %s::uuid)
        AND (%s::text IS NULL OR mpc.payment_status = %s::text)
      ORDER BY p.name, c.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month, partner_id, partner_id, payment_status, payment_status))
        return fetch_all(cur)


def get_commission(commission_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_COMMISSION_SELECT + " WHERE mpc.id = %s", (commission_id,))
        return fetch_one(cur)


def update_commission(commission_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("monthly_partner_commissions", fields, COMMISSION_EDITABLE)
    if prefix is None:
        return get_commission(commission_id)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"{prefix} WHERE id = %s", (*params, commission_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_commission(commission_id) if found else None
