from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import fetch_all, fetch_one, get_db_connection

PAYMENT_STATUSES = ("pending", "paid", "overdue", "cancelled")

_PAYMENT_SELECT = """
  SELECT p.id, p.client_id, c.name AS client_name, p.fiscal_year, p.fiscal_month,
         p.due_date, p.amount, p.status::text AS status, p.paid_at, p.notes
  FROM payment_schedule p
  JOIN clients c ON c.id = p.client_id
"""


def list_schedule(year: int, month: int) -> List[Dict[str, Any]]:
    sql = _PAYMENT_SELECT + """
      WHERE p.fiscal_year = %s AND p.fiscal_month = %s
      ORDER BY p.due_date, c.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_all(cur)


def get_payment(payment_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_PAYMENT_SELECT + " WHERE p.id = %s", (payment_id,))
        return fetch_one(cur)


def create_payment(
    client_id: str,
    year: int,
    month: int,
    due_date: date,
    amount: Decimal,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    sql = """
    INSERT INTO payment_schedule (client_id, fiscal_year, fiscal_month, due_date, amount, notes)
    VALUES (%s, %s, %s, %s, %s, %s)
    RETURNING id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (client_id, year, month, due_date, amount, notes))
        new_id = cur.fetchone()[0]
        conn.commit()
    return get_payment(new_id)


def set_status(payment_id: str, status: str, notes: Optional[str] = None) -> Optional[Dict[str, Any]]:
    sql = """
    UPDATE payment_schedule
       SET status = %s,
           paid_at = CASE WHEN %s = 'paid' THEN now() ELSE NULL END,
           notes = COALESCE(%s, notes),
           updated_at = now()
     WHERE id = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (status, status, notes, payment_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_payment(payment_id) if found else None


def pending_total(year: int) -> Decimal:
    sql = """
      SELECT COALESCE(SUM(amount), 0) FROM payment_schedule
      WHERE fiscal_year = %s AND status IN ('pending', 'overdue')
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year,))
        return cur.fetchone()[0]
