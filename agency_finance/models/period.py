from typing import Any, Dict, List, Optional

from agency_finance.utils.db import fetch_all, fetch_one, get_db_connection

_PERIOD_COLS = """
  fiscal_year, fiscal_month, is_closed, closed_at, closed_by, reopened_at, reopened_by
"""


def is_period_closed(year: int, month: int) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT is_period_closed(%s, %s)", (year, month))
        row = cur.fetchone()
        return bool(row and row[0])


def get_period(year: int, month: int) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {_PERIOD_COLS} FROM financial_periods WHERE fiscal_year = %s AND fiscal_month = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_one(cur)


def list_periods(year: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = f"""
      SELECT {_PERIOD_COLS} FROM financial_periods
      WHERE %s IS NULL OR fiscal_year = %s
      ORDER BY fiscal_year DESC, fiscal_month DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, year))
        return fetch_all(cur)


def close_period(year: int, month: int, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT close_financial_period(%s, %s, %s)", (year, month, user_id))
        conn.commit()
    return get_period(year, month)


def reopen_period(year: int, month: int, user_id: Optional[str]) -> bool:
    """False when the period was not closed."""
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT reopen_financial_period(%s, %s, %s)", (year, month, user_id))
        reopened = bool(cur.fetchone()[0])
        conn.commit()
        return reopened
