from decimal import Decimal
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import fetch_all, fetch_one, get_db_connection


def list_platforms() -> List[Dict[str, Any]]:
    sql = """
      SELECT id, code, name, display_order, is_active
      FROM ad_platforms
      WHERE is_active
      ORDER BY display_order, name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return fetch_all(cur)


def list_investment_for_period(year: int, month: int) -> List[Dict[str, Any]]:
    sql = """
      SELECT cai.id, cai.client_id, cai.platform_id, p.code AS platform_code,
             p.name AS platform_name, cai.planned_amount, cai.actual_amount, cai.notes
      FROM client_ad_investment cai
      JOIN ad_platforms p ON p.id = cai.platform_id
      WHERE cai.fiscal_year = %s AND cai.fiscal_month = %s
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_all(cur)


def actuals_by_client(year: int, month: int) -> Dict[str, Dict[str, Any]]:
    """
    client_id -> {"total_spend": Decimal, "platforms": int}
    where platforms counts the platforms with spend > 0.
    """
    sql = """
      SELECT client_id,
             COALESCE(SUM(actual_amount), 0),
             COUNT(DISTINCT platform_id) FILTER (WHERE actual_amount > 0)
      FROM client_ad_investment
      WHERE fiscal_year = %s AND fiscal_month = %s
      GROUP BY client_id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return {
            str(r[0]): {"total_spend": Decimal(r[1]), "platforms": int(r[2])}
            for r in cur.fetchall()
        }


def upsert_platform_investment(
    client_id: str,
    platform_id: str,
    year: int,
    month: int,
    actual_amount: Decimal,
    planned_amount: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    sql = """
    INSERT INTO client_ad_investment (client_id, platform_id, fiscal_year, fiscal_month,
                                      actual_amount, planned_amount, notes)
    VALUES (%s, %s, %s, %s, %s, COALESCE(%s, 0), %s)
    ON CONFLICT (client_id, platform_id, fiscal_year, fiscal_month) DO UPDATE SET
      actual_amount = EXCLUDED.actual_amount,
      planned_amount = COALESCE(%s, client_ad_investment.planned_amount),
      notes = COALESCE(EXCLUDED.notes, client_ad_investment.notes),
      updated_at = now()
    RETURNING id, client_id, platform_id, fiscal_year, fiscal_month,
              planned_amount, actual_amount, notes
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (client_id, platform_id, year, month, actual_amount, planned_amount, notes, planned_amount),
        )
        row = fetch_one(cur)
        conn.commit()
        return row
