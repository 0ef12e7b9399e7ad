from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from psycopg2.extras import Json

from agency_finance.utils.db import fetch_all, get_db_connection


def create_ledger_entry(
    entry_type: str,
    transaction_id: str,
    department_id: str,
    amount: Decimal,
    entry_date: date,
    description: str,
    vertical_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    is_adjustment: bool = False,
    adjustment_of: Optional[str] = None,
    created_by: Optional[str] = None,
) -> str:
    """Write one entry through create_ledger_entry() and return its id."""
    sql = """
      SELECT create_ledger_entry(%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                entry_type,
                transaction_id,
                department_id,
                vertical_id,
                amount,
                entry_date,
                description,
                reference_type,
                reference_id,
                Json(metadata) if metadata is not None else None,
                is_adjustment,
                adjustment_of,
                created_by,
            ),
        )
        entry_id = cur.fetchone()[0]
        conn.commit()
        return str(entry_id)


def list_entries(transaction_id: str) -> List[Dict[str, Any]]:
    sql = """
      SELECT id, entry_type::text AS entry_type, transaction_id, department_id, vertical_id,
             amount, entry_date, fiscal_year, fiscal_month, description, reference_type,
             reference_id, metadata, is_adjustment, adjustment_of, created_at
      FROM ledger_entries
      WHERE transaction_id = %s
      ORDER BY created_at
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (transaction_id,))
        return fetch_all(cur)


def open_entries(reference_type: str, reference_id: str) -> List[Dict[str, Any]]:
    """Entries of a reference that no adjustment has reversed yet."""
    sql = """
      SELECT e.id, e.entry_type::text AS entry_type, e.department_id, e.vertical_id,
             e.amount, e.entry_date, e.description
      FROM ledger_entries e
      WHERE e.reference_type = %s AND e.reference_id = %s AND NOT e.is_adjustment
        AND NOT EXISTS (SELECT 1 FROM ledger_entries a WHERE a.adjustment_of = e.id)
      ORDER BY e.created_at
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (reference_type, reference_id))
        return fetch_all(cur)
