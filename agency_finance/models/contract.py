from datetime import date
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import fetch_all, fetch_one, get_db_connection

_CONTRACT_COLS = """
  id, client_id, vertical_id, contract_name, fee_percentage, minimum_fee,
  effective_from, effective_to, is_active, created_at
"""


def list_contracts(client_id: str) -> List[Dict[str, Any]]:
    sql = f"SELECT {_CONTRACT_COLS} FROM contracts WHERE client_id = %s ORDER BY created_at DESC"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (client_id,))
        return fetch_all(cur)


def get_active_contract(contract_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {_CONTRACT_COLS} FROM contracts WHERE id = %s AND is_active"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (contract_id,))
        return fetch_one(cur)


def latest_active_contract(client_id: str) -> Optional[Dict[str, Any]]:
    sql = f"""
      SELECT {_CONTRACT_COLS} FROM contracts
      WHERE client_id = %s AND is_active
      ORDER BY created_at DESC
      LIMIT 1
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (client_id,))
        return fetch_one(cur)


def active_contract_end_dates() -> Dict[str, Optional[date]]:
    """client_id -> effective_to of its most recent active contract."""
    sql = """
      SELECT DISTINCT ON (client_id) client_id, effective_to
      FROM contracts
      WHERE is_active
      ORDER BY client_id, created_at DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return {str(r[0]): r[1] for r in cur.fetchall()}


def set_contract_end_date(contract_id: str, effective_to: date) -> None:
    sql = "UPDATE contracts SET effective_to = %s, updated_at = now() WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (effective_to, contract_id))
        conn.commit()


def list_contract_splits(contract_id: str) -> List[Dict[str, Any]]:
    sql = """
      SELECT cs.department_id, cs.split_percentage, d.code AS department_code,
             d.name AS department_name
      FROM contract_department_splits cs
      JOIN departments d ON d.id = cs.department_id
      WHERE cs.contract_id = %s
      ORDER BY d.display_order
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (contract_id,))
        return fetch_all(cur)


def create_contract(
    client_id: str,
    contract_name: str,
    fee_percentage,
    minimum_fee,
    effective_from: date,
    effective_to: Optional[date],
    vertical_id: Optional[str],
    splits: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Contract and its department splits in one transaction."""
    sql = f"""
    INSERT INTO contracts (client_id, contract_name, fee_percentage, minimum_fee,
                           effective_from, effective_to, vertical_id)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
    RETURNING {_CONTRACT_COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                client_id,
                contract_name,
                fee_percentage,
                minimum_fee,
                effective_from,
                effective_to,
                vertical_id,
            ),
        )
        contract = fetch_one(cur)
        for s in splits:
            cur.execute(
                """
                INSERT INTO contract_department_splits (contract_id, department_id, split_percentage)
                VALUES (%s, %s, %s)
                """,
                (contract["id"], s["department_id"], s["split_percentage"]),
            )
        conn.commit()
    contract["splits"] = list_contract_splits(contract["id"])
    return contract
