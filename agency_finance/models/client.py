from typing import Any, Dict, List, Optional

from psycopg2.extras import Json

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

_CLIENT_SELECT = """
  SELECT c.id, c.name, c.legal_name, c.tax_id, c.email, c.phone, c.address,
         c.vertical_id, v.code AS vertical_code, v.name AS vertical_name,
         c.fee_config, c.notes, c.is_active, c.created_at, c.updated_at
  FROM clients c
  LEFT JOIN verticals v ON v.id = c.vertical_id
"""

EDITABLE_FIELDS = (
    "name",
    "legal_name",
    "tax_id",
    "email",
    "phone",
    "address",
    "vertical_id",
    "notes",
    "is_active",
)


def list_clients(include_inactive: bool = False) -> List[Dict[str, Any]]:
    sql = _CLIENT_SELECT + " WHERE c.is_active OR %s ORDER BY c.name"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (include_inactive,))
        return fetch_all(cur)


def get_client(client_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_CLIENT_SELECT + " WHERE c.id = %s", (client_id,))
        return fetch_one(cur)


def create_client(fee_config: Dict[str, Any], **fields) -> Dict[str, Any]:
    cols = [k for k in EDITABLE_FIELDS if k in fields]
    values = [fields[k] for k in cols]
    cols.append("fee_config")
    values.append(Json(fee_config))
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"INSERT INTO clients ({', '.join(cols)}) VALUES ({placeholders}) RETURNING id"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, values)
        new_id = cur.fetchone()[0]
        conn.commit()
    return get_client(new_id)


def update_client(client_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("clients", fields, EDITABLE_FIELDS)
    if prefix is None:
        return get_client(client_id)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"{prefix} WHERE id = %s", (*params, client_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_client(client_id) if found else None


def soft_delete_client(client_id: str) -> bool:
    sql = "UPDATE clients SET is_active = false, updated_at = now() WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (client_id,))
        found = cur.rowcount > 0
        conn.commit()
        return found


def get_fee_config(client_id: str) -> Optional[Dict[str, Any]]:
    """Returns {"id", "name", "fee_config"} or None when the client is unknown."""
    sql = "SELECT id, name, fee_config FROM clients WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (client_id,))
        return fetch_one(cur)


def set_fee_config(client_id: str, fee_config: Dict[str, Any]) -> bool:
    sql = "UPDATE clients SET fee_config = %s, updated_at = now() WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (Json(fee_config), client_id))
        found = cur.rowcount > 0
        conn.commit()
        return found
