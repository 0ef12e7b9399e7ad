from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

_PUBLIC_COLS = "id, email, full_name, role, is_active, created_at, updated_at"


def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {_PUBLIC_COLS}, password_hash FROM user_profiles WHERE email = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (email,))
        return fetch_one(cur)


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {_PUBLIC_COLS} FROM user_profiles WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (user_id,))
        return fetch_one(cur)


def list_users() -> List[Dict[str, Any]]:
    sql = f"SELECT {_PUBLIC_COLS} FROM user_profiles ORDER BY created_at DESC"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return fetch_all(cur)


def create_user(
    email: str, password_hash: str, full_name: Optional[str] = None, role: str = "viewer"
) -> Dict[str, Any]:
    sql = f"""
    INSERT INTO user_profiles (email, password_hash, full_name, role)
    VALUES (%s, %s, %s, %s)
    RETURNING {_PUBLIC_COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (email, password_hash, full_name, role))
        row = fetch_one(cur)
        conn.commit()
        return row


def update_user(user_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update(
        "user_profiles", fields, ("full_name", "role", "is_active", "password_hash")
    )
    if prefix is None:
        return get_user(user_id)
    sql = f"{prefix} WHERE id = %s RETURNING {_PUBLIC_COLS}"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (*params, user_id))
        row = fetch_one(cur)
        conn.commit()
        return row
