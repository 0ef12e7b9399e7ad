import psycopg2
import os
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

load_dotenv()


def get_db_connection():
    """
    Connect to PostgreSQL. Uses DATABASE_URL if set (e.g. for a managed instance);
    otherwise falls back to DB_HOST, DB_NAME, DB_USER, DB_PASSWORD, DB_PORT.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return psycopg2.connect(url)
    return psycopg2.connect(
        host=os.getenv("DB_HOST", "127.0.0.1"),
        database=os.getenv("DB_NAME", "agency_finance_dev"),
        user=os.getenv("DB_USER", "dev"),
        password=os.getenv("DB_PASSWORD", "dev"),
        port=os.getenv("DB_PORT", "65432"),
    )


def _columns(cur) -> List[str]:
    return [c[0] for c in cur.description]


def fetch_one(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    if not row:
        return None
    return dict(zip(_columns(cur), row))


def fetch_all(cur) -> List[Dict[str, Any]]:
    cols = _columns(cur)
    return [dict(zip(cols, r)) for r in cur.fetchall()]


def build_update(table: str, fields: Dict[str, Any], allowed: tuple) -> tuple:
    """
    Build "UPDATE <table> SET a=%s, b=%s" for the allowed keys present in fields.
    Returns (sql_prefix, params); sql_prefix is None when nothing to update.
    """
    sets, params = [], []
    for k in allowed:
        if k in fields:
            sets.append(f"{k} = %s")
            params.append(fields[k])
    if not sets:
        return None, []
    return f"UPDATE {table} SET {', '.join(sets)}, updated_at = now()", params
