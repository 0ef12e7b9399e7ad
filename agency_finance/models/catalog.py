"""Departments, verticals and the billable service catalog."""

from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

STRATEGY_SERVICE_CODE = "PAID_MEDIA_STRATEGY"


# ---- departments ----


def list_departments(include_inactive: bool = False) -> List[Dict[str, Any]]:
    sql = """
      SELECT id, code, name, display_order, is_active
      FROM departments
      WHERE is_active OR %s
      ORDER BY display_order, name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (include_inactive,))
        return fetch_all(cur)


def get_department(department_id: str) -> Optional[Dict[str, Any]]:
    sql = "SELECT id, code, name, display_order, is_active FROM departments WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (department_id,))
        return fetch_one(cur)


def create_department(code: str, name: str, display_order: int = 99) -> Dict[str, Any]:
    sql = """
    INSERT INTO departments (code, name, display_order)
    VALUES (%s, %s, %s)
    RETURNING id, code, name, display_order, is_active
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (code, name, display_order))
        row = fetch_one(cur)
        conn.commit()
        return row


def update_department(department_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update(
        "departments", fields, ("code", "name", "display_order", "is_active")
    )
    if prefix is None:
        return get_department(department_id)
    sql = f"{prefix} WHERE id = %s RETURNING id, code, name, display_order, is_active"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (*params, department_id))
        row = fetch_one(cur)
        conn.commit()
        return row


# ---- verticals ----


def list_verticals() -> List[Dict[str, Any]]:
    sql = "SELECT id, code, name, is_active FROM verticals ORDER BY name"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return fetch_all(cur)


def find_vertical(value: str) -> Optional[Dict[str, Any]]:
    """Match a vertical by id, code or name (case-insensitive)."""
    sql = """
      SELECT id, code, name, is_active FROM verticals
      WHERE id::text = %s OR code ILIKE %s OR name ILIKE %s
      LIMIT 1
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (value, value, value))
        return fetch_one(cur)


def create_vertical(code: str, name: str) -> Dict[str, Any]:
    sql = """
    INSERT INTO verticals (code, name) VALUES (%s, %s)
    RETURNING id, code, name, is_active
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (code, name))
        row = fetch_one(cur)
        conn.commit()
        return row


def update_vertical(vertical_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("verticals", fields, ("code", "name", "is_active"))
    if prefix is None:
        return None
    sql = f"{prefix} WHERE id = %s RETURNING id, code, name, is_active"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (*params, vertical_id))
        row = fetch_one(cur)
        conn.commit()
        return row


def delete_vertical(vertical_id: str) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM verticals WHERE id = %s", (vertical_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


# ---- services ----

_SERVICE_SELECT = """
  SELECT s.id, s.code, s.name, s.department_id, s.display_order, s.is_active,
         d.code AS department_code, d.name AS department_name,
         d.display_order AS department_order
  FROM services s
  JOIN departments d ON d.id = s.department_id
"""


def list_services(include_inactive: bool = False) -> List[Dict[str, Any]]:
    """Ordered by department, then by service order inside the department."""
    sql = _SERVICE_SELECT + """
      WHERE s.is_active OR %s
      ORDER BY d.display_order, s.display_order, s.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (include_inactive,))
        return fetch_all(cur)


def get_service(service_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_SERVICE_SELECT + " WHERE s.id = %s", (service_id,))
        return fetch_one(cur)


def get_service_by_code(code: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_SERVICE_SELECT + " WHERE s.code = %s", (code,))
        return fetch_one(cur)


def get_strategy_service() -> Optional[Dict[str, Any]]:
    return get_service_by_code(STRATEGY_SERVICE_CODE)


def create_service(
    code: str, name: str, department_id: str, display_order: int = 99
) -> Dict[str, Any]:
    sql = """
    INSERT INTO services (code, name, department_id, display_order)
    VALUES (%s, %s, %s, %s)
    RETURNING id, code, name, department_id, display_order, is_active
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (code, name, department_id, display_order))
        row = fetch_one(cur)
        conn.commit()
        return row


def update_service(service_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update(
        "services",
        fields,
        ("code", "name", "department_id", "display_order", "is_active"),
    )
    if prefix is None:
        return None
    sql = (
        f"{prefix} WHERE id = %s "
        "RETURNING id, code, name, department_id, display_order, is_active"
    )
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (*params, service_id))
        row = fetch_one(cur)
        conn.commit()
        return row


GENERAL_DEPARTMENT_CODE = "IMMORAL"


def get_department_by_code(code: str) -> Optional[Dict[str, Any]]:
    sql = "SELECT id, code, name, display_order, is_active FROM departments WHERE upper(code) = upper(%s)"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (code,))
        return fetch_one(cur)
