from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

EMPLOYEE_EDITABLE = (
    "employee_code",
    "first_name",
    "last_name",
    "email",
    "position",
    "primary_department_id",
    "currency",
    "is_active",
)

_EMPLOYEE_SELECT = """
  SELECT e.id, e.employee_code, e.first_name, e.last_name, e.email, e.hire_date,
         e.current_salary, e.currency, e.position, e.primary_department_id,
         d.code AS department_code, d.name AS department_name, e.is_active
  FROM employees e
  JOIN departments d ON d.id = e.primary_department_id
"""


def list_employees(
    is_active: Optional[bool] = None, department_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    sql = _EMPLOYEE_SELECT + """
      WHERE (%s::boolean IS NULL OR e.is_active = %s::boolean)
        AND (%s::uuid IS NULL OR e.primary_department_id = %s::uuid)
      ORDER BY e.last_name, e.first_name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (is_active, is_active, department_id, department_id))
        return fetch_all(cur)


def get_employee(employee_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_EMPLOYEE_SELECT + " WHERE e.id = %s", (employee_id,))
        return fetch_one(cur)


def list_salary_history(employee_id: str) -> List[Dict[str, Any]]:
    sql = """
      SELECT id, old_salary, new_salary, effective_from, effective_to, change_reason,
             approved_by, created_at
      FROM salary_history
      WHERE employee_id = %s
      ORDER BY effective_from DESC, created_at DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (employee_id,))
        return fetch_all(cur)


def list_allocations(employee_id: str) -> List[Dict[str, Any]]:
    sql = """
      SELECT department_id, allocation_percentage AS split_percentage
      FROM employee_department_allocations
      WHERE employee_id = %s
      ORDER BY allocation_percentage DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (employee_id,))
        return fetch_all(cur)


def create_employee(
    employee_code: str,
    first_name: str,
    last_name: str,
    email: str,
    hire_date: date,
    current_salary: Decimal,
    position: str,
    primary_department_id: str,
    currency: str = "EUR",
    is_active: bool = True,
) -> Dict[str, Any]:
    """Employee plus its initial salary_history row."""
    sql = """
    INSERT INTO employees (employee_code, first_name, last_name, email, hire_date,
                           current_salary, position, primary_department_id, currency, is_active)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            sql,
            (
                employee_code,
                first_name,
                last_name,
                email,
                hire_date,
                current_salary,
                position,
                primary_department_id,
                currency,
                is_active,
            ),
        )
        new_id = cur.fetchone()[0]
        cur.execute(
            """
            INSERT INTO salary_history (employee_id, old_salary, new_salary, effective_from, change_reason)
            VALUES (%s, NULL, %s, %s, 'Initial salary')
            """,
            (new_id, current_salary, hire_date),
        )
        conn.commit()
    return get_employee(new_id)


def update_employee(employee_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("employees", fields, EMPLOYEE_EDITABLE)
    if prefix is None:
        return get_employee(employee_id)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"{prefix} WHERE id = %s", (*params, employee_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_employee(employee_id) if found else None


def change_salary(
    employee_id: str,
    new_salary: Decimal,
    effective_from: date,
    change_reason: Optional[str],
    approved_by: Optional[str],
) -> Optional[Dict[str, Any]]:
    """
    Close the open history row the day before effective_from, open a new one
    and move current_salary. Returns the new history row, None for unknown employees.
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            "SELECT current_salary FROM employees WHERE id = %s FOR UPDATE", (employee_id,)
        )
        row = cur.fetchone()
        if not row:
            return None
        old_salary = row[0]
        cur.execute(
            """
            UPDATE salary_history SET effective_to = %s
            WHERE employee_id = %s AND effective_to IS NULL
            """,
            (effective_from - timedelta(days=1), employee_id),
        )
        cur.execute(
            """
            INSERT INTO salary_history (employee_id, old_salary, new_salary, effective_from,
                                        change_reason, approved_by)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id, old_salary, new_salary, effective_from, effective_to, change_reason, approved_by
            """,
            (employee_id, old_salary, new_salary, effective_from, change_reason, approved_by),
        )
        history = fetch_one(cur)
        cur.execute(
            "UPDATE employees SET current_salary = %s, updated_at = now() WHERE id = %s",
            (new_salary, employee_id),
        )
        conn.commit()
        return history


def delete_employee(employee_id: str) -> bool:
    """Hard delete; history, allocations and payroll rows cascade."""
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM employees WHERE id = %s", (employee_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted
