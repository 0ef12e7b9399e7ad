from decimal import Decimal
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

PAYROLL_EDITABLE = (
    "gross_salary",
    "social_security_company",
    "other_benefits",
    "total_company_cost",
    "payment_date",
    "notes",
)

PAYROLL_COLS = """
  id, employee_id, fiscal_year, fiscal_month, gross_salary, social_security_company,
  other_benefits, total_company_cost, payment_date, notes
"""


def get_payroll(payroll_id: str) -> Optional[Dict[str, Any]]:
    sql = f"SELECT {PAYROLL_COLS} FROM monthly_payroll WHERE id = %s"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (payroll_id,))
        return fetch_one(cur)


def create_payroll(**fields) -> Dict[str, Any]:
    cols = ["employee_id", "fiscal_year", "fiscal_month"] + [
        k for k in PAYROLL_EDITABLE if k in fields
    ]
    vals = [fields[k] for k in cols]
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"""
    INSERT INTO monthly_payroll ({', '.join(cols)})
    VALUES ({placeholders})
    RETURNING {PAYROLL_COLS}
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, vals)
        row = fetch_one(cur)
        conn.commit()
        return row


def update_payroll(payroll_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("monthly_payroll", fields, PAYROLL_EDITABLE)
    if prefix is None:
        return get_payroll(payroll_id)
    sql = f"{prefix} WHERE id = %s RETURNING {PAYROLL_COLS}"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (*params, payroll_id))
        row = fetch_one(cur)
        conn.commit()
        return row


def list_payroll_for_period(year: int, month: int) -> List[Dict[str, Any]]:
    sql = """
      SELECT mp.id, mp.employee_id, mp.fiscal_year, mp.fiscal_month, mp.gross_salary,
             mp.social_security_company, mp.other_benefits, mp.total_company_cost,
             mp.payment_date, mp.notes,
             e.employee_code, e.first_name, e.last_name, e.position,
             e.primary_department_id
      FROM monthly_payroll mp
      JOIN employees e ON e.id = mp.employee_id
      WHERE mp.fiscal_year = %s AND mp.fiscal_month = %s
      ORDER BY mp.payment_date, e.last_name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_all(cur)


def list_splits(payroll_ids: List[str]) -> List[Dict[str, Any]]:
    ids = [str(i) for i in payroll_ids]
    if not ids:
        return []
    sql = """
      SELECT s.payroll_id, s.department_id, d.code AS department_code,
             d.name AS department_name, s.split_percentage, s.split_amount
      FROM payroll_department_splits s
      JOIN departments d ON d.id = s.department_id
      WHERE s.payroll_id = ANY(%s::uuid[])
      ORDER BY d.display_order
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (ids,))
        return fetch_all(cur)


def replace_splits(payroll_id: str, splits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM payroll_department_splits WHERE payroll_id = %s", (payroll_id,))
        for s in splits:
            cur.execute(
                """
                INSERT INTO payroll_department_splits (payroll_id, department_id,
                                                       split_percentage, split_amount)
                VALUES (%s, %s, %s, %s)
                """,
                (payroll_id, s["department_id"], s["split_percentage"], s["split_amount"]),
            )
        conn.commit()
    return list_splits([payroll_id])


def payroll_cost_by_month_and_department(year: int) -> List[Dict[str, Any]]:
    """
    Split amounts where splits exist, otherwise the full cost on the
    employee's primary department.
    """
    sql = """
      SELECT mp.fiscal_month, s.department_id, SUM(s.split_amount) AS amount
      FROM monthly_payroll mp
      JOIN payroll_department_splits s ON s.payroll_id = mp.id
      WHERE mp.fiscal_year = %s
      GROUP BY mp.fiscal_month, s.department_id
      UNION ALL
      SELECT mp.fiscal_month, e.primary_department_id, SUM(mp.total_company_cost)
      FROM monthly_payroll mp
      JOIN employees e ON e.id = mp.employee_id
      WHERE mp.fiscal_year = %s
        AND NOT EXISTS (SELECT 1 FROM payroll_department_splits s WHERE s.payroll_id = mp.id)
      GROUP BY mp.fiscal_month, e.primary_department_id
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, year))
        return [
            {"fiscal_month": r[0], "department_id": str(r[1]), "amount": Decimal(r[2])}
            for r in cur.fetchall()
        ]
