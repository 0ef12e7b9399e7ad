from decimal import Decimal
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import fetch_all, get_db_connection

MONTH_COLUMNS = ("jan", "feb", "mar", "apr", "may", "jun",
                 "jul", "aug", "sep", "oct", "nov", "dec")


def month_column(month: int) -> str:
    return MONTH_COLUMNS[month - 1]


def list_budget_lines(year: int) -> List[Dict[str, Any]]:
    sql = f"""
      SELECT b.id, b.department_id, d.code AS department_code, d.name AS department_name,
             b.line_type::text AS line_type, b.service_id, s.name AS service_name,
             b.expense_category_id, c.name AS category_name, b.description,
             {', '.join('b.' + m for m in MONTH_COLUMNS)}
      FROM budget_lines b
      JOIN departments d ON d.id = b.department_id
      LEFT JOIN services s ON s.id = b.service_id
      LEFT JOIN expense_categories c ON c.id = b.expense_category_id
      WHERE b.fiscal_year = %s
      ORDER BY d.display_order, b.line_type, b.created_at
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year,))
        return fetch_all(cur)


def set_budget_cell(
    year: int,
    month: int,
    department_id: str,
    line_type: str,
    amount: Decimal,
    service_id: Optional[str] = None,
    expense_category_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Upsert the line identified by (year, department, type, service or category)
    and set one month on it.
    """
    col = month_column(month)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            """
            SELECT id FROM budget_lines
            WHERE fiscal_year = %s AND department_id = %s AND line_type = %s
              AND service_id IS NOT DISTINCT FROM %s::uuid
              AND expense_category_id IS NOT DISTINCT FROM %s::uuid
            LIMIT 1
            """,
            (year, department_id, line_type, service_id, expense_category_id),
        )
        row = cur.fetchone()
        if row:
            line_id = row[0]
            cur.execute(
                f"UPDATE budget_lines SET {col} = %s, updated_at = now() WHERE id = %s",
                (amount, line_id),
            )
        else:
            cur.execute(
                f"""
                INSERT INTO budget_lines (fiscal_year, department_id, line_type,
                                          service_id, expense_category_id, {col})
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (year, department_id, line_type, service_id, expense_category_id, amount),
            )
            line_id = cur.fetchone()[0]
        conn.commit()
    return {"id": line_id, "month": col, "amount": amount}
