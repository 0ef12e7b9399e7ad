from decimal import Decimal
from typing import Any, Dict, List, Optional

from agency_finance.utils.db import build_update, fetch_all, fetch_one, get_db_connection

EXPENSE_EDITABLE = (
    "department_id",
    "expense_category_id",
    "amount",
    "description",
    "payment_date",
    "vendor",
    "invoice_number",
)

_EXPENSE_SELECT = """
  SELECT e.id, e.fiscal_year, e.fiscal_month, e.department_id, e.expense_category_id,
         e.amount, e.description, e.payment_date, e.vendor, e.invoice_number,
         e.reference_type, e.reference_id, e.created_at,
         d.code AS department_code, d.name AS department_name,
         c.code AS category_code, c.name AS category_name, c.is_general
  FROM actual_expenses e
  JOIN departments d ON d.id = e.department_id
  JOIN expense_categories c ON c.id = e.expense_category_id
"""


def list_categories() -> List[Dict[str, Any]]:
    sql = """
      SELECT id, code, name, parent_category_id, is_general, display_order
      FROM expense_categories
      WHERE is_active
      ORDER BY display_order, name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql)
        return fetch_all(cur)


def create_category(
    code: str, name: str, is_general: bool = False, parent_category_id: Optional[str] = None
) -> Dict[str, Any]:
    sql = """
    INSERT INTO expense_categories (code, name, is_general, parent_category_id)
    VALUES (%s, %s, %s, %s)
    RETURNING id, code, name, parent_category_id, is_general, display_order
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (code, name, is_general, parent_category_id))
        row = fetch_one(cur)
        conn.commit()
        return row


def list_expenses(
    year: int, month: int, department_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    sql = _EXPENSE_SELECT + """
      WHERE e.fiscal_year = %s AND e.fiscal_month = %s
        AND (%s::uuid IS NULL OR e.department_id = %s::uuid)
      ORDER BY e.created_at DESC
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month, department_id, department_id))
        return fetch_all(cur)


def get_expense(expense_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(_EXPENSE_SELECT + " WHERE e.id = %s", (expense_id,))
        return fetch_one(cur)


def create_expense(**fields) -> Dict[str, Any]:
    cols = ["fiscal_year", "fiscal_month"] + [
        k for k in EXPENSE_EDITABLE + ("reference_type", "reference_id") if k in fields
    ]
    vals = [fields[k] for k in cols]
    placeholders = ", ".join(["%s"] * len(cols))
    sql = f"INSERT INTO actual_expenses ({', '.join(cols)}) VALUES ({placeholders}) RETURNING id"
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, vals)
        new_id = cur.fetchone()[0]
        conn.commit()
    return get_expense(new_id)


def update_expense(expense_id: str, **fields) -> Optional[Dict[str, Any]]:
    prefix, params = build_update("actual_expenses", fields, EXPENSE_EDITABLE)
    if prefix is None:
        return get_expense(expense_id)
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(f"{prefix} WHERE id = %s", (*params, expense_id))
        found = cur.rowcount > 0
        conn.commit()
    return get_expense(expense_id) if found else None


def delete_expense(expense_id: str) -> bool:
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM actual_expenses WHERE id = %s", (expense_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        return deleted


def list_general_expenses(year: int, month: int) -> List[Dict[str, Any]]:
    sql = _EXPENSE_SELECT + """
      WHERE e.fiscal_year = %s AND e.fiscal_month = %s AND c.is_general
      ORDER BY e.created_at
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year, month))
        return fetch_all(cur)


def replace_allocations(expense_id: str, allocations: List[Dict[str, Any]]) -> None:
    """Drop the previous allocations of an expense and store the new ones."""
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM expense_allocations WHERE expense_id = %s", (expense_id,))
        for a in allocations:
            cur.execute(
                """
                INSERT INTO expense_allocations (expense_id, department_id,
                                                 allocation_percentage, allocated_amount)
                VALUES (%s, %s, %s, %s)
                """,
                (expense_id, a["department_id"], a["split_percentage"], a["split_amount"]),
            )
        conn.commit()


def expenses_by_month_and_department(year: int) -> List[Dict[str, Any]]:
    sql = """
      SELECT e.fiscal_month, e.department_id, d.code AS department_code,
             e.expense_category_id, c.code AS category_code, c.name AS category_name,
             SUM(e.amount) AS amount
      FROM actual_expenses e
      JOIN departments d ON d.id = e.department_id
      JOIN expense_categories c ON c.id = e.expense_category_id
      WHERE e.fiscal_year = %s
      GROUP BY e.fiscal_month, e.department_id, d.code, e.expense_category_id, c.code, c.name
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(sql, (year,))
        return fetch_all(cur)


def set_expense_cell(
    year: int, month: int, department_id: str, category_id: str, amount: Decimal
) -> Dict[str, Any]:
    """
    Spreadsheet edit: replace every expense of the cell with one line carrying amount.
    """
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute(
            """
            DELETE FROM actual_expenses
            WHERE fiscal_year = %s AND fiscal_month = %s
              AND department_id = %s AND expense_category_id = %s
            """,
            (year, month, department_id, category_id),
        )
        row = None
        if amount:
            cur.execute(
                """
                INSERT INTO actual_expenses (fiscal_year, fiscal_month, department_id,
                                             expense_category_id, amount, description)
                VALUES (%s, %s, %s, %s, %s, 'P&L matrix entry')
                RETURNING id, amount
                """,
                (year, month, department_id, category_id, amount),
            )
            row = fetch_one(cur)
        conn.commit()
        return {"department_id": department_id, "expense_category_id": category_id,
                "amount": row["amount"] if row else Decimal("0")}
