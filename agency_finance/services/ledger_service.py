"""
Ledger entries for money that crosses departments.

Every entry goes through the create_ledger_entry() stored procedure.
Revenue is positive; payroll, expenses and paid commissions are negative;
received commissions are positive. One batch shares one transaction id.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from prometheus_client import Counter
from psycopg2 import Error as DatabaseError

from agency_finance.models.ledger import create_ledger_entry
from agency_finance.utils.fee_calculator import ZERO, round_cents, to_decimal
from agency_finance.utils.logger import get_logger

log = get_logger(__name__)

LEDGER_ENTRIES = Counter(
    "ledger_entries_total", "Ledger entries written", ["entry_type", "result"]
)

ENTRY_TYPES = ("revenue", "payroll", "expense", "commission")


class LedgerBatchError(Exception):
    """Some entries of a batch could not be written."""

    def __init__(self, failures: List[Dict[str, Any]], written: List[Dict[str, Any]]):
        self.failures = failures
        self.written = written
        super().__init__(
            f"failed to create {len(failures)} ledger entries: "
            + "; ".join(f["error"] for f in failures)
        )


def new_transaction_id() -> str:
    return str(uuid.uuid4())


def create_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Write every entry; collect failures and raise them together at the end.
    Returns [{"entry_id", **entry}] for the written ones.
    """
    written, failures = [], []
    for entry in entries:
        try:
            entry_id = create_ledger_entry(**entry)
        except DatabaseError as e:
            LEDGER_ENTRIES.labels(entry["entry_type"], "error").inc()
            failures.append({"error": str(e).strip(), "entry": entry})
            continue
        LEDGER_ENTRIES.labels(entry["entry_type"], "ok").inc()
        written.append({"entry_id": entry_id, **entry})
    if failures:
        log.error("ledger batch: %d written, %d failed", len(written), len(failures))
        raise LedgerBatchError(failures, written)
    return written


def _entry(
    entry_type: str,
    transaction_id: str,
    department_id: str,
    amount: Decimal,
    entry_date: date,
    description: str,
    reference_type: str,
    reference_id: Optional[str],
    metadata: Dict[str, Any],
    vertical_id: Optional[str] = None,
    created_by: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "entry_type": entry_type,
        "transaction_id": transaction_id,
        "department_id": str(department_id),
        "vertical_id": vertical_id,
        "amount": round_cents(amount),
        "entry_date": entry_date,
        "description": description,
        "reference_type": reference_type,
        "reference_id": str(reference_id) if reference_id else None,
        "metadata": metadata,
        "created_by": created_by,
    }


def _json_safe(metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (str(v) if isinstance(v, (Decimal, date, uuid.UUID)) else v) for k, v in metadata.items()}


def reversal_entries(
    transaction_id: str,
    reference_type: str,
    reference_id: str,
    entries: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Adjustments that cancel each of the given entries."""
    out = []
    for e in entries:
        reversal = _entry(
            e["entry_type"],
            transaction_id,
            e["department_id"],
            -to_decimal(e["amount"]),
            e["entry_date"],
            f"Reversal: {e['description']}",
            reference_type,
            reference_id,
            {"reversed_entry_id": str(e["id"])},
            vertical_id=str(e["vertical_id"]) if e.get("vertical_id") else None,
        )
        reversal["is_adjustment"] = True
        reversal["adjustment_of"] = str(e["id"])
        out.append(reversal)
    return out


def invoice_entries(
    transaction_id: str,
    contract_id: str,
    vertical_id: Optional[str],
    invoice_date: date,
    invoice_number: str,
    splits: List[Dict[str, Any]],
    metadata: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    return [
        _entry(
            "revenue",
            transaction_id,
            s["department_id"],
            to_decimal(s["split_amount"]),
            invoice_date,
            f"Revenue from invoice {invoice_number} - {s.get('department_name')} ({s['split_percentage']}%)",
            "invoice",
            contract_id,
            _json_safe(
                {
                    **(metadata or {}),
                    "invoice_number": invoice_number,
                    "split_percentage": s["split_percentage"],
                    "department_name": s.get("department_name"),
                }
            ),
            vertical_id=vertical_id,
        )
        for s in splits
        if to_decimal(s["split_amount"]) != ZERO
    ]


def payroll_entries(
    transaction_id: str,
    employee_id: str,
    payroll_id: str,
    payment_date: date,
    splits: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    return [
        _entry(
            "payroll",
            transaction_id,
            s["department_id"],
            -to_decimal(s["split_amount"]),
            payment_date,
            f"Payroll for employee - {s.get('department_name') or s['department_id']}",
            "payroll",
            payroll_id,
            _json_safe({"employee_id": employee_id, "department_name": s.get("department_name")}),
        )
        for s in splits
        if to_decimal(s["split_amount"]) != ZERO
    ]


def expense_entry(
    transaction_id: str,
    expense_id: str,
    department_id: str,
    amount: Decimal,
    expense_date: date,
    description: str,
) -> Dict[str, Any]:
    return _entry(
        "expense",
        transaction_id,
        department_id,
        -to_decimal(amount),
        expense_date,
        description,
        "expense",
        expense_id,
        {},
    )


def general_expense_entries(
    transaction_id: str,
    expense_id: str,
    expense_date: date,
    description: str,
    allocations: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    return [
        _entry(
            "expense",
            transaction_id,
            a["department_id"],
            -to_decimal(a["split_amount"]),
            expense_date,
            f"{description} - {a.get('department_name') or a['department_id']} ({a['split_percentage']}%)",
            "expense",
            expense_id,
            _json_safe(
                {
                    "allocation_percentage": a["split_percentage"],
                    "department_name": a.get("department_name"),
                }
            ),
        )
        for a in allocations
        if to_decimal(a["split_amount"]) != ZERO
    ]


def commission_entry(
    transaction_id: str,
    commission_id: str,
    department_id: str,
    amount: Decimal,
    commission_date: date,
    commission_type: str,
    description: str,
) -> Dict[str, Any]:
    """commission_type 'received' books a positive amount, 'paid' a negative one."""
    value = to_decimal(amount)
    return _entry(
        "commission",
        transaction_id,
        department_id,
        value if commission_type == "received" else -value,
        commission_date,
        description,
        "commission",
        commission_id,
        {"commission_type": commission_type},
    )
