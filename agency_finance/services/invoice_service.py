from typing import Any, Dict, Tuple

from agency_finance.models.client import get_client
from agency_finance.models.contract import get_active_contract, list_contract_splits
from agency_finance.services.ledger_service import (
    LedgerBatchError,
    create_entries,
    invoice_entries,
    new_transaction_id,
)
from agency_finance.utils.fee_calculator import fee_with_minimum, round_cents, to_decimal
from agency_finance.utils.logger import get_logger
from agency_finance.utils.splits import SPLIT_TOLERANCE, allocate, splits_sum_to_100, splits_total
from agency_finance.utils.validators import (
    optional_str,
    parse_date,
    parse_number,
    parse_uuid,
    require_str,
)

log = get_logger(__name__)


def record_invoice_issued(body: Dict[str, Any], user_id=None) -> Tuple[int, Dict[str, Any]]:
    """
    Book an issued invoice: contract fee (with minimum) shared across the
    contract's departments and written to the ledger as revenue.
    """
    contract_id = parse_uuid(body, "contract_id")
    invoice_number = require_str(body, "invoice_number")
    invoice_date = parse_date(body, "invoice_date")
    base_amount = parse_number(body, "base_amount")
    if base_amount <= 0:
        raise ValueError("base_amount must be > 0")
    description = optional_str(body, "description")
    metadata = body.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("metadata must be an object")

    contract = get_active_contract(contract_id)
    if not contract:
        return 404, {"success": False, "error": "active contract not found"}

    dept_splits = list_contract_splits(contract_id)
    if not dept_splits:
        return 422, {"success": False, "error": "contract has no department splits"}
    if not splits_sum_to_100(dept_splits):
        return 422, {
            "success": False,
            "error": f"contract splits must sum to 100% (current: {splits_total(dept_splits)}%)",
        }

    fee_pct = to_decimal(contract["fee_percentage"])
    minimum_fee = to_decimal(contract["minimum_fee"])
    fee_amount = round_cents(fee_with_minimum(base_amount, fee_pct, minimum_fee))

    splits = allocate(fee_amount, dept_splits)
    total_split = sum((s["split_amount"] for s in splits), to_decimal(0))
    if abs(total_split - fee_amount) > SPLIT_TOLERANCE:
        log.error("invoice %s: splits %s != fee %s", invoice_number, total_split, fee_amount)
        return 500, {
            "success": False,
            "error": "split calculation error",
            "details": f"splits sum ({total_split}) does not match fee amount ({fee_amount})",
        }

    client = get_client(contract["client_id"]) or {}
    client_name = body.get("client_name") or client.get("name")
    transaction_id = new_transaction_id()
    entries = invoice_entries(
        transaction_id,
        contract_id,
        str(contract["vertical_id"]) if contract.get("vertical_id") else None,
        invoice_date,
        invoice_number,
        splits,
        {
            **metadata,
            "client_id": str(contract["client_id"]),
            "client_name": client_name,
            "contract_name": contract["contract_name"],
            "base_amount": base_amount,
            "fee_percentage": fee_pct,
            "minimum_fee": minimum_fee,
            "calculated_fee": fee_amount,
            "description": description,
        },
    )
    for e in entries:
        e["created_by"] = user_id
    try:
        written = create_entries(entries)
    except LedgerBatchError as e:
        return 500, {"success": False, "error": "failed to write ledger entries", "details": str(e)}

    log.info(
        "invoice %s booked: fee %s over %d departments (tx %s)",
        invoice_number,
        fee_amount,
        len(splits),
        transaction_id,
    )
    return 201, {
        "success": True,
        "transaction_id": transaction_id,
        "invoice": {
            "invoice_number": invoice_number,
            "invoice_date": invoice_date.isoformat(),
            "base_amount": base_amount,
            "fee_percentage": fee_pct,
            "minimum_fee": minimum_fee,
            "fee_amount": fee_amount,
            "client": {"id": str(contract["client_id"]), "name": client_name},
            "contract": {"id": contract_id, "name": contract["contract_name"]},
        },
        "splits": [
            {
                "department_id": str(s["department_id"]),
                "department_name": s.get("department_name"),
                "split_percentage": s["split_percentage"],
                "split_amount": s["split_amount"],
            }
            for s in splits
        ],
        "ledger_entries": [
            {
                "entry_id": w["entry_id"],
                "department_id": w["department_id"],
                "amount": w["amount"],
                "description": w["description"],
            }
            for w in written
        ],
        "message": f"Invoice {invoice_number} processed with {len(splits)} department splits",
    }
