from typing import Any, Dict, List, Tuple

from agency_finance.models.client import (
    EDITABLE_FIELDS,
    create_client,
    get_client,
    list_clients,
    soft_delete_client,
    update_client,
)
from agency_finance.models.contract import create_contract, list_contract_splits, list_contracts
from agency_finance.utils.fee_calculator import DEFAULT_FEE_CONFIG, validate_fee_config
from agency_finance.utils.splits import splits_sum_to_100
from agency_finance.utils.validators import (
    optional_str,
    parse_bool,
    parse_date,
    parse_email,
    parse_number,
    parse_percentage,
    parse_uuid,
    require_any,
    require_str,
)

COPY_SUFFIX = " (copia)"


def _client_fields(body: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if not partial or "name" in body:
        fields["name"] = require_str(body, "name")
    for f in ("legal_name", "tax_id", "phone", "address", "notes"):
        if f in body:
            fields[f] = optional_str(body, f) or None
    if body.get("email"):
        fields["email"] = parse_email(body)
    if "vertical_id" in body:
        fields["vertical_id"] = parse_uuid(body, "vertical_id", required=False)
    if partial and "is_active" in body:
        fields["is_active"] = parse_bool(body, "is_active")
    return fields


def clients(include_inactive: bool = False) -> List[Dict[str, Any]]:
    return list_clients(include_inactive)


def add_client(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = _client_fields(body, partial=False)
    raw_config = body.get("fee_config")
    config = validate_fee_config(raw_config) if raw_config else dict(DEFAULT_FEE_CONFIG)
    return 201, create_client(config, **fields)


def edit_client(client_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    fields = require_any(_client_fields(body, partial=True))
    client = update_client(client_id, **fields)
    if not client:
        return 404, {"error": "client not found"}
    return 200, client


def remove_client(client_id: str) -> Tuple[int, Dict[str, Any]]:
    if not soft_delete_client(client_id):
        return 404, {"error": "client not found"}
    return 200, {"success": True}


def duplicate_client(client_id: str) -> Tuple[int, Dict[str, Any]]:
    source = get_client(client_id)
    if not source:
        return 404, {"error": "client not found"}
    fields = {k: source[k] for k in EDITABLE_FIELDS if k in source and k != "is_active"}
    fields["name"] = source["name"] + COPY_SUFFIX
    return 201, create_client(source["fee_config"] or dict(DEFAULT_FEE_CONFIG), **fields)


def contracts(client_id: str) -> List[Dict[str, Any]]:
    items = list_contracts(client_id)
    for c in items:
        c["splits"] = list_contract_splits(c["id"])
    return items


def add_contract(client_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    name = require_str(body, "contract_name")
    fee_pct = parse_percentage(body, "fee_percentage")
    minimum_fee = parse_number(body, "minimum_fee", default=0, min_value=0)
    effective_from = parse_date(body, "effective_from")
    effective_to = parse_date(body, "effective_to", required=False)
    vertical_id = parse_uuid(body, "vertical_id", required=False)
    if effective_to and effective_to < effective_from:
        raise ValueError("effective_to must be on or after effective_from")

    raw_splits = body.get("splits") or []
    if not isinstance(raw_splits, list) or not raw_splits:
        raise ValueError("splits are required")
    splits = [
        {
            "department_id": parse_uuid(s, "department_id"),
            "split_percentage": parse_percentage(s, "split_percentage"),
        }
        for s in raw_splits
    ]
    if not splits_sum_to_100(splits):
        return 422, {"error": "department splits must sum to 100%"}

    if not get_client(client_id):
        return 404, {"error": "client not found"}
    contract = create_contract(
        client_id, name, fee_pct, minimum_fee, effective_from, effective_to, vertical_id, splits
    )
    return 201, contract
