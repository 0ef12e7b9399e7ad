from flask import Blueprint, request, jsonify
from flask_jwt_extended import get_jwt_identity

from agency_finance.models.ledger import list_entries
from agency_finance.services.invoice_service import record_invoice_issued
from agency_finance.utils.authz import WRITE_ROLES, require_role

events_bp = Blueprint("events", __name__)


# POST /api/events/invoice-issued
# { contract_id, invoice_number, invoice_date, base_amount, metadata? }
@events_bp.post("/invoice-issued")
@require_role(*WRITE_ROLES)
def invoice_issued():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = record_invoice_issued(body, user_id=get_jwt_identity())
    return jsonify(payload), status


@events_bp.get("/transactions/<uuid:transaction_id>")
@require_role()
def transaction_entries(transaction_id):
    entries = list_entries(str(transaction_id))
    if not entries:
        return jsonify({"error": "transaction not found"}), 404
    return jsonify({"transaction_id": str(transaction_id), "entries": entries})
