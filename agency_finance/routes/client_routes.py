from flask import Blueprint, request, jsonify

from agency_finance.models.client import get_client
from agency_finance.services.client_service import (
    add_client,
    add_contract,
    clients as list_clients,
    contracts,
    duplicate_client,
    edit_client,
    remove_client,
)
from agency_finance.utils.authz import WRITE_ROLES, require_role

clients_bp = Blueprint("clients", __name__)


# GET /api/clients?include_inactive=1
@clients_bp.get("/")
@require_role()
def list_all():
    include_inactive = request.args.get("include_inactive") in ("1", "true")
    return jsonify(list_clients(include_inactive))


@clients_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = add_client(body)
    return jsonify(payload), status


@clients_bp.get("/<uuid:client_id>")
@require_role()
def get_one(client_id):
    client = get_client(str(client_id))
    if not client:
        return jsonify({"error": "client not found"}), 404
    return jsonify(client)


@clients_bp.patch("/<uuid:client_id>")
@require_role(*WRITE_ROLES)
def patch(client_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = edit_client(str(client_id), body)
    return jsonify(payload), status


@clients_bp.delete("/<uuid:client_id>")
@require_role(*WRITE_ROLES)
def delete(client_id):
    status, payload = remove_client(str(client_id))
    return jsonify(payload), status


@clients_bp.post("/<uuid:client_id>/duplicate")
@require_role(*WRITE_ROLES)
def duplicate(client_id):
    status, payload = duplicate_client(str(client_id))
    return jsonify(payload), status


@clients_bp.get("/<uuid:client_id>/contracts")
@require_role()
def list_contracts(client_id):
    return jsonify(contracts(str(client_id)))


# POST /api/clients/<id>/contracts
# { contract_name, fee_percentage, minimum_fee?, effective_from, effective_to?,
#   vertical_id?, splits: [{department_id, split_percentage}] }
@clients_bp.post("/<uuid:client_id>/contracts")
@require_role(*WRITE_ROLES)
def create_contract(client_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = add_contract(str(client_id), body)
    return jsonify(payload), status
