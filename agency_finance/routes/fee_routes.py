from flask import Blueprint, request, jsonify

from agency_finance.services.fee_service import client_fee_config, preview, save_client_fee_config
from agency_finance.utils.authz import WRITE_ROLES, require_role

fees_bp = Blueprint("fees", __name__)


@fees_bp.get("/client/<uuid:client_id>")
@require_role()
def get_config(client_id):
    status, payload = client_fee_config(str(client_id))
    return jsonify(payload), status


# PUT /api/fees/client/<id>  { fee_config: {...} } or the config itself
@fees_bp.put("/client/<uuid:client_id>")
@require_role(*WRITE_ROLES)
def put_config(client_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = save_client_fee_config(str(client_id), body)
    return jsonify(payload), status


# POST /api/fees/preview  { investment, platform_count?, fee_config?, include_platform_costs? }
@fees_bp.post("/preview")
@require_role()
def fee_preview():
    body = request.get_json(force=True, silent=True) or {}
    return jsonify(preview(body))
