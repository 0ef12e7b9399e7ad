from flask import Blueprint, request, jsonify

from agency_finance.services import commission_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_bool, parse_choice, parse_period, parse_uuid

platforms_bp = Blueprint("platforms", __name__)


@platforms_bp.get("/")
@require_role()
def list_all():
    is_active = parse_bool(request.args, "is_active", default=None)
    return jsonify(commission_service.platforms(is_active))


@platforms_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.add_platform(body)
    return jsonify(payload), status


# POST /api/platforms/commissions
# { platform_id, fiscal_year, fiscal_month, total_client_spending?, commission_percentage?,
#   commission_earned?, notes? }
@platforms_bp.post("/commissions")
@require_role(*WRITE_ROLES)
def register():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.register_platform_commission(body)
    return jsonify(payload), status


@platforms_bp.get("/commissions/<int:year>/<int:month>")
@require_role()
def list_commissions(year, month):
    year, month = parse_period(year, month)
    platform_id = parse_uuid(request.args, "platform_id", required=False)
    status = parse_choice(request.args, "payment_status", commission_service.PLATFORM_STATUSES)
    return jsonify(commission_service.platform_commissions(year, month, platform_id, status))


@platforms_bp.patch("/commissions/<uuid:commission_id>")
@require_role(*WRITE_ROLES)
def patch_commission(commission_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.edit_platform_commission(str(commission_id), body)
    return jsonify(payload), status


@platforms_bp.post("/commissions/<uuid:commission_id>/receive")
@require_role(*WRITE_ROLES)
def receive(commission_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.mark_platform_received(str(commission_id), body)
    return jsonify(payload), status
