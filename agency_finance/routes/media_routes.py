from flask import Blueprint, request, jsonify

from agency_finance.services import media_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_period

media_bp = Blueprint("media", __name__)


@media_bp.get("/platforms")
@require_role()
def platforms():
    return jsonify(media_service.platforms())


@media_bp.get("/investment/<int:year>/<int:month>")
@require_role()
def investment(year, month):
    year, month = parse_period(year, month)
    return jsonify(media_service.investment_view(year, month))


# POST /api/media/planned  { client_id, fiscal_year, fiscal_month, planned_investment }
@media_bp.post("/planned")
@require_role(*WRITE_ROLES)
def planned():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = media_service.set_planned(body)
    return jsonify(payload), status


# POST /api/media/platform
# { client_id, platform_id, fiscal_year, fiscal_month, actual_amount, planned_amount?, notes? }
@media_bp.post("/platform")
@require_role(*WRITE_ROLES)
def platform_actual():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = media_service.set_platform_actual(body)
    return jsonify(payload), status
