from flask import Blueprint, request, jsonify

from agency_finance.services import commission_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_bool, parse_choice, parse_period, parse_uuid

partners_bp = Blueprint("partners", __name__)


@partners_bp.get("/")
@require_role()
def list_all():
    is_active = parse_bool(request.args, "is_active", default=None)
    return jsonify(commission_service.partners(is_active))


@partners_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.add_partner(body)
    return jsonify(payload), status


# POST /api/partners/<id>/clients  { client_id, commission_percentage?, effective_from?, notes? }
@partners_bp.post("/<uuid:partner_id>/clients")
@require_role(*WRITE_ROLES)
def assign(partner_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.assign_client(str(partner_id), body)
    return jsonify(payload), status


# POST /api/partners/commissions/calculate  { fiscal_year, fiscal_month, save? }
@partners_bp.post("/commissions/calculate")
@require_role(*WRITE_ROLES)
def calculate():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.calculate_partner_commissions(body)
    return jsonify(payload), status


# GET /api/partners/commissions/2025/3?partner_id=...&payment_status=pending
@partners_bp.get("/commissions/<int:year>/<int:month>")
@require_role()
def list_commissions(year, month):
    year, month = parse_period(year, month)
    partner_id = parse_uuid(request.args, "partner_id", required=False)
    status = parse_choice(request.args, "payment_status", commission_service.PARTNER_STATUSES)
    return jsonify(commission_service.partner_commissions(year, month, partner_id, status))


@partners_bp.patch("/commissions/<uuid:commission_id>")
@require_role(*WRITE_ROLES)
def patch_commission(commission_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.edit_partner_commission(str(commission_id), body)
    return jsonify(payload), status


# POST /api/partners/commissions/<id>/pay  { payment_date?, payment_reference?, department_id? }
@partners_bp.post("/commissions/<uuid:commission_id>/pay")
@require_role(*WRITE_ROLES)
def pay(commission_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = commission_service.mark_partner_paid(str(commission_id), body)
    return jsonify(payload), status
