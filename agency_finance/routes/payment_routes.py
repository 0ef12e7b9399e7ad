from flask import Blueprint, request, jsonify

from agency_finance.services import payment_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_period

payments_bp = Blueprint("payments", __name__)


@payments_bp.get("/<int:year>/<int:month>")
@require_role()
def schedule(year, month):
    year, month = parse_period(year, month)
    return jsonify(payment_service.schedule(year, month))


# POST /api/payments  { client_id, fiscal_year, fiscal_month, due_date, amount, notes? }
@payments_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payment_service.add_payment(body)
    return jsonify(payload), status


# PATCH /api/payments/<id>/status  { status, notes? }
@payments_bp.patch("/<uuid:payment_id>/status")
@require_role(*WRITE_ROLES)
def change_status(payment_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payment_service.change_status(str(payment_id), body)
    return jsonify(payload), status
