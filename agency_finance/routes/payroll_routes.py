from flask import Blueprint, request, jsonify

from agency_finance.services import payroll_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_period

payroll_bp = Blueprint("payroll", __name__)


@payroll_bp.get("/<int:year>/<int:month>")
@require_role()
def list_period(year, month):
    year, month = parse_period(year, month)
    return jsonify(payroll_service.payroll_for_period(year, month))


# POST /api/payroll
# { employee_id, fiscal_year, fiscal_month, gross_salary, social_security_company?,
#   other_benefits?, total_company_cost?, payment_date?, notes?, auto_split? }
@payroll_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payroll_service.add_payroll(body)
    return jsonify(payload), status


@payroll_bp.patch("/<uuid:payroll_id>")
@require_role(*WRITE_ROLES)
def patch(payroll_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payroll_service.edit_payroll(str(payroll_id), body)
    return jsonify(payload), status


# PUT /api/payroll/<id>/splits  { splits: [{department_id, split_percentage}] }
@payroll_bp.put("/<uuid:payroll_id>/splits")
@require_role(*WRITE_ROLES)
def splits(payroll_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payroll_service.set_manual_splits(str(payroll_id), body)
    return jsonify(payload), status
