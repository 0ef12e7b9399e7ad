from flask import Blueprint, request, jsonify
from flask_jwt_extended import get_jwt_identity

from agency_finance.services import payroll_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_bool, parse_uuid

employees_bp = Blueprint("employees", __name__)


# GET /api/employees?is_active=true&department_id=...
@employees_bp.get("/")
@require_role()
def list_all():
    is_active = parse_bool(request.args, "is_active", default=None)
    department_id = parse_uuid(request.args, "department_id", required=False)
    return jsonify(payroll_service.employees(is_active, department_id))


@employees_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payroll_service.add_employee(body)
    return jsonify(payload), status


@employees_bp.get("/<uuid:employee_id>")
@require_role()
def get_one(employee_id):
    status, payload = payroll_service.employee_with_history(str(employee_id))
    return jsonify(payload), status


@employees_bp.patch("/<uuid:employee_id>")
@require_role(*WRITE_ROLES)
def patch(employee_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payroll_service.edit_employee(str(employee_id), body)
    return jsonify(payload), status


# POST /api/employees/<id>/salary  { new_salary, effective_from?, change_reason? }
@employees_bp.post("/<uuid:employee_id>/salary")
@require_role(*WRITE_ROLES)
def salary_change(employee_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = payroll_service.record_salary_change(
        str(employee_id), body, approved_by=get_jwt_identity()
    )
    return jsonify(payload), status


@employees_bp.delete("/<uuid:employee_id>")
@require_role(*WRITE_ROLES)
def deactivate(employee_id):
    status, payload = payroll_service.deactivate_employee(str(employee_id))
    return jsonify(payload), status


@employees_bp.delete("/<uuid:employee_id>/permanent")
@require_role("admin")
def purge(employee_id):
    status, payload = payroll_service.purge_employee(str(employee_id))
    return jsonify(payload), status
