from flask import Blueprint, request, jsonify

from agency_finance.models.expense import create_category, list_categories
from agency_finance.services import expense_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_bool, parse_period, parse_uuid, require_str

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.get("/categories")
@require_role()
def categories():
    return jsonify(list_categories())


@expenses_bp.post("/categories")
@require_role(*WRITE_ROLES)
def create_expense_category():
    body = request.get_json(force=True, silent=True) or {}
    row = create_category(
        require_str(body, "code").upper(),
        require_str(body, "name"),
        is_general=parse_bool(body, "is_general", default=False),
        parent_category_id=parse_uuid(body, "parent_category_id", required=False),
    )
    return jsonify(row), 201


# GET /api/expenses?year=2025&month=3&department_id=...
@expenses_bp.get("/")
@require_role()
def list_period():
    year, month = parse_period(request.args.get("year"), request.args.get("month"))
    department_id = parse_uuid(request.args, "department_id", required=False)
    return jsonify(expense_service.expenses_for_period(year, month, department_id))


@expenses_bp.post("/")
@require_role(*WRITE_ROLES)
def create():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = expense_service.add_expense(body)
    return jsonify(payload), status


@expenses_bp.patch("/<uuid:expense_id>")
@require_role(*WRITE_ROLES)
def patch(expense_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = expense_service.edit_expense(str(expense_id), body)
    return jsonify(payload), status


@expenses_bp.delete("/<uuid:expense_id>")
@require_role(*WRITE_ROLES)
def delete(expense_id):
    status, payload = expense_service.remove_expense(str(expense_id))
    return jsonify(payload), status


# POST /api/expenses/proration/preview  { fiscal_year, fiscal_month }
@expenses_bp.post("/proration/preview")
@require_role()
def proration_preview():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = expense_service.preview_proration(body)
    return jsonify(payload), status


@expenses_bp.post("/proration/execute")
@require_role(*WRITE_ROLES)
def proration_execute():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = expense_service.execute_proration(body)
    return jsonify(payload), status
