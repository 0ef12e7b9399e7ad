from flask import Blueprint, request, jsonify

from agency_finance.services import pl_service
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_choice, parse_year

pl_bp = Blueprint("pl", __name__)


@pl_bp.get("/summary/<int:year>")
@require_role()
def summary(year):
    return jsonify(pl_service.get_summary(parse_year(year)))


# GET /api/pl/matrix/2025?type=budget|real
@pl_bp.get("/matrix/<int:year>")
@require_role()
def matrix(year):
    matrix_type = parse_choice(request.args, "type", pl_service.MATRIX_TYPES, default="budget")
    return jsonify(pl_service.get_matrix(parse_year(year), matrix_type))


@pl_bp.post("/matrix/save")
@require_role(*WRITE_ROLES)
def matrix_save():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = pl_service.save_matrix_cell(body)
    return jsonify(payload), status
