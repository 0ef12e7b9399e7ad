from flask import Blueprint, request, jsonify

from agency_finance.services import billing_service
from agency_finance.tasks import enqueue_reconcile
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import parse_period, parse_year

billing_bp = Blueprint("billing", __name__)


def _period_args():
    return parse_period(request.args.get("year"), request.args.get("month"))


# GET /api/billing/matrix?year=2025&month=3
@billing_bp.get("/matrix")
@require_role()
def matrix():
    year, month = _period_args()
    return jsonify(billing_service.get_matrix(year, month))


# POST /api/billing/matrix/save
# { year, month, client_id, field, value, service_id? }
@billing_bp.post("/matrix/save")
@require_role(*WRITE_ROLES)
def matrix_save():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = billing_service.save_matrix_cell(body)
    return jsonify(payload), status


@billing_bp.get("/")
@require_role()
def list_period():
    year, month = _period_args()
    return jsonify(billing_service.list_period(year, month))


# POST /api/billing/calculate  { client_id, fiscal_year, fiscal_month, save? }
@billing_bp.post("/calculate")
@require_role(*WRITE_ROLES)
def calculate():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = billing_service.calculate(body)
    return jsonify(payload), status


# POST /api/billing/reconcile  { fiscal_year, fiscal_month? }
@billing_bp.post("/reconcile")
@require_role(*WRITE_ROLES)
def reconcile():
    body = request.get_json(force=True, silent=True) or {}
    year = parse_year(body.get("fiscal_year"))
    month = body.get("fiscal_month")
    if month not in (None, ""):
        _, month = parse_period(year, month)
    else:
        month = None
    result = enqueue_reconcile(year, month)
    return jsonify(result), (202 if result["queued"] else 200)


@billing_bp.post("/details")
@require_role(*WRITE_ROLES)
def create_detail():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = billing_service.add_detail(body)
    return jsonify(payload), status


@billing_bp.patch("/details/<uuid:detail_id>")
@require_role(*WRITE_ROLES)
def patch_detail(detail_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = billing_service.edit_detail(str(detail_id), body)
    return jsonify(payload), status


@billing_bp.delete("/details/<uuid:detail_id>")
@require_role(*WRITE_ROLES)
def delete_detail(detail_id):
    status, payload = billing_service.drop_detail(str(detail_id))
    return jsonify(payload), status


@billing_bp.get("/<uuid:client_id>/<int:year>/<int:month>")
@require_role()
def get_one(client_id, year, month):
    year, month = parse_period(year, month)
    status, payload = billing_service.get_with_details(str(client_id), year, month)
    return jsonify(payload), status


@billing_bp.patch("/<uuid:billing_id>")
@require_role(*WRITE_ROLES)
def patch(billing_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = billing_service.patch(str(billing_id), body)
    return jsonify(payload), status
