from flask import Blueprint, request, jsonify
from flask_jwt_extended import get_jwt_identity

from agency_finance.services import period_service
from agency_finance.utils.authz import require_role
from agency_finance.utils.validators import parse_period, parse_year

periods_bp = Blueprint("periods", __name__)


def _body_period():
    body = request.get_json(force=True, silent=True) or {}
    return parse_period(body.get("fiscal_year"), body.get("fiscal_month"))


@periods_bp.get("/")
@require_role()
def list_periods():
    year = request.args.get("year")
    return jsonify(period_service.periods(parse_year(year) if year else None))


@periods_bp.get("/status/<int:year>/<int:month>")
@require_role()
def status(year, month):
    year, month = parse_period(year, month)
    return jsonify(period_service.status(year, month))


@periods_bp.post("/close")
@require_role("admin")
def close():
    year, month = _body_period()
    status_code, payload = period_service.close(year, month, get_jwt_identity())
    return jsonify(payload), status_code


@periods_bp.post("/reopen")
@require_role("admin")
def reopen():
    year, month = _body_period()
    status_code, payload = period_service.reopen(year, month, get_jwt_identity())
    return jsonify(payload), status_code
