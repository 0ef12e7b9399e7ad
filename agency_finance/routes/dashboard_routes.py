from flask import Blueprint, jsonify

from agency_finance.services.dashboard_service import kpis
from agency_finance.utils.authz import require_role
from agency_finance.utils.validators import parse_year

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.get("/kpis/<int:year>")
@require_role()
def year_kpis(year):
    return jsonify(kpis(parse_year(year)))
