from flask import Blueprint, Response
from prometheus_client import REGISTRY, generate_latest, CONTENT_TYPE_LATEST

from agency_finance.utils.authz import require_role

admin_bp = Blueprint("admin", __name__)


@admin_bp.get("/admin/metrics")
@require_role("admin")
def metrics():
    """Prometheus metrics endpoint. Admin token required."""
    return Response(
        generate_latest(REGISTRY),
        mimetype=CONTENT_TYPE_LATEST,
    )
