from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt

core = Blueprint("core", __name__)


@core.get("/")
def root():
    return jsonify({"service": "agency-finance-api", "ok": True})


@core.get("/health")
def health():
    return jsonify({"status": "ok"})


@core.get("/api")
def api_index():
    return jsonify(
        {
            "endpoints": {
                "auth": ["/api/auth/login (POST)", "/api/auth/refresh (POST)"],
                "users": ["/api/users ..."],
                "clients": ["/api/clients ...", "/api/settings ...", "/api/fees ..."],
                "billing": ["/api/billing/matrix", "/api/billing/matrix/save (POST)", "/api/billing ..."],
                "media": ["/api/media ..."],
                "periods": ["/api/periods ..."],
                "expenses": ["/api/expenses ..."],
                "payroll": ["/api/employees ...", "/api/payroll ..."],
                "commissions": ["/api/partners ...", "/api/platforms ..."],
                "events": ["/api/events/invoice-issued (POST)"],
                "reports": ["/api/pl ...", "/api/dashboard ...", "/api/payments ..."],
            }
        }
    )


@core.get("/api/me")
@jwt_required()
def me():
    claims = get_jwt()
    return jsonify({"user_id": get_jwt_identity(), "role": claims.get("role")})
