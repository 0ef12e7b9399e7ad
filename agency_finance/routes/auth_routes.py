import os

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt, create_access_token

from agency_finance.services.auth_service import login_user
from agency_finance.utils.rate_limit import rate_limit_decorator

auth_bp = Blueprint("auth", __name__)

AUTH_LIMIT = int(os.getenv("RATE_LIMIT_AUTH_PER_MINUTE", "10"))


@auth_bp.post("/login")
@rate_limit_decorator(AUTH_LIMIT, key_prefix="login")
def login():
    data = request.get_json(force=True, silent=True) or {}
    resp = login_user(data)
    if "access_token" in resp:
        return jsonify(resp), 200
    return jsonify(resp), (403 if resp.get("error") == "Account disabled" else 401)


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    user_id = get_jwt_identity()
    role = get_jwt().get("role")
    new_access = create_access_token(identity=user_id, additional_claims={"role": role})
    return jsonify({"access_token": new_access}), 200
