from flask import Blueprint, request, jsonify

from agency_finance.services.user_service import (
    add_user,
    edit_user,
    fetch_user,
    fetch_users,
    reset_password,
)
from agency_finance.utils.authz import require_role

user = Blueprint("user", __name__)


@user.get("/")
@require_role("admin")
def list_users():
    return jsonify(fetch_users())


@user.post("/")
@require_role("admin")
def register_user():
    body = request.get_json(force=True, silent=True) or {}
    status, payload = add_user(body)
    return jsonify(payload), status


@user.get("/<uuid:user_id>")
@require_role("admin")
def get_one(user_id):
    u = fetch_user(str(user_id))
    if not u:
        return jsonify({"error": "user not found"}), 404
    return jsonify(u)


@user.patch("/<uuid:user_id>")
@require_role("admin")
def patch_user(user_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = edit_user(str(user_id), body)
    return jsonify(payload), status


@user.put("/<uuid:user_id>/reset-password")
@require_role("admin")
def user_reset_password(user_id):
    body = request.get_json(force=True, silent=True) or {}
    status, payload = reset_password(str(user_id), body)
    return jsonify(payload), status
