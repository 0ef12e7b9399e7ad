from functools import wraps
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt

ROLES = ("admin", "manager", "viewer")
WRITE_ROLES = ("admin", "manager")


def current_role():
    return get_jwt().get("role")


def require_role(*allowed):
    """
    JWT required; with no arguments any authenticated user passes.
    The role travels as a claim set at login.
    """

    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()
            if role is None:
                return jsonify({"error": "no role on token"}), 403
            if allowed and role not in allowed:
                return (
                    jsonify({"error": "forbidden", "required": allowed, "have": role}),
                    403,
                )
            return fn(*args, **kwargs)

        return wrapper

    return deco
