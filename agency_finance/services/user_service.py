from typing import Any, Dict, Tuple

from agency_finance.models.user import create_user, get_user, get_user_by_email, list_users, update_user
from agency_finance.services.auth_service import hash_password
from agency_finance.utils.authz import ROLES
from agency_finance.utils.validators import (
    optional_str,
    parse_bool,
    parse_choice,
    parse_email,
    require_any,
)

MIN_PASSWORD_LENGTH = 8


def _password(body: Dict[str, Any], field: str = "password") -> str:
    password = body.get(field) or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def fetch_users():
    return list_users()


def fetch_user(user_id: str):
    return get_user(user_id)


def add_user(body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    email = parse_email(body)
    password = _password(body)
    role = parse_choice(body, "role", ROLES, default="viewer")
    full_name = optional_str(body, "full_name") or None
    if get_user_by_email(email):
        return 409, {"error": "Email already registered"}
    user = create_user(email, hash_password(password), full_name=full_name, role=role)
    return 201, user


def edit_user(user_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    updates: Dict[str, Any] = {}
    if "full_name" in body:
        updates["full_name"] = optional_str(body, "full_name") or None
    if "role" in body:
        updates["role"] = parse_choice(body, "role", ROLES)
    if "is_active" in body:
        updates["is_active"] = parse_bool(body, "is_active")
    require_any(updates)
    user = update_user(user_id, **updates)
    if not user:
        return 404, {"error": "user not found"}
    return 200, user


def reset_password(user_id: str, body: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    password = _password(body, "new_password")
    user = update_user(user_id, password_hash=hash_password(password))
    if not user:
        return 404, {"error": "user not found"}
    return 200, {"success": True}
