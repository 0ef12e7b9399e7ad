from typing import Any, Dict, Optional

import bcrypt
from flask_jwt_extended import create_access_token, create_refresh_token

from agency_finance.models.user import get_user_by_email
from agency_finance.utils.logger import get_logger

log = get_logger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def make_tokens(user_id: str, extra_claims: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    claims = extra_claims or {}
    return {
        "access_token": create_access_token(identity=user_id, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=user_id, additional_claims=claims),
    }


def login_user(data: dict) -> dict:
    email = normalize_email(data.get("email", ""))
    password = data.get("password") or ""

    user = get_user_by_email(email)
    if not user or not user["password_hash"] or not verify_password(password, user["password_hash"]):
        log.info("failed login for %s", email)
        return {"error": "Invalid credentials"}
    if not user["is_active"]:
        return {"error": "Account disabled"}

    user_id = str(user["id"])
    tokens = make_tokens(user_id, {"role": user["role"]})
    return {
        "id": user_id,
        "email": user["email"],
        "full_name": user["full_name"],
        "role": user["role"],
        **tokens,
    }
