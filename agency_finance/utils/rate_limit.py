"""
Simple in-memory rate limiter.

Configure via RATE_LIMIT_ENABLED (default: 1).
Login uses RATE_LIMIT_AUTH_PER_MINUTE (default: 10).
"""

from __future__ import annotations
import os
import time
from collections import defaultdict
from functools import wraps
from threading import Lock

from flask import jsonify, request

_lock = Lock()
_counts: dict[str, list[float]] = defaultdict(list)
_window = 60  # seconds


def _clean_old(ts_list: list[float], window: int) -> None:
    cutoff = time.time() - window
    while ts_list and ts_list[0] < cutoff:
        ts_list.pop(0)


def is_rate_limited(key: str, limit: int) -> bool:
    """Return True if the key has exceeded the limit within the window."""
    if limit <= 0:
        return False
    with _lock:
        _clean_old(_counts[key], _window)
        if len(_counts[key]) >= limit:
            return True
        _counts[key].append(time.time())
        return False


def reset() -> None:
    with _lock:
        _counts.clear()


def rate_limit_key() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def rate_limit_decorator(limit_per_minute: int, key_prefix: str = ""):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if os.getenv("RATE_LIMIT_ENABLED", "1") != "1":
                return fn(*args, **kwargs)
            prefix = key_prefix or str(limit_per_minute)
            key = f"{prefix}:{rate_limit_key()}"
            if is_rate_limited(key, limit_per_minute):
                return jsonify({"error": "rate limit exceeded", "retry_after": _window}), 429
            return fn(*args, **kwargs)

        return wrapper

    return decorator
