import json
import os
import redis

from agency_finance.utils.logger import get_logger

REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
_client = None
log = get_logger(__name__)


def r():
    global _client
    if _client is None:
        _client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
    return _client


def get_json(key: str):
    try:
        cached = r().get(key)
    except redis.RedisError as e:
        log.warning("cache read failed for %s: %s", key, e)
        return None
    return json.loads(cached) if cached else None


def set_json(key: str, value, ttl: int) -> None:
    try:
        r().setex(key, ttl, json.dumps(value, default=str))
    except redis.RedisError as e:
        log.warning("cache write failed for %s: %s", key, e)


def delete(*keys: str) -> None:
    try:
        r().delete(*keys)
    except redis.RedisError as e:
        log.warning("cache delete failed for %s: %s", keys, e)
