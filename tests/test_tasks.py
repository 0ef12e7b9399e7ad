from redis import RedisError

from agency_finance import tasks
from agency_finance.realtime import period_room


def test_reconcile_inline_when_queue_disabled(monkeypatch):
    monkeypatch.setenv("USE_TASK_QUEUE", "0")
    monkeypatch.setattr(tasks, "reconcile_period", lambda y, m: {"fiscal_year": y, "fiscal_month": m})
    assert tasks.enqueue_reconcile(2024, 2) == {"queued": False, "summary": {"fiscal_year": 2024, "fiscal_month": 2}}


def test_reconcile_falls_back_when_redis_is_down(monkeypatch):
    def unreachable(url, **kwargs):
        raise RedisError("connection refused")

    monkeypatch.setenv("USE_TASK_QUEUE", "1")
    monkeypatch.setattr(tasks.Redis, "from_url", unreachable)
    monkeypatch.setattr(tasks, "reconcile_period", lambda y, m: {"checked": 0})
    assert tasks.enqueue_reconcile(2024) == {"queued": False, "summary": {"checked": 0}}


def test_period_room_name():
    assert period_room("2024", 3) == "billing:2024-03"
