"""
Background tasks for RQ (Redis Queue).

Run worker: rq worker -u $REDIS_URL --with-scheduler
"""

from __future__ import annotations
import os
from typing import Optional

from redis import Redis, RedisError
from rq import Queue

from agency_finance.services.reconcile_service import reconcile_period
from agency_finance.utils.cache import REDIS_URL
from agency_finance.utils.logger import get_logger

log = get_logger(__name__)


def enqueue_reconcile(year: int, month: Optional[int] = None) -> dict:
    """
    Queue a reconciliation run when USE_TASK_QUEUE=1, otherwise run it here.
    Returns {"queued": True, "job_id"} or {"queued": False, "summary"}.
    """
    use_queue = os.getenv("USE_TASK_QUEUE", "0") == "1"
    if not use_queue:
        return {"queued": False, "summary": reconcile_period(year, month)}

    try:
        conn = Redis.from_url(REDIS_URL, decode_responses=False)
        q = Queue("default", connection=conn)
        job = q.enqueue(reconcile_period, year, month, job_timeout="5m")
        return {"queued": True, "job_id": job.id}
    except RedisError as e:
        log.warning("RQ enqueue failed (%s), running reconcile sync", e)
        return {"queued": False, "summary": reconcile_period(year, month)}
