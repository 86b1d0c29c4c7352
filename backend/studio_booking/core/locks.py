"""
Mutual exclusion helpers.

``capacity_lock`` serializes admissions against one session. It prefers a
Redis ``SET NX EX`` lock so API processes and Celery workers share it, and
falls back to a process-local lock when Redis cannot be reached.

``reminder_tick_lock`` keeps reminder scan ticks from overlapping inside one
process. It is deliberately process-local: ticks assume a single active
scheduler instance.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional
import uuid

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import CapacityLockBusyException

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, "_LocalLock"] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()

_TICK_LOCK = threading.Lock()

_POLL_INTERVAL_S = 0.05

# After a failed connect, skip Redis until this monotonic time
_REDIS_RETRY_INTERVAL_S = 30.0
_redis_retry_after = 0.0

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _lock_key(session_id: str) -> str:
    return f"studio_booking:lock:session:{session_id}:capacity"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS, _redis_retry_after
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    if time.monotonic() < _redis_retry_after:
        return None
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        if time.monotonic() < _redis_retry_after:
            return None
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=0.5,
                socket_timeout=0.5,
            )
            client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("capacity_lock_redis_unavailable: %s", exc)
            _redis_retry_after = time.monotonic() + _REDIS_RETRY_INTERVAL_S
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


class _LocalLock:
    """A per-session lock plus the number of callers holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


def _checkout_local_lock(session_id: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(session_id)
        if entry is None:
            entry = _LocalLock()
            _LOCAL_LOCKS[session_id] = entry
        entry.users += 1
        return entry.lock


def _return_local_lock(session_id: str) -> None:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS[session_id]
        entry.users -= 1
        if entry.users == 0:
            del _LOCAL_LOCKS[session_id]


def _acquire_redis(client: Redis, session_id: str, ttl_s: int, wait_s: float) -> Optional[str]:
    token = uuid.uuid4().hex
    deadline = time.monotonic() + wait_s
    while True:
        if client.set(_lock_key(session_id), token, nx=True, ex=ttl_s):
            return token
        if time.monotonic() >= deadline:
            return None
        time.sleep(_POLL_INTERVAL_S)


@contextmanager
def capacity_lock(
    session_id: str,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> Iterator[None]:
    """
    Hold the capacity lock for ``session_id`` for the duration of the block.

    Raises:
        CapacityLockBusyException: If the lock could not be acquired within wait_s
    """
    ttl = ttl_s if ttl_s is not None else settings.capacity_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.capacity_lock_wait_seconds

    client = _get_sync_redis()
    token: Optional[str] = None
    if client is not None:
        try:
            token = _acquire_redis(client, session_id, ttl, wait)
        except RedisError as exc:
            prometheus_metrics.record_capacity_lock("acquire", "error")
            logger.warning(
                "capacity_lock_redis_failed",
                extra={"session_id": session_id, "error": str(exc)},
            )
            client = None
        else:
            if token is None:
                prometheus_metrics.record_capacity_lock("acquire", "blocked")
                raise CapacityLockBusyException(session_id)

    if client is not None and token is not None:
        prometheus_metrics.record_capacity_lock("acquire", "success")
        try:
            yield
        finally:
            try:
                client.eval(_RELEASE_SCRIPT, 1, _lock_key(session_id), token)
                prometheus_metrics.record_capacity_lock("release", "success")
            except RedisError as exc:
                # The TTL expires the key if the release never lands
                prometheus_metrics.record_capacity_lock("release", "error")
                logger.warning(
                    "capacity_lock_release_failed",
                    extra={"session_id": session_id, "error": str(exc)},
                )
        return

    local = _checkout_local_lock(session_id)
    try:
        if not local.acquire(timeout=wait):
            prometheus_metrics.record_capacity_lock("acquire", "blocked")
            raise CapacityLockBusyException(session_id)
        prometheus_metrics.record_capacity_lock("acquire", "local")
        try:
            yield
        finally:
            local.release()
    finally:
        _return_local_lock(session_id)


@contextmanager
def reminder_tick_lock() -> Iterator[bool]:
    """
    Try to enter the reminder tick critical section without blocking.

    Yields True when this caller owns the tick, False when a tick is already
    running in this process.
    """
    acquired = _TICK_LOCK.acquire(blocking=False)
    try:
        yield acquired
    finally:
        if acquired:
            _TICK_LOCK.release()
