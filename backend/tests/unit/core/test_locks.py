"""
Unit tests for locks.py.

Coverage:
1) Process-local fallback when Redis is unavailable
2) Redis SET NX EX acquisition and token-checked release
3) Busy lock handling
4) Non-blocking reminder tick lock
5) Idle local locks are dropped and failed Redis connects back off
"""

import threading
from unittest.mock import ANY, MagicMock

import pytest
from redis.exceptions import RedisError

from studio_booking.core import locks
from studio_booking.core.exceptions import CapacityLockBusyException

# Captured before the autouse fixture swaps it out
_real_get_sync_redis = locks._get_sync_redis


class TestLocalFallback:
    def test_holds_local_lock_inside_block(self):
        with locks.capacity_lock("local-1"):
            assert locks._LOCAL_LOCKS["local-1"].lock.locked()
        assert "local-1" not in locks._LOCAL_LOCKS

    def test_releases_on_error(self):
        with pytest.raises(RuntimeError):
            with locks.capacity_lock("local-2"):
                raise RuntimeError("boom")
        assert "local-2" not in locks._LOCAL_LOCKS

    def test_busy_after_wait(self):
        held = locks._checkout_local_lock("local-3")
        held.acquire()
        try:
            with pytest.raises(CapacityLockBusyException):
                with locks.capacity_lock("local-3", wait_s=0.01):
                    pass
            assert locks._LOCAL_LOCKS["local-3"].users == 1
        finally:
            held.release()
            locks._return_local_lock("local-3")
        assert "local-3" not in locks._LOCAL_LOCKS

    def test_waiter_proceeds_once_released(self):
        held = locks._checkout_local_lock("local-4")
        held.acquire()
        timer = threading.Timer(0.05, held.release)
        timer.start()
        with locks.capacity_lock("local-4", wait_s=2):
            pass
        timer.join()
        locks._return_local_lock("local-4")
        assert "local-4" not in locks._LOCAL_LOCKS

    def test_idle_locks_do_not_accumulate(self):
        for n in range(50):
            with locks.capacity_lock(f"many-{n}"):
                pass
        assert not any(key.startswith("many-") for key in locks._LOCAL_LOCKS)


class TestRedisLock:
    def test_acquire_and_release(self, monkeypatch):
        mock_redis = MagicMock()
        mock_redis.set.return_value = True
        monkeypatch.setattr(locks, "_get_sync_redis", lambda: mock_redis)

        with locks.capacity_lock("ABC123", ttl_s=45):
            pass

        key = "studio_booking:lock:session:ABC123:capacity"
        mock_redis.set.assert_called_once_with(key, ANY, nx=True, ex=45)
        token = mock_redis.set.call_args.args[1]
        mock_redis.eval.assert_called_once_with(locks._RELEASE_SCRIPT, 1, key, token)

    def test_held_elsewhere_raises_busy(self, monkeypatch):
        mock_redis = MagicMock()
        mock_redis.set.return_value = False
        monkeypatch.setattr(locks, "_get_sync_redis", lambda: mock_redis)

        with pytest.raises(CapacityLockBusyException):
            with locks.capacity_lock("ABC123", wait_s=0):
                pass
        mock_redis.eval.assert_not_called()

    def test_redis_error_falls_back_to_local(self, monkeypatch):
        mock_redis = MagicMock()
        mock_redis.set.side_effect = RedisError("connection reset")
        monkeypatch.setattr(locks, "_get_sync_redis", lambda: mock_redis)

        with locks.capacity_lock("redis-down"):
            assert locks._LOCAL_LOCKS["redis-down"].locked()
        mock_redis.eval.assert_not_called()

    def test_release_error_is_swallowed(self, monkeypatch):
        mock_redis = MagicMock()
        mock_redis.set.return_value = True
        mock_redis.eval.side_effect = RedisError("gone")
        monkeypatch.setattr(locks, "_get_sync_redis", lambda: mock_redis)

        with locks.capacity_lock("release-fails"):
            pass


class TestReminderTickLock:
    def test_second_entry_does_not_acquire(self):
        with locks.reminder_tick_lock() as outer:
            assert outer is True
            with locks.reminder_tick_lock() as inner:
                assert inner is False
        with locks.reminder_tick_lock() as again:
            assert again is True


class TestRedisConnection:
    def test_failed_connect_is_not_retried_immediately(self, monkeypatch):
        redis_cls = MagicMock()
        redis_cls.from_url.return_value.ping.side_effect = RedisError("connection refused")
        monkeypatch.setattr(locks, "Redis", redis_cls)
        monkeypatch.setattr(locks, "_SYNC_REDIS", None)
        monkeypatch.setattr(locks, "_redis_retry_after", 0.0)

        assert _real_get_sync_redis() is None
        assert _real_get_sync_redis() is None
        assert redis_cls.from_url.call_count == 1

        monkeypatch.setattr(locks, "_redis_retry_after", 0.0)
        assert _real_get_sync_redis() is None
        assert redis_cls.from_url.call_count == 2

    def test_connected_client_is_reused(self, monkeypatch):
        redis_cls = MagicMock()
        monkeypatch.setattr(locks, "Redis", redis_cls)
        monkeypatch.setattr(locks, "_SYNC_REDIS", None)
        monkeypatch.setattr(locks, "_redis_retry_after", 0.0)

        first = _real_get_sync_redis()
        assert first is redis_cls.from_url.return_value
        assert _real_get_sync_redis() is first
        assert redis_cls.from_url.call_count == 1
