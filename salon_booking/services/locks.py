# salon_booking/services/locks.py
"""
Per-key mutual exclusion for the write paths.

Keys are scoped to one calendar day ("booking:2026-03-14"), so writers for the
same day serialize while writers for other days run in parallel.

Backends:
- LocalDateLocks: threading locks, valid within one process
- RedisDateLocks: redis-py Lock with a lease, shared by all workers
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import ContextManager, Iterator, Optional, Protocol

from redis import Redis
from redis.exceptions import LockError

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    """The lock could not be acquired within the timeout."""

    def __init__(self, key: str, timeout: float):
        super().__init__(f"Timed out after {timeout}s waiting for lock {key}")
        self.key = key
        self.timeout = timeout


def booking_lock_key(day: date, resource_id: Optional[int] = None) -> str:
    key = f"booking:{day.isoformat()}"
    if resource_id is not None:
        key = f"{key}:{resource_id}"
    return key


def waitlist_lock_key(day: date) -> str:
    return f"waitlist:{day.isoformat()}"


class LockProvider(Protocol):

    def hold(self, key: str) -> ContextManager[None]: ...


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        # holders plus waiters; the entry is dropped when it reaches 0
        self.users = 0


class LocalDateLocks:
    """In-process locks, one per key, alive only while held or awaited."""

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyLock] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
            return entry.lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self.timeout):
                raise LockTimeout(key, self.timeout)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)


class RedisDateLocks:
    """
    Distributed locks backed by redis-py's Lock.

    The lease bounds how long a crashed worker can keep a day locked; it must
    exceed the longest critical section (one short transaction).
    """

    KEY_PREFIX = "lock"

    def __init__(self, redis: Redis, timeout: float = 5.0, lease: float = 10.0):
        self.redis = redis
        self.timeout = timeout
        self.lease = lease

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        name = f"{self.KEY_PREFIX}:{key}"
        lock = self.redis.lock(name, timeout=self.lease, blocking_timeout=self.timeout)
        if not lock.acquire():
            raise LockTimeout(key, self.timeout)
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Lease expired while held; another worker may own it now
                logger.error(f"Lock {name} expired before release")
