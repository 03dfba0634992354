# salon_booking/deps.py
"""
FastAPI dependencies for the write paths.

The lock provider is process-wide: every coordinator in a worker must share
the same LocalDateLocks instance, and with lock_backend="redis" every worker
shares the Redis keys.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from .config import settings
from .database import get_session_factory
from .redis_client import redis_client
from .services.booking import BookingCoordinator
from .services.locks import LocalDateLocks, LockProvider, RedisDateLocks
from .services.waitlist import WaitlistManager


@lru_cache
def get_lock_provider() -> LockProvider:
    if settings.lock_backend == "redis":
        return RedisDateLocks(
            redis_client,
            timeout=settings.lock_timeout_seconds,
            lease=settings.lock_lease_seconds,
        )
    if settings.lock_backend != "local":
        raise ValueError(f"Unknown lock_backend: {settings.lock_backend}")
    return LocalDateLocks(timeout=settings.lock_timeout_seconds)


def get_coordinator(
    session_factory: sessionmaker = Depends(get_session_factory),
    locks: LockProvider = Depends(get_lock_provider),
) -> BookingCoordinator:
    return BookingCoordinator(
        session_factory,
        locks,
        reference_max_attempts=settings.reference_max_attempts,
    )


def get_waitlist_manager(
    session_factory: sessionmaker = Depends(get_session_factory),
    locks: LockProvider = Depends(get_lock_provider),
) -> WaitlistManager:
    return WaitlistManager(session_factory, locks)
