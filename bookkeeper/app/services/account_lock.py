"""
Per-account recompute locking.

Every fetch-replay-persist of an account runs inside a Redis lock keyed
by book and account. Different accounts use different keys and never
contend.
"""

import logging
from contextlib import asynccontextmanager

from redis.exceptions import LockError, RedisError

import bookkeeper.app.core.redis_client as redis_client_module
from bookkeeper.app.core.config import settings
from bookkeeper.app.core.exceptions import AccountBusyError, StoreUnavailable
from bookkeeper.app.models.ledger_enums import LedgerBook

logger = logging.getLogger("bookkeeper.ledger.lock")

# Redis key prefix for recompute locks
RECOMPUTE_LOCK_PREFIX = "ledger:recompute:"


def lock_key(book: LedgerBook, account_id: str) -> str:
    return f"{RECOMPUTE_LOCK_PREFIX}{LedgerBook(book).value}:{account_id}"


@asynccontextmanager
async def account_lock(book: LedgerBook, account_id: str):
    """
    Hold the recompute lock for one account.

    Waits at most ``recompute_lock_wait_seconds``; the lock expires on its
    own after ``recompute_lock_timeout_seconds`` if the holder dies.

    Raises:
        AccountBusyError: lock not acquired within the wait
        StoreUnavailable: Redis unreachable
    """
    book = LedgerBook(book)
    lock = redis_client_module.redis_client.lock(
        lock_key(book, account_id),
        timeout=settings.recompute_lock_timeout_seconds,
        blocking_timeout=settings.recompute_lock_wait_seconds,
    )

    try:
        acquired = await lock.acquire()
    except LockError as exc:
        raise AccountBusyError(book.value, account_id) from exc
    except RedisError as exc:
        raise StoreUnavailable("recompute lock", str(exc)) from exc
    if not acquired:
        raise AccountBusyError(book.value, account_id)

    try:
        yield
    finally:
        try:
            await lock.release()
        except LockError:
            # Expired mid-recompute; another holder may already own it
            logger.warning("Recompute lock for %s '%s' expired before release", book.value, account_id)
        except RedisError as exc:
            logger.warning("Could not release recompute lock for %s '%s': %s", book.value, account_id, exc)
