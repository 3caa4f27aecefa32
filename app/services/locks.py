import asyncio
import hashlib
import logging
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from weakref import WeakValueDictionary

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import LockTimeout

logger = logging.getLogger(__name__)

# lock_not_available
_PG_LOCK_TIMEOUT = "55P03"


class KeyedLocks:
    """One asyncio.Lock per conflict domain key.

    Unrelated keys never wait on each other. Entries disappear once no
    coroutine holds or waits on the lock.
    """

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[Hashable, asyncio.Lock] = WeakValueDictionary()

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable, timeout: float) -> AsyncIterator[None]:
        lock = self._lock_for(key)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out after %.1fs waiting for %s", timeout, key)
            raise LockTimeout() from None
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._locks)


domain_locks = KeyedLocks()


def advisory_key(key: Hashable) -> int:
    """Signed 64-bit id of a domain key, the same in every process."""
    digest = hashlib.blake2b(repr(key).encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


async def advisory_xact_lock(session: AsyncSession, key: Hashable, timeout: float) -> None:
    """Take the PostgreSQL transaction-level advisory lock for ``key``.

    The in-process lock only serializes one worker; this one covers every
    worker sharing the database and is released when the session's
    transaction commits or rolls back. A no-op on other databases.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    try:
        await session.execute(select(func.set_config("lock_timeout", f"{max(1, int(timeout * 1000))}ms", True)))
        await session.execute(select(func.pg_advisory_xact_lock(advisory_key(key))))
    except DBAPIError as e:
        if getattr(e.orig, "sqlstate", None) != _PG_LOCK_TIMEOUT:
            raise
        await session.rollback()
        logger.warning("Timed out after %.1fs waiting for advisory lock %s", timeout, key)
        raise LockTimeout() from None
