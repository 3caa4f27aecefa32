import asyncio
import gc
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import DBAPIError

from app.core.exceptions import LockTimeout
from app.services.locks import KeyedLocks, advisory_key, advisory_xact_lock


async def test_same_key_is_serialized() -> None:
    locks = KeyedLocks()
    events: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold(("booking", 1), timeout=1):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


async def test_different_keys_do_not_block() -> None:
    locks = KeyedLocks()
    async with locks.hold(("booking", 1), timeout=1):
        async with locks.hold(("booking", 2), timeout=0.05):
            pass


async def test_bounded_wait_raises_lock_timeout() -> None:
    locks = KeyedLocks()
    held = asyncio.Event()
    release = asyncio.Event()

    async def holder() -> None:
        async with locks.hold("key", timeout=1):
            held.set()
            await release.wait()

    task = asyncio.create_task(holder())
    await held.wait()
    with pytest.raises(LockTimeout):
        async with locks.hold("key", timeout=0.05):
            pass
    release.set()
    await task

    # Free again after the holder is done
    async with locks.hold("key", timeout=0.05):
        pass


async def test_lock_released_on_error() -> None:
    locks = KeyedLocks()
    with pytest.raises(RuntimeError):
        async with locks.hold("key", timeout=1):
            raise RuntimeError("boom")
    async with locks.hold("key", timeout=0.05):
        pass


async def test_idle_keys_are_dropped() -> None:
    locks = KeyedLocks()
    async with locks.hold("key", timeout=1):
        assert len(locks) == 1
    gc.collect()
    assert len(locks) == 0


class PgSession:
    """Records statements as a PostgreSQL-bound session would run them."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.statements: list[str] = []
        self.rolled_back = False
        self._fail_with = fail_with

    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name="postgresql"))

    async def execute(self, statement):
        self.statements.append(str(statement))
        if self._fail_with is not None and "pg_advisory_xact_lock" in str(statement):
            raise self._fail_with

    async def rollback(self) -> None:
        self.rolled_back = True


class LockNotAvailable(Exception):
    sqlstate = "55P03"


def test_advisory_key_is_stable_and_distinct() -> None:
    key = ("booking", 7, date(2025, 1, 1))
    assert advisory_key(key) == advisory_key(("booking", 7, date(2025, 1, 1)))
    assert advisory_key(key) != advisory_key(("booking", 7, date(2025, 1, 2)))
    assert advisory_key(key) != advisory_key(("window", 7, 3))
    assert -(2**63) <= advisory_key(key) < 2**63


async def test_advisory_lock_is_noop_on_sqlite(session) -> None:
    await advisory_xact_lock(session, ("window", 1, 3), timeout=1)
    assert not session.in_transaction()


async def test_advisory_lock_on_postgresql() -> None:
    session = PgSession()
    await advisory_xact_lock(session, ("window", 1, 3), timeout=0.5)
    assert "set_config" in session.statements[0]
    assert "pg_advisory_xact_lock" in session.statements[1]


async def test_advisory_lock_timeout_raises_lock_timeout() -> None:
    session = PgSession(fail_with=DBAPIError("SELECT pg_advisory_xact_lock(1)", {}, LockNotAvailable()))
    with pytest.raises(LockTimeout):
        await advisory_xact_lock(session, ("booking", 1, date(2025, 1, 1)), timeout=0.05)
    assert session.rolled_back


async def test_advisory_lock_other_errors_propagate() -> None:
    session = PgSession(fail_with=DBAPIError("SELECT pg_advisory_xact_lock(1)", {}, RuntimeError("gone")))
    with pytest.raises(DBAPIError):
        await advisory_xact_lock(session, ("booking", 1, date(2025, 1, 1)), timeout=0.05)
    assert not session.rolled_back
