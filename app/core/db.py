from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings

_ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def to_async_url(url: str) -> URL:
    """Swap the sync driver for its async twin.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so they
    are stripped; SSL is enabled via connect_args instead.
    """
    parsed = make_url(url)
    query = {k: v for k, v in parsed.query.items() if k not in ("sslmode", "channel_binding")}
    return parsed.set(drivername=_ASYNC_DRIVERS.get(parsed.drivername, parsed.drivername), query=query)


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    async_url = to_async_url(url)
    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if async_url.drivername == "postgresql+asyncpg":
        ssl = make_url(url).query.get("sslmode") == "require"
        kwargs.update(pool_size=5, max_overflow=10, connect_args={"ssl": ssl})
    return create_async_engine(async_url, **kwargs)


def make_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = make_engine(settings.database_url, echo=settings.env == "development" and settings.log_level == "DEBUG")
async_session_maker = make_session_maker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    import app.models  # noqa: F401 - register tables

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
