import os
from datetime import date
from uuid import uuid4

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test-unused.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401 - register tables
from app.core.db import get_session, make_engine, make_session_maker  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.models import Role, Service, ServiceType, User  # noqa: E402

# 2025-01-01 is a Wednesday, day_of_week 3
WEDNESDAY = date(2025, 1, 1)
THURSDAY = date(2025, 1, 2)


@pytest.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return make_session_maker(engine)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
async def client(session_maker):
    async def _get_session():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_maker):
    async def _make(role: Role = Role.USER, name: str = "someone") -> User:
        async with session_maker() as s:
            user = User(
                name=name,
                email=f"{name}-{uuid4().hex[:8]}@example.com",
                role=role,
                hashed_password="unused",
            )
            s.add(user)
            await s.commit()
            await s.refresh(user)
            return user

    return _make


@pytest.fixture
def make_service(session_maker):
    async def _make(provider: User, duration_minutes: int = 30) -> Service:
        async with session_maker() as s:
            service = Service(
                provider_id=provider.id,
                name="Physiotherapy",
                type=ServiceType.MEDICAL,
                duration_minutes=duration_minutes,
            )
            s.add(service)
            await s.commit()
            await s.refresh(service)
            return service

    return _make


@pytest.fixture
async def provider(make_user):
    return await make_user(Role.SERVICE_PROVIDER, "provider")


@pytest.fixture
async def service(make_service, provider):
    return await make_service(provider)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}
