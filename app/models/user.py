import enum
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Aware UTC for TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(UTC)


class Role(str, enum.Enum):
    USER = "USER"
    SERVICE_PROVIDER = "SERVICE_PROVIDER"


class UserBase(SQLModel):
    name: str
    email: str = Field(unique=True, index=True)
    role: Role


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class UserCreate(SQLModel):
    name: str
    email: str
    password: str
    role: Role


class UserPublic(SQLModel):
    id: int
    name: str
    email: str
    role: Role
