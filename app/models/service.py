import enum
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.models.user import _utc_now


class ServiceType(str, enum.Enum):
    MEDICAL = "MEDICAL"
    HOUSE_HELP = "HOUSE_HELP"
    BEAUTY = "BEAUTY"
    FITNESS = "FITNESS"
    EDUCATION = "EDUCATION"
    OTHER = "OTHER"


class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: int | None = Field(default=None, primary_key=True)
    provider_id: int = Field(foreign_key="users.id", index=True)
    name: str
    type: ServiceType = Field(index=True)
    duration_minutes: int
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class ServiceCreate(SQLModel):
    name: str
    type: ServiceType
    duration_minutes: int


class ServicePublic(SQLModel):
    id: int
    provider_id: int
    name: str
    type: ServiceType
    duration_minutes: int
