import enum
from datetime import date as date_type
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, SQLModel

from app.models.user import _utc_now


class AppointmentStatus(str, enum.Enum):
    BOOKED = "BOOKED"
    CANCELLED = "CANCELLED"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_provider_date", "provider_id", "date"),
        CheckConstraint("start_minute < end_minute", name="ck_appointments_range"),
    )
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    provider_id: int = Field(foreign_key="users.id")
    service_id: int = Field(foreign_key="services.id", index=True)
    date: date_type
    start_minute: int
    end_minute: int
    status: AppointmentStatus = Field(default=AppointmentStatus.BOOKED)
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


class AppointmentPublic(SQLModel):
    id: int
    user_id: int
    provider_id: int
    service_id: int
    date: date_type
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    status: AppointmentStatus
    created_at: datetime
