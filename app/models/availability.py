from sqlalchemy import CheckConstraint, Index
from sqlmodel import Field, SQLModel


class AvailabilityWindow(SQLModel, table=True):
    """Weekly recurring window; day_of_week is 0 (Sunday) .. 6 (Saturday)."""

    __tablename__ = "availability_windows"
    __table_args__ = (
        Index("ix_availability_windows_service_day", "service_id", "day_of_week"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_windows_day"),
        CheckConstraint("start_minute < end_minute", name="ck_availability_windows_range"),
    )
    id: int | None = Field(default=None, primary_key=True)
    service_id: int = Field(foreign_key="services.id")
    day_of_week: int
    start_minute: int
    end_minute: int


class AvailabilityWindowPublic(SQLModel):
    id: int
    service_id: int
    day_of_week: int
    start_time: str  # HH:MM
    end_time: str  # HH:MM
