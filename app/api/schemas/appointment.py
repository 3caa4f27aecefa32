import re
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class BookAppointmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_id: int = Field(alias="serviceId")
    date: date  # YYYY-MM-DD
    start_time: str = Field(alias="startTime")  # HH:MM
    end_time: str = Field(alias="endTime")  # HH:MM

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        # pydantic alone would also take unix timestamps
        if isinstance(v, date):
            return v
        if not isinstance(v, str) or not _DATE_RE.fullmatch(v):
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v
