from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class SetAvailabilityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_of_week: int = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")  # HH:MM
    end_time: str = Field(alias="endTime")  # HH:MM, 24:00 allowed


class TimeRangeInfo(BaseModel):
    start_time: str
    end_time: str


class FreeSlotsResponse(BaseModel):
    service_id: int
    date: date
    day_of_week: int
    slots: list[TimeRangeInfo]
