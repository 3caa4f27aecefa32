from pydantic import BaseModel, ConfigDict, Field

from app.models.service import ServiceType


class CreateServiceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    type: ServiceType
    duration_minutes: int = Field(alias="durationMinutes")
