from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studio_booking.models.provider import ServiceEntry


class DayScheduleEntry(BaseModel):
    """One weekday as the mobile client sends it."""

    model_config = ConfigDict(populate_by_name=True)

    day: str
    enabled: bool = False
    start_time: str = Field("09:00", alias="startTime")
    end_time: str = Field("17:00", alias="endTime")


class ProviderSettingsUpdate(BaseModel):
    business_name: str | None = None
    time_zone: str | None = None
    work_schedule: list[DayScheduleEntry] | None = None
    services: list[ServiceEntry] | None = None


class ProviderSettingsPublic(BaseModel):
    provider_id: str
    business_name: str | None = None
    time_zone: str
    work_schedule: list[DayScheduleEntry]
    services: list[ServiceEntry]
    updated_at: datetime
