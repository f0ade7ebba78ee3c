from datetime import datetime

from pydantic import BaseModel, Field

from studio_booking.models.appointment import AppointmentStatus


class BookAppointmentRequest(BaseModel):
    client_id: str = Field(min_length=1, max_length=64)
    start_utc: datetime
    end_utc: datetime
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    service_name: str | None = None
    price: int | None = None


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class ProjectSitting(BaseModel):
    start_utc: datetime
    end_utc: datetime


class BookProjectRequest(BaseModel):
    """Every sitting of one accepted proposal, booked together."""

    client_id: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    service_name: str | None = None
    price: int | None = None  # per sitting
    sittings: list[ProjectSitting] = Field(min_length=1)


class ProjectBookedPublic(BaseModel):
    count: int
    appointment_ids: list[int]
