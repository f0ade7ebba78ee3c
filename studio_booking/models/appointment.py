from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Appointment(SQLModel, table=True):
    """A committed session. Time fields are never updated; a reschedule is delete + recreate."""

    __tablename__ = "appointments"
    __table_args__ = (CheckConstraint("start_utc < end_utc", name="ck_appointments_start_before_end"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(
        foreign_key="provider_settings.provider_id", ondelete="CASCADE", index=True, max_length=64
    )
    client_id: str = Field(index=True, max_length=64)
    title: str = Field(max_length=255)
    description: str | None = None
    service_name: str | None = Field(default=None, max_length=255)
    price: int | None = None  # minor currency units
    start_utc: datetime = Field(index=True, sa_type=DateTime())
    end_utc: datetime = Field(sa_type=DateTime())
    status: str = Field(default=AppointmentStatus.PENDING.value, index=True, max_length=16)
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class AppointmentCreate(SQLModel):
    client_id: str
    start_utc: datetime
    end_utc: datetime
    title: str
    description: str | None = None
    service_name: str | None = None
    price: int | None = None


class AppointmentPublic(SQLModel):
    id: int
    provider_id: str
    client_id: str
    title: str
    description: str | None = None
    service_name: str | None = None
    price: int | None = None
    start_utc: datetime
    end_utc: datetime
    status: AppointmentStatus
    created_at: datetime
