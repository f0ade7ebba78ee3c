from datetime import UTC, datetime

from sqlalchemy import DateTime, Text
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class ServiceEntry(SQLModel):
    """One item of a provider's service catalogue, as stored and as edited."""

    name: str = Field(min_length=1)
    duration: int = Field(default=60, gt=0)  # minutes
    price: int = Field(default=0, ge=0)  # minor currency units, per sitting
    sittings: int = Field(default=1, ge=1)
    description: str | None = None


class ProviderSettings(SQLModel, table=True):
    """Working hours, zone and service catalogue of one provider.

    work_schedule and services are JSON text, in the shape the mobile client edits them.
    The row doubles as the lock target when committing an appointment.
    """

    __tablename__ = "provider_settings"
    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(unique=True, index=True, max_length=64)
    business_name: str | None = None
    time_zone: str = Field(default="UTC", max_length=64)
    work_schedule: str = Field(default="[]", sa_type=Text)
    services: str = Field(default="[]", sa_type=Text)
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
