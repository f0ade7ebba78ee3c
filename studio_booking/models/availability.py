from datetime import date, datetime

from sqlmodel import SQLModel

from studio_booking.services.cadence import Frequency


class AvailabilityQuery(SQLModel):
    """Availability request. Either explicit duration/price/sittings or a service_name
    from the provider's catalogue; explicit values win over the catalogue."""

    frequency: Frequency
    start_anchor: date
    duration_minutes: int | None = None
    price: int | None = None
    sittings: int | None = None
    service_name: str | None = None
    time_zone: str | None = None  # defaults to the provider's zone
    horizon_days: int | None = None


class AvailabilityPublic(SQLModel):
    dates: list[datetime]
    total_cost: int
    sittings: int
    duration_minutes: int
    frequency: Frequency
