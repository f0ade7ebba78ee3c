from studio_booking.models.provider import ProviderSettings, ServiceEntry
from studio_booking.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
)

__all__ = [
    "ProviderSettings",
    "ServiceEntry",
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "AppointmentStatus",
]
