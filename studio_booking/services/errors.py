"""Expected, user-facing outcomes of the booking engine.

Routes let these propagate; ``studio_booking.main`` turns them into JSON responses.
"""


class BookingError(Exception):
    status_code = 400
    code = "booking_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self.args[0])


class InvalidRequest(BookingError):
    """The request is malformed and was rejected before any search."""

    status_code = 422
    code = "invalid_request"


class InsufficientAvailability(BookingError):
    """Not enough open, conflict-free slots within the search horizon."""

    status_code = 409
    code = "insufficient_availability"


class SlotNoLongerAvailable(BookingError):
    """The requested time now overlaps another appointment."""

    status_code = 409
    code = "slot_no_longer_available"


class ProviderNotFound(BookingError):
    """No settings are stored for this provider."""

    status_code = 404
    code = "provider_not_found"


class AppointmentNotFound(BookingError):
    """Appointment not found for this provider."""

    status_code = 404
    code = "appointment_not_found"


class ProviderConfigurationError(BookingError):
    """Stored provider settings are unusable. A defect to fix, not a booking outcome."""

    status_code = 500
    code = "provider_misconfigured"


class ScheduleConfigurationError(ProviderConfigurationError):
    """The provider's working-hours table is inconsistent."""

    code = "schedule_misconfigured"


class ServiceCatalogueError(ProviderConfigurationError):
    """The provider's stored service catalogue cannot be read."""

    code = "service_catalogue_misconfigured"
