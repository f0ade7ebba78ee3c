import logging
from datetime import UTC, date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from studio_booking.models.provider import ProviderSettings
from studio_booking.services.conflicts import ConflictIndex
from studio_booking.services.errors import (
    AppointmentNotFound,
    InvalidRequest,
    ProviderNotFound,
    SlotNoLongerAvailable,
)
from studio_booking.services.slot_service import get_booked_intervals

logger = logging.getLogger(__name__)

# status -> statuses it may move to; time fields never change
_STATUS_TRANSITIONS: dict[AppointmentStatus, set[AppointmentStatus]] = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.COMPLETED: set(),
}


def _to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


async def _lock_provider(session: AsyncSession, provider_id: str) -> None:
    """Row-lock the provider so concurrent commits for the same calendar run one at a time."""
    result = await session.execute(
        select(ProviderSettings.id)
        .where(ProviderSettings.provider_id == provider_id)
        .with_for_update()
    )
    if result.scalar_one_or_none() is None:
        raise ProviderNotFound(f"no settings stored for provider {provider_id}")


def _interval(data: AppointmentCreate) -> tuple[datetime, datetime]:
    start = _to_naive_utc(data.start_utc)
    end = _to_naive_utc(data.end_utc)
    if start >= end:
        raise InvalidRequest("start_utc must be before end_utc")
    if not data.title or not data.title.strip():
        raise InvalidRequest("title is required")
    return start, end


def _taken(start: datetime, end: datetime) -> SlotNoLongerAvailable:
    return SlotNoLongerAvailable(f"{start.isoformat()}Z-{end.isoformat()}Z is no longer available")


def _new_appointment(provider_id: str, data: AppointmentCreate, start: datetime, end: datetime) -> Appointment:
    return Appointment(
        provider_id=provider_id,
        client_id=data.client_id,
        title=data.title.strip(),
        description=data.description,
        service_name=data.service_name,
        price=data.price,
        start_utc=start,
        end_utc=end,
    )


async def _insert(
    session: AsyncSession, provider_id: str, appointments: list[Appointment]
) -> list[Appointment]:
    spans = [(a.start_utc, a.end_utc) for a in appointments]
    session.add_all(appointments)
    try:
        await session.flush()
    except IntegrityError as e:
        logger.info("Exclusion constraint rejected commit for provider %s: %s", provider_id, e)
        if len(spans) == 1:
            raise _taken(*spans[0]) from e
        raise SlotNoLongerAvailable(
            f"a sitting of this {len(spans)}-sitting project is no longer available"
        ) from e
    for appointment in appointments:
        await session.refresh(appointment)
    return appointments


async def commit_appointment(
    session: AsyncSession, provider_id: str, data: AppointmentCreate
) -> Appointment:
    """Re-check the interval against current bookings and insert it, as one unit.

    The proposal that produced `data` came from a snapshot that may be stale, so the
    overlap check runs again under the provider lock. A storage-level exclusion
    constraint (PostgreSQL) backs it; hitting it is reported the same way.
    """
    start, end = _interval(data)

    await _lock_provider(session, provider_id)
    taken = await get_booked_intervals(session, provider_id, start, end)
    if taken:
        logger.info(
            "Commit rejected for provider %s: %s-%s overlaps %d appointment(s)",
            provider_id, start.isoformat(), end.isoformat(), len(taken),
        )
        raise _taken(start, end)

    [appointment] = await _insert(session, provider_id, [_new_appointment(provider_id, data, start, end)])
    logger.info(
        "Committed appointment %s for provider %s, client %s at %s",
        appointment.id, provider_id, data.client_id, start.isoformat(),
    )
    return appointment


async def commit_project(
    session: AsyncSession, provider_id: str, items: list[AppointmentCreate]
) -> list[Appointment]:
    """Commit every sitting of an accepted multi-sitting proposal, or none of them.

    One provider lock covers the whole project. If any sitting overlaps a stored
    appointment nothing is added and SlotNoLongerAvailable is raised; the caller's
    rollback leaves storage as it was.
    """
    if not items:
        raise InvalidRequest("a project needs at least one sitting")
    intervals = [_interval(item) for item in items]
    ordered = sorted(intervals)
    for (_, prev_end), (next_start, _) in zip(ordered, ordered[1:]):
        if next_start < prev_end:
            raise InvalidRequest("sittings of one project must not overlap each other")

    await _lock_provider(session, provider_id)
    booked = ConflictIndex(
        await get_booked_intervals(session, provider_id, ordered[0][0], ordered[-1][1])
    )
    for start, end in intervals:
        if booked.overlaps(start, end):
            logger.info(
                "Project commit rejected for provider %s: sitting %s-%s is taken (%d sittings, none booked)",
                provider_id, start.isoformat(), end.isoformat(), len(items),
            )
            raise _taken(start, end)

    appointments = await _insert(
        session,
        provider_id,
        [_new_appointment(provider_id, item, start, end) for item, (start, end) in zip(items, intervals)],
    )
    logger.info(
        "Committed project of %d sittings for provider %s, client %s: %s",
        len(appointments), provider_id, items[0].client_id, [a.id for a in appointments],
    )
    return appointments


async def list_appointments_for_provider(
    session: AsyncSession,
    provider_id: str,
    from_date: date | None = None,
    include_cancelled: bool = False,
) -> list[Appointment]:
    q = select(Appointment).where(Appointment.provider_id == provider_id).order_by(Appointment.start_utc)
    if from_date:
        start = datetime(from_date.year, from_date.month, from_date.day, 0, 0, 0)
        q = q.where(Appointment.end_utc > start)
    if not include_cancelled:
        q = q.where(Appointment.status != AppointmentStatus.CANCELLED.value)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_appointments_for_client(
    session: AsyncSession, client_id: str, from_date: date | None = None
) -> list[Appointment]:
    q = select(Appointment).where(Appointment.client_id == client_id).order_by(Appointment.start_utc)
    if from_date:
        start = datetime(from_date.year, from_date.month, from_date.day, 0, 0, 0)
        q = q.where(Appointment.end_utc > start)
    result = await session.execute(q)
    return list(result.scalars().all())


async def _get_for_provider(session: AsyncSession, provider_id: str, appointment_id: int) -> Appointment:
    result = await session.execute(
        select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.provider_id == provider_id,
        )
    )
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise AppointmentNotFound()
    return appointment


async def update_appointment_status(
    session: AsyncSession, provider_id: str, appointment_id: int, status: AppointmentStatus
) -> Appointment:
    """Move an appointment along pending -> confirmed -> completed, or cancel it.

    Cancelled is terminal: the freed slot may already belong to someone else.
    """
    appointment = await _get_for_provider(session, provider_id, appointment_id)
    current = AppointmentStatus(appointment.status)
    status = AppointmentStatus(status)
    if status is current:
        return appointment
    if status not in _STATUS_TRANSITIONS[current]:
        raise InvalidRequest(f"cannot change status from {current.value} to {status.value}")
    appointment.status = status.value
    await session.flush()
    await session.refresh(appointment)
    logger.info("Appointment %s for provider %s is now %s", appointment_id, provider_id, status.value)
    return appointment


async def delete_appointment(session: AsyncSession, provider_id: str, appointment_id: int) -> None:
    appointment = await _get_for_provider(session, provider_id, appointment_id)
    await session.delete(appointment)
    await session.flush()
    logger.info("Deleted appointment %s for provider %s", appointment_id, provider_id)
