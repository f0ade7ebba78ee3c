import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.config import settings
from studio_booking.models.appointment import Appointment, AppointmentStatus
from studio_booking.models.availability import AvailabilityQuery
from studio_booking.services.cadence import Frequency, candidate_dates
from studio_booking.services.conflicts import BookedInterval, ConflictIndex, as_utc
from studio_booking.services.errors import InsufficientAvailability, InvalidRequest
from studio_booking.services.provider_service import find_service, get_provider_settings, load_schedule
from studio_booking.services.work_windows import WorkSchedule, WorkWindowIndex, load_zone

logger = logging.getLogger(__name__)

# Sessions never start off a quarter-hour when "now" is the binding lower bound.
START_GRANULARITY = timedelta(minutes=15)


@dataclass(frozen=True)
class ServiceRequest:
    duration_minutes: int
    price: int
    sittings: int
    frequency: Frequency
    start_anchor: date
    time_zone: str

    @property
    def effective_sittings(self) -> int:
        # a single session is exactly one sitting whatever the service declares
        if Frequency(self.frequency) is Frequency.SINGLE:
            return 1
        return self.sittings


@dataclass(frozen=True)
class AvailabilityResult:
    dates: list[datetime]
    total_cost: int
    sittings: int
    duration_minutes: int
    frequency: Frequency


def _validate(request: ServiceRequest) -> tuple[Frequency, ZoneInfo]:
    try:
        frequency = Frequency(request.frequency)
    except ValueError:
        raise InvalidRequest(f"unknown frequency {request.frequency!r}") from None
    if request.duration_minutes is None or request.duration_minutes <= 0:
        raise InvalidRequest("duration_minutes must be positive")
    if request.sittings is None or request.sittings < 1:
        raise InvalidRequest("sittings must be at least 1")
    if request.price is None or request.price < 0:
        raise InvalidRequest("price must not be negative")
    return frequency, load_zone(request.time_zone)


def _ceil_to_granularity(dt: datetime) -> datetime:
    epoch = datetime(1970, 1, 1, tzinfo=UTC)
    remainder = (dt - epoch) % START_GRANULARITY
    return dt if not remainder else dt + (START_GRANULARITY - remainder)


class _Search:
    """State of one resolution pass: the window index, a working copy of the
    conflict snapshot, and the bounds."""

    def __init__(
        self,
        windows: WorkWindowIndex,
        conflicts: ConflictIndex,
        zone: ZoneInfo,
        duration: timedelta,
        last_date: date,
        not_before: datetime | None,
    ) -> None:
        self.windows = windows
        self.conflicts = conflicts
        self.zone = zone
        self.duration = duration
        self.last_date = last_date
        self.not_before = _ceil_to_granularity(as_utc(not_before)) if not_before else None

    def place(self, d: date) -> datetime | None:
        """Earliest start on `d` whose whole session fits in the open window without conflicts."""
        window = self.windows.open_window(d, self.zone)
        if window is None:
            return None
        open_at, close_at = window
        start = open_at if self.not_before is None else max(open_at, self.not_before)
        while start + self.duration <= close_at:
            blocking = self.conflicts.overlapping(start, start + self.duration)
            if not blocking:
                return start
            start = max(iv.end_utc for iv in blocking)
        return None

    def accept(self, start: datetime) -> None:
        self.conflicts.add(start, start + self.duration)

    def first_open_from(self, d: date) -> tuple[date, datetime]:
        while d <= self.last_date:
            start = self.place(d)
            if start is not None:
                return d, start
            d += timedelta(days=1)
        raise InsufficientAvailability(
            f"no open slot between the anchor and {self.last_date.isoformat()}"
        )


def _resolve_day_by_day(search: _Search, anchor: date, sittings: int) -> list[datetime]:
    # single and consecutive: each sitting takes the next open day after the previous one
    dates: list[datetime] = []
    d = anchor
    for _ in range(sittings):
        found_on, start = search.first_open_from(d)
        search.accept(start)
        dates.append(start)
        d = found_on + timedelta(days=1)
    return dates


def _resolve_by_cycle(
    search: _Search, anchor: date, frequency: Frequency, sittings: int, max_skipped_cycles: int
) -> list[datetime]:
    # weekly/biweekly/monthly keep the cadence date; a blocked date skips the whole cycle
    dates: list[datetime] = []
    skipped = 0
    for d in candidate_dates(anchor, frequency):
        if len(dates) == sittings:
            break
        if d > search.last_date:
            raise InsufficientAvailability(
                f"found {len(dates)} of {sittings} {frequency.value} sittings before "
                f"{search.last_date.isoformat()}"
            )
        start = search.place(d)
        if start is None:
            skipped += 1
            logger.debug("Cycle %s unavailable (%d in a row)", d.isoformat(), skipped)
            if skipped >= max_skipped_cycles:
                raise InsufficientAvailability(
                    f"{skipped} consecutive {frequency.value} cycles unavailable, last on {d.isoformat()}"
                )
            continue
        skipped = 0
        search.accept(start)
        dates.append(start)
    return dates


def resolve(
    schedule: WorkSchedule,
    booked: ConflictIndex | Iterable[tuple[datetime, datetime]],
    request: ServiceRequest,
    *,
    horizon_days: int | None = None,
    max_skipped_cycles: int | None = None,
    not_before: datetime | None = None,
) -> AvailabilityResult:
    """Propose `sittings` conflict-free UTC start times for the request.

    Pure function of its arguments: the booked snapshot is copied, never mutated, and
    the clock is only consulted through `not_before`.
    """
    frequency, zone = _validate(request)
    horizon_days = settings.availability_horizon_days if horizon_days is None else horizon_days
    if horizon_days < 0:
        raise InvalidRequest("horizon_days must not be negative")
    if max_skipped_cycles is None:
        max_skipped_cycles = settings.max_skipped_cycles

    conflicts = booked.copy() if isinstance(booked, ConflictIndex) else ConflictIndex(booked)
    sittings = request.effective_sittings
    search = _Search(
        windows=WorkWindowIndex(schedule),
        conflicts=conflicts,
        zone=zone,
        duration=timedelta(minutes=request.duration_minutes),
        last_date=request.start_anchor + timedelta(days=horizon_days),
        not_before=not_before,
    )
    if frequency in (Frequency.SINGLE, Frequency.CONSECUTIVE):
        dates = _resolve_day_by_day(search, request.start_anchor, sittings)
    else:
        dates = _resolve_by_cycle(search, request.start_anchor, frequency, sittings, max_skipped_cycles)

    logger.debug(
        "Resolved %d %s sitting(s) from %s: %s",
        sittings,
        frequency.value,
        request.start_anchor.isoformat(),
        [d.isoformat() for d in dates],
    )
    return AvailabilityResult(
        dates=dates,
        total_cost=request.price * sittings,
        sittings=sittings,
        duration_minutes=request.duration_minutes,
        frequency=frequency,
    )


def _to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


async def get_booked_intervals(
    session: AsyncSession, provider_id: str, start_inclusive: datetime, end_exclusive: datetime
) -> list[BookedInterval]:
    """Non-cancelled appointments of the provider overlapping the range, as aware UTC intervals."""
    result = await session.execute(
        select(Appointment.start_utc, Appointment.end_utc)
        .where(
            Appointment.provider_id == provider_id,
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.start_utc < _to_naive_utc(end_exclusive),
            Appointment.end_utc > _to_naive_utc(start_inclusive),
        )
        .order_by(Appointment.start_utc)
    )
    return [BookedInterval(as_utc(s), as_utc(e)) for s, e in result.all()]


def build_service_request(provider, query: AvailabilityQuery) -> ServiceRequest:
    """Fill duration/price/sittings from the provider's catalogue where the query leaves them out."""
    duration, price, sittings = query.duration_minutes, query.price, query.sittings
    if query.service_name:
        service = find_service(provider, query.service_name)
        duration = service.duration if duration is None else duration
        price = service.price if price is None else price
        sittings = service.sittings if sittings is None else sittings
    if duration is None:
        raise InvalidRequest("duration_minutes or service_name is required")
    return ServiceRequest(
        duration_minutes=duration,
        price=0 if price is None else price,
        sittings=1 if sittings is None else sittings,
        frequency=query.frequency,
        start_anchor=query.start_anchor,
        time_zone=query.time_zone or provider.time_zone,
    )


async def check_availability(
    session: AsyncSession,
    provider_id: str,
    query: AvailabilityQuery,
    now: datetime | None = None,
) -> AvailabilityResult:
    """Read the provider's schedule and booking snapshot once, then resolve."""
    provider = await get_provider_settings(session, provider_id)
    schedule = load_schedule(provider)
    request = build_service_request(provider, query)

    horizon_days = query.horizon_days
    if horizon_days is None:
        horizon_days = settings.availability_horizon_days
    if not 0 < horizon_days <= settings.max_horizon_days:
        raise InvalidRequest(f"horizon_days must be between 1 and {settings.max_horizon_days}")

    # pad by a day on each side: local dates map to UTC instants up to +-14h away
    range_start = datetime.combine(request.start_anchor - timedelta(days=1), datetime.min.time(), tzinfo=UTC)
    range_end = datetime.combine(
        request.start_anchor + timedelta(days=horizon_days + 2), datetime.min.time(), tzinfo=UTC
    )
    booked = await get_booked_intervals(session, provider_id, range_start, range_end)
    try:
        return resolve(
            schedule,
            booked,
            request,
            horizon_days=horizon_days,
            not_before=now,
        )
    except InsufficientAvailability as e:
        logger.info("Provider %s: %s", provider_id, e)
        raise
