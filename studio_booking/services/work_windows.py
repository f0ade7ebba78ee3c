import json
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from studio_booking.services.errors import InvalidRequest, ScheduleConfigurationError

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class DaySchedule:
    enabled: bool
    start_local: time
    end_local: time


CLOSED = DaySchedule(enabled=False, start_local=time(0, 0), end_local=time(0, 0))


def _parse_time(value: str, day: str) -> time:
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError):
        raise ScheduleConfigurationError(f"{day}: invalid time {value!r}") from None


@dataclass(frozen=True)
class WorkSchedule:
    """Weekly working hours, indexed Monday=0 .. Sunday=6."""

    days: tuple[DaySchedule, ...]

    def __post_init__(self) -> None:
        if len(self.days) != 7:
            raise ScheduleConfigurationError("work schedule must have exactly 7 weekdays")
        for name, day in zip(WEEKDAYS, self.days):
            if day.enabled and day.start_local >= day.end_local:
                raise ScheduleConfigurationError(
                    f"{name}: start {day.start_local.isoformat('minutes')} is not before "
                    f"end {day.end_local.isoformat('minutes')}"
                )

    def for_weekday(self, weekday: int) -> DaySchedule:
        return self.days[weekday]

    @classmethod
    def closed(cls) -> "WorkSchedule":
        return cls(days=(CLOSED,) * 7)

    @classmethod
    def from_entries(cls, entries: list[dict]) -> "WorkSchedule":
        """Build from the stored form: [{"day": "Monday", "enabled": true, "startTime": "09:00", "endTime": "17:00"}].

        Days that are not listed are closed.
        """
        days: dict[int, DaySchedule] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                raise ScheduleConfigurationError(f"invalid schedule entry {entry!r}")
            name = str(entry.get("day", "")).strip().capitalize()
            if name not in WEEKDAYS:
                raise ScheduleConfigurationError(f"unknown weekday {entry.get('day')!r}")
            idx = WEEKDAYS.index(name)
            if idx in days:
                raise ScheduleConfigurationError(f"{name} is listed more than once")
            if entry.get("enabled", False):
                start = _parse_time(entry.get("startTime"), name)
                end = _parse_time(entry.get("endTime"), name)
                days[idx] = DaySchedule(enabled=True, start_local=start, end_local=end)
            else:
                # closed days keep whatever hours the provider last typed, if readable
                try:
                    start = _parse_time(entry.get("startTime"), name)
                    end = _parse_time(entry.get("endTime"), name)
                except ScheduleConfigurationError:
                    start, end = CLOSED.start_local, CLOSED.end_local
                days[idx] = DaySchedule(enabled=False, start_local=start, end_local=end)
        return cls(days=tuple(days.get(i, CLOSED) for i in range(7)))

    @classmethod
    def from_json(cls, raw: str | None) -> "WorkSchedule":
        if not raw:
            return cls.closed()
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ScheduleConfigurationError(f"work schedule is not valid JSON: {e}") from e
        if not isinstance(entries, list):
            raise ScheduleConfigurationError("work schedule must be a JSON array")
        return cls.from_entries(entries)

    def to_entries(self) -> list[dict]:
        return [
            {
                "day": name,
                "enabled": day.enabled,
                "startTime": day.start_local.isoformat("minutes"),
                "endTime": day.end_local.isoformat("minutes"),
            }
            for name, day in zip(WEEKDAYS, self.days)
        ]


def load_zone(time_zone: str) -> ZoneInfo:
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise InvalidRequest(f"unknown time zone {time_zone!r}") from None


class WorkWindowIndex:
    """Open working window of a provider for any calendar date."""

    def __init__(self, schedule: WorkSchedule) -> None:
        self.schedule = schedule

    def open_window(self, d: date, time_zone: str | ZoneInfo) -> tuple[datetime, datetime] | None:
        """Return (start_utc, end_utc) for the date, or None when the weekday is closed.

        Local wall-clock times go through the zone's IANA rules, so DST shifts move the
        UTC boundaries. A start inside a spring-forward gap resolves with fold=0.
        """
        day = self.schedule.for_weekday(d.weekday())
        if not day.enabled:
            return None
        zone = time_zone if isinstance(time_zone, ZoneInfo) else load_zone(time_zone)
        start = datetime.combine(d, day.start_local, tzinfo=zone).astimezone(UTC)
        end = datetime.combine(d, day.end_local, tzinfo=zone).astimezone(UTC)
        if start >= end:
            # only reachable when a DST jump swallows the whole window
            return None
        return start, end
