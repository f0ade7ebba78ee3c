from bisect import bisect_left, insort
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import NamedTuple


def as_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC (as stored)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class BookedInterval(NamedTuple):
    start_utc: datetime
    end_utc: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        # half-open: touching endpoints do not overlap
        return self.start_utc < end and start < self.end_utc


class ConflictIndex:
    """Booked intervals of one provider, answering overlap queries in UTC.

    Built from a snapshot; ``add`` is used for the working copy of a single
    resolution so placed sittings block each other.
    """

    def __init__(self, intervals: Iterable[tuple[datetime, datetime]] = ()) -> None:
        self._intervals: list[BookedInterval] = sorted(
            BookedInterval(as_utc(s), as_utc(e)) for s, e in intervals
        )

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self):
        return iter(self._intervals)

    def add(self, start: datetime, end: datetime) -> None:
        insort(self._intervals, BookedInterval(as_utc(start), as_utc(end)))

    def copy(self) -> "ConflictIndex":
        clone = ConflictIndex()
        clone._intervals = list(self._intervals)
        return clone

    def overlapping(self, start: datetime, end: datetime) -> list[BookedInterval]:
        start, end = as_utc(start), as_utc(end)
        # only intervals starting before `end` can overlap
        upper = bisect_left(self._intervals, (end,))
        return [iv for iv in self._intervals[:upper] if iv.end_utc > start]

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return bool(self.overlapping(start, end))
