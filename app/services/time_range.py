"""Minute-of-day intervals and the one parser that produces them.

All times are minutes since midnight in a single wall-clock zone. Ranges are
half-open, so 09:00-10:00 and 10:00-11:00 touch but do not overlap.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from app.core.exceptions import InvalidRange, InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"([0-9]{2}):([0-9]{2})")


def parse_time(value: str, end_of_day: bool = False) -> int:
    """Parse ``HH:MM`` into minutes since midnight.

    ``24:00`` is only accepted with ``end_of_day=True`` and gives 1440, so a
    window can run until midnight.
    """
    match = _TIME_RE.fullmatch(value) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeFormat(f"Invalid time format: {value!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if end_of_day and hour == 24 and minute == 0:
        return MINUTES_PER_DAY
    if hour > 23 or minute > 59:
        raise InvalidTimeFormat(f"Invalid time of day: {value!r}")
    return hour * 60 + minute


def format_time(minute: int) -> str:
    return f"{minute // 60:02d}:{minute % 60:02d}"


def day_of_week(d: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return d.isoweekday() % 7


@dataclass(frozen=True, order=True, slots=True)
class TimeRange:
    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start < MINUTES_PER_DAY:
            raise InvalidRange(f"Start {self.start} is outside the day")
        if not 0 < self.end <= MINUTES_PER_DAY:
            raise InvalidRange(f"End {self.end} is outside the day")
        if self.start >= self.end:
            raise InvalidRange("Start time must be before end time")

    @classmethod
    def parse(cls, start_time: str, end_time: str) -> "TimeRange":
        return cls(parse_time(start_time), parse_time(end_time, end_of_day=True))

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"


def find_overlapping(candidate: TimeRange, ranges: Iterable[TimeRange]) -> TimeRange | None:
    """First range strictly overlapping ``candidate``, or None."""
    for existing in ranges:
        if existing.overlaps(candidate):
            return existing
    return None


def subtract(window: TimeRange, busy: Iterable[TimeRange]) -> list[TimeRange]:
    """Parts of ``window`` not covered by any of ``busy``, ascending."""
    gaps: list[TimeRange] = []
    cursor = window.start
    for taken in sorted(r for r in busy if r.overlaps(window)):
        if taken.start > cursor:
            gaps.append(TimeRange(cursor, taken.start))
        cursor = max(cursor, taken.end)
        if cursor >= window.end:
            return gaps
    if cursor < window.end:
        gaps.append(TimeRange(cursor, window.end))
    return gaps


def split_into_buckets(gap: TimeRange, size: int) -> list[TimeRange]:
    """Fixed-size pieces of ``gap`` starting at its start; a short tail is dropped."""
    if size <= 0:
        raise InvalidRange("Bucket size must be positive")
    return [TimeRange(s, s + size) for s in range(gap.start, gap.end - size + 1, size)]
