from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta


class InvalidDateRangeError(ValueError):
    """Raised when a date bound cannot be parsed or the bounds are inverted."""


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive ``[start, end]`` window on expense dates; either side may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidDateRangeError("startDate must not be after endDate")

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def parse_date_bound(value: str | None, *, label: str, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO-8601 date or datetime query value.

    A bare calendar date expands to the first instant of that day, or to its
    last instant when ``end_of_day`` is set, so both bounds cover whole days.
    """
    if value is None or not value.strip():
        return None
    raw = value.strip()
    try:
        day = date.fromisoformat(raw)
    except ValueError:
        pass
    else:
        return datetime.combine(day, time.max if end_of_day else time.min)

    try:
        return to_naive_utc(datetime.fromisoformat(raw))
    except ValueError as exc:
        raise InvalidDateRangeError(f"{label} must be a valid ISO-8601 date") from exc


def parse_date_range(start: str | None, end: str | None) -> DateRange:
    return DateRange(
        start=parse_date_bound(start, label="startDate"),
        end=parse_date_bound(end, label="endDate", end_of_day=True),
    )


def month_range(moment: datetime) -> DateRange:
    """Whole calendar month containing ``moment``."""
    first = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        next_first = datetime(moment.year + 1, 1, 1)
    else:
        next_first = datetime(moment.year, moment.month + 1, 1)
    return DateRange(start=first, end=next_first - timedelta(microseconds=1))
