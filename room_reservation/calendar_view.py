from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

import holidays as pyholidays

from .models import Reservation

DAYS_PER_WEEK = 7
_HOLIDAY_CACHE: dict[tuple[str, int], dict[date, str]] = {}


class Granularity(str, Enum):
    WEEK = "week"
    MONTH = "month"


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class DayBucket:
    date: date
    is_in_current_period: bool
    reservations: tuple[Reservation, ...] = ()
    holiday_name: str | None = None

    @property
    def is_holiday(self) -> bool:
        return self.holiday_name is not None


def start_of_week(target: date) -> date:
    """Return the Sunday on or before ``target``."""
    return target - timedelta(days=(target.weekday() + 1) % DAYS_PER_WEEK)


def period_bounds(reference_date: date, granularity: Granularity) -> tuple[date, date]:
    """Return the first and last day (inclusive) of the period containing ``reference_date``."""
    granularity = Granularity(granularity)
    if granularity is Granularity.WEEK:
        first = start_of_week(reference_date)
        return first, first + timedelta(days=DAYS_PER_WEEK - 1)

    _, days_in_month = calendar.monthrange(reference_date.year, reference_date.month)
    return reference_date.replace(day=1), reference_date.replace(day=days_in_month)


def project(
    reference_date: date,
    granularity: Granularity,
    reservations: Iterable[Reservation],
    *,
    holiday_country: str | None = None,
) -> list[DayBucket]:
    """Group ``reservations`` into one bucket per day of the week or month containing ``reference_date``.

    Week views run Sunday through Saturday. Month views run from the first
    to the last day of the month without padding. Each reservation lands in
    the bucket whose date equals its own; reservations outside the range are
    left out. Bucket order follows the calendar and reservations keep their
    input order within a bucket.
    """
    granularity = Granularity(granularity)
    first, last = period_bounds(reference_date, granularity)

    grouped: dict[date, list[Reservation]] = {}
    for reservation in reservations:
        if first <= reservation.date <= last:
            grouped.setdefault(reservation.date, []).append(reservation)

    holiday_names = _holiday_names(holiday_country, first, last)

    buckets: list[DayBucket] = []
    cursor = first
    while cursor <= last:
        in_period = True
        if granularity is Granularity.MONTH:
            in_period = cursor.month == reference_date.month
        buckets.append(
            DayBucket(
                date=cursor,
                is_in_current_period=in_period,
                reservations=tuple(grouped.get(cursor, ())),
                holiday_name=holiday_names.get(cursor),
            )
        )
        cursor += timedelta(days=1)
    return buckets


def advance(reference_date: date, granularity: Granularity, direction: Direction) -> date:
    """Step one week or one calendar month forward or backward.

    Month steps keep the day of month, clamped to the length of the target
    month (2024-01-31 forward is 2024-02-29).
    """
    granularity = Granularity(granularity)
    step = 1 if Direction(direction) is Direction.FORWARD else -1

    if granularity is Granularity.WEEK:
        return reference_date + timedelta(days=DAYS_PER_WEEK * step)

    month_index = reference_date.year * 12 + (reference_date.month - 1) + step
    year, month = divmod(month_index, 12)
    month += 1
    _, days_in_month = calendar.monthrange(year, month)
    return date(year, month, min(reference_date.day, days_in_month))


def pad_to_weeks(buckets: Sequence[DayBucket], *, holiday_country: str | None = None) -> list[DayBucket]:
    """Extend a projection with empty out-of-period days so it covers whole Sunday-first weeks."""
    if not buckets:
        return []

    first = buckets[0].date
    last = buckets[-1].date
    grid_first = start_of_week(first)
    grid_last = start_of_week(last) + timedelta(days=DAYS_PER_WEEK - 1)
    holiday_names = _holiday_names(holiday_country, grid_first, grid_last)

    def _padding(start: date, end: date) -> list[DayBucket]:
        padded: list[DayBucket] = []
        cursor = start
        while cursor < end:
            padded.append(DayBucket(date=cursor, is_in_current_period=False, holiday_name=holiday_names.get(cursor)))
            cursor += timedelta(days=1)
        return padded

    leading = _padding(grid_first, first)
    trailing = _padding(last + timedelta(days=1), grid_last + timedelta(days=1))
    return leading + list(buckets) + trailing


def weeks(buckets: Sequence[DayBucket]) -> list[list[DayBucket]]:
    return [list(buckets[index : index + DAYS_PER_WEEK]) for index in range(0, len(buckets), DAYS_PER_WEEK)]


def _holiday_names(country: str | None, first: date, last: date) -> dict[date, str]:
    if not country:
        return {}

    names: dict[date, str] = {}
    for year in range(first.year, last.year + 1):
        key = (country, year)
        if key not in _HOLIDAY_CACHE:
            holiday_map = pyholidays.country_holidays(country, years=[year])
            _HOLIDAY_CACHE[key] = dict(holiday_map.items())
        names.update(_HOLIDAY_CACHE[key])
    return {day: name for day, name in names.items() if first <= day <= last}
