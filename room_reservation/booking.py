from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Union

TimeLike = Union[str, time]

TIME_FORMAT = "%H:%M"
SLOT_MINUTES = 15


def parse_time(value: TimeLike) -> time:
    """Parse a zero-padded ``HH:MM`` string into a :class:`datetime.time`."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    text = str(value).strip()
    if len(text) != 5 or text[2] != ":":
        raise ValueError(f"Invalid time {value!r}. Expected format: HH:MM")
    try:
        return datetime.strptime(text, TIME_FORMAT).time()
    except ValueError as error:
        raise ValueError(f"Invalid time {value!r}. Expected format: HH:MM") from error


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def parse_slot_time(value: TimeLike) -> time:
    """Parse a time that must fall on the booking grid (:00, :15, :30 or :45)."""
    parsed = parse_time(value)
    if parsed.minute % SLOT_MINUTES != 0:
        raise ValueError(f"Invalid time {value!r}. Times must be in {SLOT_MINUTES}-minute steps.")
    return parsed


@dataclass(frozen=True)
class TimeInterval:
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Interval start time must be earlier than end time.")

    @staticmethod
    def from_strings(start: TimeLike, end: TimeLike) -> "TimeInterval":
        return TimeInterval(parse_time(start), parse_time(end))

    def overlaps(self, other: "TimeInterval") -> bool:
        return has_time_overlap(self.start, self.end, other.start, other.end)

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"


def has_time_overlap(new_start: TimeLike, new_end: TimeLike, exist_start: TimeLike, exist_end: TimeLike) -> bool:
    """Return True when two time-of-day ranges on the same date intersect.

    Ranges are half-open: [start, end)
    so back-to-back ranges (e.g. 09:00-10:00 and 10:00-11:00) do not overlap.
    """
    return parse_time(new_start) < parse_time(exist_end) and parse_time(new_end) > parse_time(exist_start)


def time_options(first: TimeLike = "09:00", last: TimeLike = "18:00", step_minutes: int = SLOT_MINUTES) -> list[str]:
    """Return the selectable ``HH:MM`` values between ``first`` and ``last`` inclusive."""
    if step_minutes <= 0:
        raise ValueError("step_minutes must be greater than zero")

    anchor = datetime(2000, 1, 1)
    cursor = datetime.combine(anchor.date(), parse_time(first))
    stop = datetime.combine(anchor.date(), parse_time(last))
    if cursor > stop:
        raise ValueError("first must not be later than last")

    options: list[str] = []
    while cursor <= stop:
        options.append(format_time(cursor.time()))
        cursor += timedelta(minutes=step_minutes)
    return options
