"""Time slot representation and overlap rules.

Times are wall-clock values inside a single calendar day, stored as minutes
since midnight and exchanged as ``HH:MM`` strings. Intervals are half-open,
so an appointment ending at 09:30 does not collide with one starting at 09:30.
"""

import re
from dataclasses import dataclass
from datetime import date

from clinic_scheduler.core.exceptions import InvalidInputException

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

_CLOCK_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
END_OF_DAY = "24:00"


def parse_clock_time(value: str, end_of_day: bool = False) -> int:
    """
    Parse an ``HH:MM`` (or ``H:MM``) string into minutes since midnight.

    With ``end_of_day`` set, ``24:00`` is also accepted and means midnight at
    the end of the day (1440). It is only valid as an end time.

    Raises:
        InvalidInputException: If the value is not a valid 24h clock time
    """
    if not isinstance(value, str):
        raise InvalidInputException("Time must be a string in HH:MM format")

    if end_of_day and value.strip() == END_OF_DAY:
        return MINUTES_PER_DAY

    match = _CLOCK_TIME_RE.match(value.strip())
    if match is None:
        raise InvalidInputException(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    return hours * MINUTES_PER_HOUR + minutes


def format_clock_time(minutes: int) -> str:
    """Render minutes since midnight as a zero-padded ``HH:MM`` string."""
    hours, mins = divmod(minutes, MINUTES_PER_HOUR)
    return f"{hours:02d}:{mins:02d}"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Return True iff the half-open intervals [start_a, end_a) and [start_b, end_b) intersect."""
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class Slot:
    """A validated (date, start, end) triple."""

    day: date
    start_minute: int
    end_minute: int

    def __post_init__(self) -> None:
        """Reject out-of-range or empty intervals."""
        if not 0 <= self.start_minute < MINUTES_PER_DAY:
            raise InvalidInputException("Start time is outside the day")
        if not 0 < self.end_minute <= MINUTES_PER_DAY:
            raise InvalidInputException("End time is outside the day")
        if self.start_minute >= self.end_minute:
            raise InvalidInputException("Start time must be before end time")

    @classmethod
    def from_clock(cls, day: date, start_time: str, end_time: str) -> "Slot":
        """Build a slot from ``HH:MM`` strings."""
        return cls(
            day,
            parse_clock_time(start_time),
            parse_clock_time(end_time, end_of_day=True),
        )

    @property
    def start_time(self) -> str:
        """Start as ``HH:MM``."""
        return format_clock_time(self.start_minute)

    @property
    def end_time(self) -> str:
        """End as ``HH:MM``."""
        return format_clock_time(self.end_minute)

    def overlaps(self, other: "Slot") -> bool:
        """Whether two slots conflict. Slots on different days never do."""
        if self.day != other.day:
            return False
        return intervals_overlap(
            self.start_minute, self.end_minute, other.start_minute, other.end_minute
        )
