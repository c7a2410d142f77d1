"""
Calendar and wall-clock helpers for mentorship scheduling.

Time-zone policy: every instant is a naive ``datetime`` in the server's
local zone. Dates travel as ``YYYY-MM-DD`` strings and times of day as
24-hour ``HH:mm`` strings; nothing here converts between zones.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Tuple

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

MINUTES_PER_DAY = 24 * 60

# Only valid as the end of a range
END_OF_DAY = '24:00'


def is_valid_date_string(value) -> bool:
    """Strict YYYY-MM-DD check, including calendar validity"""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time_string(value) -> bool:
    """Strict 24-hour HH:mm check"""
    return isinstance(value, str) and bool(TIME_PATTERN.match(value))


def is_valid_end_time_string(value) -> bool:
    """Like is_valid_time_string, but also accepts 24:00"""
    return value == END_OF_DAY or is_valid_time_string(value)


def time_to_minutes(time_str: str) -> int:
    """'HH:mm' -> minutes since midnight; 24:00 maps to the end of the day"""
    if time_str == END_OF_DAY:
        return MINUTES_PER_DAY
    if not is_valid_time_string(time_str):
        raise ValueError(f"Invalid time of day: {time_str!r}")
    hours, minutes = time_str.split(':')
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Minutes since midnight -> zero-padded 'HH:mm'"""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def combine_date_and_time(date_str: str, time_str: str) -> datetime:
    """Build the local instant for a date and a start time of day"""
    return CalendarDate.parse(date_str).at(WallClockTime.parse(time_str))


def day_bounds(date_str: str) -> Tuple[datetime, datetime]:
    """First and last representable instants of a calendar day"""
    start = datetime.fromisoformat(f"{date_str}T00:00:00")
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


class CalendarDate:
    """A validated calendar day"""

    __slots__ = ('value',)

    def __init__(self, value: date):
        self.value = value

    @classmethod
    def parse(cls, date_str: str) -> 'CalendarDate':
        if not is_valid_date_string(date_str):
            raise ValueError(f"Invalid date (expected YYYY-MM-DD): {date_str!r}")
        return cls(date.fromisoformat(date_str))

    @classmethod
    def of(cls, moment: datetime) -> 'CalendarDate':
        return cls(moment.date())

    @property
    def label(self) -> str:
        return self.value.isoformat()

    def at(self, wall_time: 'WallClockTime') -> datetime:
        return datetime.combine(self.value, wall_time.to_time())

    def day_bounds(self) -> Tuple[datetime, datetime]:
        return day_bounds(self.label)

    def __eq__(self, other):
        return isinstance(other, CalendarDate) and self.value == other.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"CalendarDate({self.label})"

    def __str__(self):
        return self.label


class WallClockTime:
    """A validated time of day with minute precision"""

    __slots__ = ('minutes',)

    def __init__(self, minutes: int):
        if not 0 <= minutes < MINUTES_PER_DAY:
            raise ValueError(f"Minutes out of range for a day: {minutes}")
        self.minutes = minutes

    @classmethod
    def parse(cls, time_str: str) -> 'WallClockTime':
        return cls(time_to_minutes(time_str))

    @property
    def label(self) -> str:
        return minutes_to_time(self.minutes)

    def to_time(self) -> time:
        hours, mins = divmod(self.minutes, 60)
        return time(hours, mins)

    def __eq__(self, other):
        return isinstance(other, WallClockTime) and self.minutes == other.minutes

    def __lt__(self, other):
        return self.minutes < other.minutes

    def __hash__(self):
        return hash(self.minutes)

    def __repr__(self):
        return f"WallClockTime({self.label})"

    def __str__(self):
        return self.label
