"""
Free-slot computation for mentorship booking.

Everything in this module is pure: callers pass the day's declared free
ranges, the booked intervals (minutes since midnight) and the current
instant, and get back candidate start slots. Persistence lives in
``SlotService`` and ``MentorshipService``.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple
from config.config import Config
from app.utils.timeutils import combine_date_and_time, minutes_to_time, time_to_minutes

Interval = Tuple[int, int]


class SchedulingPolicy(NamedTuple):
    allowed_durations: Tuple[int, ...] = (15, 30)
    granularity: int = 5
    lookahead: timedelta = timedelta(days=3)
    cancellation_cutoff: timedelta = timedelta(hours=12)

    @property
    def min_duration(self) -> int:
        return min(self.allowed_durations)

    @property
    def max_duration(self) -> int:
        return max(self.allowed_durations)

    @classmethod
    def from_config(cls, config=Config) -> 'SchedulingPolicy':
        return cls(
            allowed_durations=tuple(sorted(config.SESSION_DURATIONS_MINUTES)),
            granularity=config.SLOT_GRANULARITY_MINUTES,
            lookahead=timedelta(hours=config.BOOKING_LOOKAHEAD_HOURS),
            cancellation_cutoff=timedelta(hours=config.CANCELLATION_CUTOFF_HOURS),
        )


DEFAULT_POLICY = SchedulingPolicy()


class FreeRange(NamedTuple):
    start: int
    end: int
    note: str = ''


class Slot(NamedTuple):
    start_time: datetime
    time_label: str
    max_duration_minutes: int
    range_note: str

    def to_dict(self) -> dict:
        return {
            'startTime': self.start_time.isoformat(),
            'timeLabel': self.time_label,
            'maxDurationMinutes': self.max_duration_minutes,
            'rangeNote': self.range_note,
        }


def normalize_ranges(time_ranges: Iterable[dict]) -> List[FreeRange]:
    """Merge overlapping or touching declared ranges into disjoint ones.

    The merged range keeps the first non-empty note among its parts.
    """
    ranges = sorted(
        (FreeRange(time_to_minutes(r['startTime']), time_to_minutes(r['endTime']),
                   (r.get('note') or '')) for r in time_ranges),
        key=lambda r: (r.start, r.end)
    )

    merged: List[FreeRange] = []
    for current in ranges:
        if current.start >= current.end:
            continue
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = FreeRange(last.start, max(last.end, current.end), last.note or current.note)
        else:
            merged.append(current)
    return merged


def subtract_intervals(range_start: int, range_end: int,
                       booked: Sequence[Interval]) -> List[Interval]:
    """Free sub-intervals of [range_start, range_end) once booked time is removed"""
    overlapping = sorted(
        (b_start, b_end) for b_start, b_end in booked
        if b_end > range_start and b_start < range_end
    )

    free = []
    cursor = range_start
    for b_start, b_end in overlapping:
        if b_start > cursor:
            free.append((cursor, b_start))
        cursor = max(cursor, b_end)

    if cursor < range_end:
        free.append((cursor, range_end))
    return free


def enumerate_slots(date_str: str, start: int, end: int, note: str, now: datetime,
                    policy: SchedulingPolicy = DEFAULT_POLICY) -> List[Slot]:
    """Candidate start slots inside one free interval [start, end)"""
    slots = []
    step = policy.granularity
    t = start
    while t + policy.min_duration <= end:
        max_duration = min(policy.max_duration, end - t)
        max_duration -= max_duration % step

        if max_duration >= policy.min_duration:
            label = minutes_to_time(t)
            start_time = combine_date_and_time(date_str, label)
            if start_time > now:
                slots.append(Slot(start_time, label, max_duration, note))
        t += step
    return slots


def generate_slots(date_str: str, time_ranges: Iterable[dict], booked: Sequence[Interval],
                   now: datetime, policy: SchedulingPolicy = DEFAULT_POLICY) -> List[Slot]:
    """All bookable slots for one day, ordered by start time"""
    slots = []
    for free_range in normalize_ranges(time_ranges):
        for start, end in subtract_intervals(free_range.start, free_range.end, booked):
            slots.extend(enumerate_slots(date_str, start, end, free_range.note, now, policy))
    return slots


def fits_in_ranges(start: int, end: int, time_ranges: Iterable[dict]) -> bool:
    """True when [start, end) lies entirely within one free range of the day"""
    return any(r.start <= start and end <= r.end for r in normalize_ranges(time_ranges))


def validate_booking_window(start_time: datetime, now: datetime,
                            policy: SchedulingPolicy = DEFAULT_POLICY) -> Optional[str]:
    """Reason the start instant is outside the booking window, else None"""
    if start_time <= now:
        return "Start time must be in the future"
    if start_time - now > policy.lookahead:
        days = policy.lookahead.total_seconds() / 86400
        return f"You can only book consultations up to {days:g} days in advance"
    return None


def can_cancel(start_time: datetime, now: datetime,
               policy: SchedulingPolicy = DEFAULT_POLICY) -> bool:
    """Students may cancel only while strictly more than the cutoff remains"""
    return start_time - now > policy.cancellation_cutoff
