import re
from typing import List, Optional, Tuple
from app.utils.timeutils import (
    is_valid_date_string, is_valid_end_time_string, is_valid_time_string, time_to_minutes
)


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Validate email format"""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not email:
        return False, "Email is required"
    if not re.match(pattern, email):
        return False, "Invalid email format"
    return True, None


def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    """Validate password strength"""
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if not re.search(r'[A-Z]', password):
        return False, "Password must contain at least one uppercase letter"
    if not re.search(r'[a-z]', password):
        return False, "Password must contain at least one lowercase letter"
    if not re.search(r'\d', password):
        return False, "Password must contain at least one number"
    return True, None


def validate_date(date_str, field: str = 'date') -> Tuple[bool, Optional[str]]:
    """Validate a YYYY-MM-DD calendar date"""
    if not date_str:
        return False, f"{field} is required"
    if not is_valid_date_string(date_str):
        return False, f"{field} must be in YYYY-MM-DD format"
    return True, None


def validate_time_ranges(time_ranges) -> Tuple[bool, Optional[str]]:
    """Validate a day's list of {startTime, endTime, note} ranges"""
    if not isinstance(time_ranges, list):
        return False, "timeRanges must be a list"

    for time_range in time_ranges:
        if not isinstance(time_range, dict):
            return False, "Each time range must be an object"
        start, end = time_range.get('startTime'), time_range.get('endTime')
        if not start or not end:
            return False, "Each time range needs startTime and endTime"
        if not is_valid_time_string(start) or not is_valid_end_time_string(end):
            return False, "startTime and endTime must be in HH:mm format (endTime may be 24:00)"
        if time_to_minutes(start) >= time_to_minutes(end):
            return False, "Invalid time range: startTime must be < endTime"
        note = time_range.get('note')
        if note is not None and not isinstance(note, str):
            return False, "Time range note must be a string"

    return True, None


def clean_time_ranges(time_ranges: List[dict]) -> List[dict]:
    """Keep only the stored keys of validated ranges, ordered by start"""
    cleaned = [
        {
            'startTime': r['startTime'],
            'endTime': r['endTime'],
            'note': (r.get('note') or '').strip(),
        }
        for r in time_ranges
    ]
    return sorted(cleaned, key=lambda r: (r['startTime'], r['endTime']))
