from .logger import setup_logger, get_logger
from .security import hash_password, verify_password, generate_token, verify_token
from .validators import validate_email, validate_password, validate_date, validate_time_ranges
from .timeutils import (
    CalendarDate, WallClockTime, time_to_minutes, minutes_to_time,
    combine_date_and_time, is_valid_date_string
)

__all__ = [
    'setup_logger', 'get_logger',
    'hash_password', 'verify_password', 'generate_token', 'verify_token',
    'validate_email', 'validate_password', 'validate_date', 'validate_time_ranges',
    'CalendarDate', 'WallClockTime', 'time_to_minutes', 'minutes_to_time',
    'combine_date_and_time', 'is_valid_date_string'
]
