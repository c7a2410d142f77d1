from .user import User
from .course import Course, Enrollment
from .availability import InstructorAvailability
from .mentorship_session import MentorshipSession, SessionTimeReservation
from .notification import Notification

__all__ = [
    'User', 'Course', 'Enrollment', 'InstructorAvailability',
    'MentorshipSession', 'SessionTimeReservation', 'Notification'
]
