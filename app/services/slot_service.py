from datetime import datetime
from typing import Callable, Dict, List, Optional
from app.database import get_db
from app.models import InstructorAvailability, MentorshipSession
from app.models.mentorship_session import SessionStatus
from app.services.course_service import CourseService
from app.services.scheduling import SchedulingPolicy, generate_slots
from app.utils.timeutils import day_bounds, minutes_since_midnight
from app.utils.validators import validate_date
from app.utils.logger import get_logger

logger = get_logger(__name__)


def booked_intervals_for_day(db, instructor_id: int, date_str: str) -> List[tuple]:
    """Booked sessions starting on the given day, as (start, end) minute pairs"""
    day_start, day_end = day_bounds(date_str)
    sessions = db.query(MentorshipSession).filter(
        MentorshipSession.instructor_id == instructor_id,
        MentorshipSession.status == SessionStatus.BOOKED,
        MentorshipSession.start_time >= day_start,
        MentorshipSession.start_time <= day_end
    ).all()

    intervals = []
    for session in sessions:
        start = minutes_since_midnight(session.start_time)
        intervals.append((start, start + session.duration_minutes))
    return intervals


class SlotService:
    """Free bookable slots of a course instructor on one day"""

    def __init__(self, course_service: Optional[CourseService] = None,
                 policy: Optional[SchedulingPolicy] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.course_service = course_service or CourseService()
        self.policy = policy or SchedulingPolicy.from_config()
        self.clock = clock

    def get_available_slots(self, student_id: int, course_id, date_str: Optional[str]) -> Dict:
        if not course_id or not date_str:
            return {'error': 'courseId and date (YYYY-MM-DD) are required', 'status': 400}

        valid, error = validate_date(date_str)
        if not valid:
            return {'error': error, 'status': 400}

        try:
            course_id = int(course_id)
        except (TypeError, ValueError):
            return {'error': 'courseId must be an integer', 'status': 400}

        try:
            membership = self.course_service.get_membership(course_id)
            if membership is None:
                return {'error': 'Course not found', 'status': 404}

            if student_id not in membership['student_ids']:
                return {'error': 'You must be enrolled in this course to view slots', 'status': 403}

            instructor_id = membership['instructor_id']
            result = {
                'courseId': course_id,
                'instructor': instructor_id,
                'date': date_str,
                'dayNote': None,
                'isBlocked': True,
                'slots': []
            }

            with get_db() as db:
                availability = db.query(InstructorAvailability).filter_by(
                    instructor_id=instructor_id, date=date_str
                ).first()

                if not availability:
                    return result

                if availability.is_blocked:
                    result['dayNote'] = availability.day_note or 'Instructor is not available'
                    return result

                booked = booked_intervals_for_day(db, instructor_id, date_str)
                time_ranges = list(availability.time_ranges or [])
                result['dayNote'] = availability.day_note or ''

            slots = generate_slots(date_str, time_ranges, booked, self.clock(), self.policy)
            result['isBlocked'] = False
            result['slots'] = [slot.to_dict() for slot in slots]
            return result

        except Exception as e:
            logger.error(f"Error getting available slots for course {course_id} on {date_str}: {str(e)}")
            return {'error': 'Server error fetching available slots', 'status': 500}
