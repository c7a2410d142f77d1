from datetime import datetime, timedelta
from typing import Callable, Dict, Optional
from sqlalchemy.exc import IntegrityError
from app.database import get_db
from app.models import InstructorAvailability, MentorshipSession, SessionTimeReservation
from app.models.mentorship_session import SessionStatus
from app.models.notification import NotificationType
from app.services.course_service import CourseService
from app.services.notification_service import NotificationService
from app.services.scheduling import (
    SchedulingPolicy, can_cancel, fits_in_ranges, validate_booking_window
)
from app.utils.timeutils import (
    CalendarDate, combine_date_and_time, is_valid_date_string, is_valid_time_string,
    time_to_minutes
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

CONFLICT_MESSAGE = 'This time slot has already been booked'


def _parse_duration(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class MentorshipService:
    """Booking, listing, cancelling and completing mentorship sessions"""

    def __init__(self, notification_service: Optional[NotificationService] = None,
                 course_service: Optional[CourseService] = None,
                 policy: Optional[SchedulingPolicy] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.notification_service = notification_service or NotificationService()
        self.course_service = course_service or CourseService(self.notification_service)
        self.policy = policy or SchedulingPolicy.from_config()
        self.clock = clock

    def book_session(self, student_id: int, data: Dict) -> Dict:
        """Book a session for a student after the full validation sequence"""
        required = ['courseId', 'date', 'startTime', 'durationMinutes']
        if any(data.get(field) in (None, '') for field in required):
            return {
                'error': 'courseId, date (YYYY-MM-DD), startTime (HH:mm), durationMinutes are required',
                'status': 400
            }

        date_str, start_label = data['date'], data['startTime']
        if not is_valid_date_string(date_str):
            return {'error': 'date must be in YYYY-MM-DD format', 'status': 400}
        if not is_valid_time_string(start_label):
            return {'error': 'startTime must be in HH:mm format', 'status': 400}

        duration = _parse_duration(data['durationMinutes'])
        if duration not in self.policy.allowed_durations:
            allowed = ' or '.join(str(d) for d in self.policy.allowed_durations)
            return {'error': f'durationMinutes must be {allowed}', 'status': 400}

        now = self.clock()
        start_time = combine_date_and_time(date_str, start_label)
        end_time = start_time + timedelta(minutes=duration)

        window_error = validate_booking_window(start_time, now, self.policy)
        if window_error:
            return {'error': window_error, 'status': 400}

        try:
            course_id = int(data['courseId'])
        except (TypeError, ValueError):
            return {'error': 'courseId must be an integer', 'status': 400}

        student_note = data.get('studentNote') or ''
        if not isinstance(student_note, str):
            return {'error': 'studentNote must be a string', 'status': 400}

        try:
            membership = self.course_service.get_membership(course_id)
            if membership is None:
                return {'error': 'Course not found', 'status': 404}

            if student_id not in membership['student_ids']:
                return {'error': 'You must be enrolled in this course to book', 'status': 403}

            instructor_id = membership['instructor_id']

            with get_db() as db:
                availability = db.query(InstructorAvailability).filter_by(
                    instructor_id=instructor_id, date=date_str
                ).first()

                if not availability or availability.is_blocked:
                    return {'error': 'Instructor is not available on this date', 'status': 400}

                start_minutes = time_to_minutes(start_label)
                if not fits_in_ranges(start_minutes, start_minutes + duration,
                                      availability.time_ranges or []):
                    return {
                        'error': "Selected time does not fit within the instructor's availability",
                        'status': 400
                    }

                overlapping = db.query(MentorshipSession).filter(
                    MentorshipSession.instructor_id == instructor_id,
                    MentorshipSession.status == SessionStatus.BOOKED,
                    MentorshipSession.start_time < end_time,
                    MentorshipSession.end_time > start_time
                ).first()

                if overlapping:
                    return {'error': CONFLICT_MESSAGE, 'status': 409}

                session = MentorshipSession(
                    instructor_id=instructor_id,
                    student_id=student_id,
                    course_id=course_id,
                    start_time=start_time,
                    end_time=end_time,
                    duration_minutes=duration,
                    status=SessionStatus.BOOKED,
                    student_note=student_note.strip()
                )
                db.add(session)
                db.flush()

                # Claim every minute; the unique key rejects a concurrent overlap
                for offset in range(duration):
                    db.add(SessionTimeReservation(
                        session_id=session.id,
                        instructor_id=instructor_id,
                        minute=start_time + timedelta(minutes=offset)
                    ))
                db.flush()

                result = self._format_session(session)

        except IntegrityError:
            logger.warning(f"Reservation conflict booking {date_str} {start_label} "
                           f"for course {course_id}")
            return {'error': CONFLICT_MESSAGE, 'status': 409}
        except Exception as e:
            logger.error(f"Error booking session: {str(e)}")
            return {'error': 'Server error booking session', 'status': 500}

        logger.info(f"Session {result['id']} booked: student {student_id} with instructor "
                    f"{instructor_id} at {start_time.isoformat()} ({duration} min)")

        self.notification_service.notify(
            instructor_id,
            NotificationType.CONSULTATION_BOOKED,
            'New consultation booked',
            f"{result['student']['name']} booked a {duration}-minute consultation "
            f"on {date_str} at {start_label}.",
            link='/mentorship/sessions',
            course_id=course_id
        )
        return result

    def get_student_sessions(self, student_id: int) -> Dict:
        """Upcoming sessions of a student, including cancelled ones, ascending"""
        try:
            now = self.clock()
            with get_db() as db:
                sessions = db.query(MentorshipSession).filter(
                    MentorshipSession.student_id == student_id,
                    MentorshipSession.start_time >= now,
                    MentorshipSession.status.in_([
                        SessionStatus.BOOKED,
                        SessionStatus.CANCELLED_BY_STUDENT,
                        SessionStatus.CANCELLED_BY_INSTRUCTOR
                    ])
                ).order_by(MentorshipSession.start_time.asc()).all()

                return {'sessions': [self._format_session(s) for s in sessions]}

        except Exception as e:
            logger.error(f"Error getting sessions for student {student_id}: {str(e)}")
            return {'error': 'Server error fetching your sessions', 'status': 500}

    def get_today_sessions(self, instructor_id: int) -> Dict:
        """Booked sessions of an instructor starting today, ascending"""
        try:
            day_start, day_end = CalendarDate.of(self.clock()).day_bounds()
            with get_db() as db:
                sessions = db.query(MentorshipSession).filter(
                    MentorshipSession.instructor_id == instructor_id,
                    MentorshipSession.status == SessionStatus.BOOKED,
                    MentorshipSession.start_time >= day_start,
                    MentorshipSession.start_time <= day_end
                ).order_by(MentorshipSession.start_time.asc()).all()

                return {'sessions': [self._format_session(s) for s in sessions]}

        except Exception as e:
            logger.error(f"Error getting today's sessions for instructor {instructor_id}: {str(e)}")
            return {'error': "Server error fetching today's sessions", 'status': 500}

    def cancel_session_by_student(self, student_id: int, session_id: int) -> Dict:
        """Student cancels their own booked session ahead of the cutoff"""
        try:
            now = self.clock()
            with get_db() as db:
                session = db.query(MentorshipSession).filter_by(id=session_id).first()

                if not session:
                    return {'error': 'Session not found', 'status': 404}

                if session.student_id != student_id:
                    return {'error': 'You can only cancel your own sessions', 'status': 403}

                if not session.can_transition_to(SessionStatus.CANCELLED_BY_STUDENT):
                    return {'error': 'This session cannot be cancelled', 'status': 400}

                if not can_cancel(session.start_time, now, self.policy):
                    hours = self.policy.cancellation_cutoff.total_seconds() / 3600
                    return {
                        'error': f'You can only cancel a session more than {hours:g} hours in advance',
                        'status': 403
                    }

                session.transition_to(SessionStatus.CANCELLED_BY_STUDENT)
                session.cancelled_at = now
                self._release_reservations(db, session.id)
                db.flush()

                result = self._format_session(session)
                instructor_id = session.instructor_id
                course_id = session.course_id
                when = session.start_time.strftime('%Y-%m-%d at %H:%M')

        except Exception as e:
            logger.error(f"Error cancelling session {session_id}: {str(e)}")
            return {'error': 'Server error cancelling session', 'status': 500}

        logger.info(f"Session {session_id} cancelled by student {student_id}")

        self.notification_service.notify(
            instructor_id,
            NotificationType.CONSULTATION_CANCELLED,
            'Consultation cancelled',
            f"{result['student']['name']} cancelled the consultation on {when}.",
            link='/mentorship/sessions',
            course_id=course_id
        )
        return result

    def complete_session(self, instructor_id: int, session_id: int,
                         instructor_note: Optional[str] = None) -> Dict:
        """Instructor marks a session that has started as completed"""
        if instructor_note is not None and not isinstance(instructor_note, str):
            return {'error': 'instructorNote must be a string', 'status': 400}

        try:
            now = self.clock()
            with get_db() as db:
                session = db.query(MentorshipSession).filter_by(id=session_id).first()

                if not session:
                    return {'error': 'Session not found', 'status': 404}

                if session.instructor_id != instructor_id:
                    return {'error': 'You can only complete your own sessions', 'status': 403}

                if not session.can_transition_to(SessionStatus.COMPLETED):
                    return {'error': 'Only booked sessions can be completed', 'status': 400}

                if session.start_time > now:
                    return {'error': 'Session has not started yet', 'status': 400}

                session.transition_to(SessionStatus.COMPLETED)
                session.completed_at = now
                if instructor_note is not None:
                    session.instructor_note = instructor_note.strip()
                self._release_reservations(db, session.id)
                db.flush()

                logger.info(f"Session {session_id} completed by instructor {instructor_id}")
                return self._format_session(session)

        except Exception as e:
            logger.error(f"Error completing session {session_id}: {str(e)}")
            return {'error': 'Server error completing session', 'status': 500}

    def complete_past_sessions(self) -> int:
        """Mark every booked session that has already ended as completed"""
        now = self.clock()
        with get_db() as db:
            sessions = db.query(MentorshipSession).filter(
                MentorshipSession.status == SessionStatus.BOOKED,
                MentorshipSession.end_time <= now
            ).all()

            for session in sessions:
                session.transition_to(SessionStatus.COMPLETED)
                session.completed_at = now
                self._release_reservations(db, session.id)

            if sessions:
                logger.info(f"Marked {len(sessions)} past sessions as completed")
            return len(sessions)

    def _release_reservations(self, db, session_id: int):
        db.query(SessionTimeReservation).filter(
            SessionTimeReservation.session_id == session_id
        ).delete(synchronize_session=False)

    def _format_session(self, session: MentorshipSession) -> Dict:
        instructor, student, course = session.instructor, session.student, session.course
        return {
            'id': session.id,
            'instructor': {
                'id': instructor.id,
                'name': instructor.name,
                'email': instructor.email
            } if instructor else session.instructor_id,
            'student': {
                'id': student.id,
                'name': student.name,
                'email': student.email
            } if student else session.student_id,
            'course': {
                'id': course.id,
                'title': course.title
            } if course else session.course_id,
            'startTime': session.start_time.isoformat(),
            'endTime': session.end_time.isoformat(),
            'durationMinutes': session.duration_minutes,
            'status': session.status.value,
            'studentNote': session.student_note or '',
            'instructorNote': session.instructor_note or '',
            'createdAt': session.created_at.isoformat() if session.created_at else None
        }
