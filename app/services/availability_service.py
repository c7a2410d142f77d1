from datetime import datetime
from typing import Callable, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from app.database import get_db
from app.models import InstructorAvailability, MentorshipSession, SessionTimeReservation, User
from app.models.mentorship_session import SessionStatus
from app.models.notification import NotificationType
from app.services.course_service import CourseService
from app.services.notification_service import NotificationService
from app.utils.timeutils import day_bounds
from app.utils.validators import validate_date, validate_time_ranges, clean_time_ranges
from app.utils.logger import get_logger

logger = get_logger(__name__)


class AvailabilityService:
    """Instructor day-by-day availability and the cancellations it cascades"""

    def __init__(self, notification_service: Optional[NotificationService] = None,
                 course_service: Optional[CourseService] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.notification_service = notification_service or NotificationService()
        self.course_service = course_service or CourseService(self.notification_service)
        self.clock = clock

    def get_availability(self, instructor_id: int, date_from: Optional[str] = None,
                         date_to: Optional[str] = None) -> Dict:
        """Day records for an instructor, ascending, with inclusive optional bounds"""
        for field, value in (('from', date_from), ('to', date_to)):
            if value:
                valid, error = validate_date(value, field)
                if not valid:
                    return {'error': error, 'status': 400}

        try:
            with get_db() as db:
                query = db.query(InstructorAvailability).filter(
                    InstructorAvailability.instructor_id == instructor_id
                )
                if date_from:
                    query = query.filter(InstructorAvailability.date >= date_from)
                if date_to:
                    query = query.filter(InstructorAvailability.date <= date_to)

                days = query.order_by(InstructorAvailability.date.asc()).all()
                return {'availability': [self._format_availability(day) for day in days]}

        except Exception as e:
            logger.error(f"Error getting availability for instructor {instructor_id}: {str(e)}")
            return {'error': 'Server error fetching availability', 'status': 500}

    def upsert_availability(self, instructor_id: int, data: Dict) -> Dict:
        """Create or fully overwrite the instructor's record for one date.

        Blocking a day cancels its remaining sessions in the same
        transaction; students are told only after that commits.
        """
        date_str = data.get('date')
        valid, _ = validate_date(date_str)
        if not valid:
            return {'error': "Valid 'date' (YYYY-MM-DD) is required", 'status': 400}

        time_ranges = data.get('timeRanges')
        if time_ranges is None:
            time_ranges = []
        valid, error = validate_time_ranges(time_ranges)
        if not valid:
            return {'error': error, 'status': 400}

        is_blocked = bool(data.get('isBlocked'))
        day_note = data.get('dayNote') or ''
        if not isinstance(day_note, str):
            return {'error': 'dayNote must be a string', 'status': 400}
        day_note = day_note.strip()

        # A concurrent first write for the same date loses on the unique key; retry as an update
        for attempt in range(2):
            try:
                with get_db() as db:
                    day = self._find_day(db, instructor_id, date_str)

                    was_blocked = bool(day and day.is_blocked)
                    if day is None:
                        day = InstructorAvailability(instructor_id=instructor_id, date=date_str)
                        db.add(day)

                    day.time_ranges = clean_time_ranges(time_ranges)
                    day.day_note = day_note
                    day.is_blocked = is_blocked
                    db.flush()

                    cancelled = []
                    if is_blocked:
                        cancelled = self._close_day(db, instructor_id, date_str)

                    result = self._format_availability(day)
                break

            except IntegrityError:
                if attempt:
                    logger.error(f"Repeated conflict saving availability for {date_str}")
                    return {'error': 'Server error updating availability', 'status': 500}
                logger.warning(f"Availability for instructor {instructor_id} on {date_str} "
                               f"created concurrently; retrying as update")
            except Exception as e:
                logger.error(f"Error upserting availability for {date_str}: {str(e)}")
                return {'error': 'Server error updating availability', 'status': 500}

        logger.info(f"Availability for instructor {instructor_id} on {date_str} saved "
                    f"({len(time_ranges)} ranges, blocked={is_blocked})")

        if is_blocked and (not was_blocked or cancelled) and not self._day_ended(date_str):
            self._announce_closure(instructor_id, date_str, cancelled, day_note)
        return result

    def delete_availability(self, instructor_id: int, availability_id: int) -> Dict:
        """Delete one of the instructor's own day records and cancel its remaining sessions"""
        try:
            with get_db() as db:
                day = db.query(InstructorAvailability).filter_by(
                    id=availability_id, instructor_id=instructor_id
                ).first()

                if not day:
                    return {'error': 'Availability not found', 'status': 404}

                date_str = day.date
                cancelled = self._close_day(db, instructor_id, date_str)
                db.delete(day)

        except Exception as e:
            logger.error(f"Error deleting availability {availability_id}: {str(e)}")
            return {'error': 'Server error deleting availability', 'status': 500}

        logger.info(f"Availability {availability_id} ({date_str}) deleted by instructor {instructor_id}")
        if not self._day_ended(date_str):
            self._announce_closure(instructor_id, date_str, cancelled)
        return {'message': 'Availability deleted successfully'}

    def _find_day(self, db, instructor_id: int, date_str: str) -> Optional[InstructorAvailability]:
        return db.query(InstructorAvailability).filter_by(
            instructor_id=instructor_id, date=date_str
        ).first()

    def _day_ended(self, date_str: str) -> bool:
        return day_bounds(date_str)[1] <= self.clock()

    def _close_day(self, db, instructor_id: int, date_str: str) -> List[Dict]:
        """Cancel the day's booked sessions from now through the end of the day.

        Runs inside the caller's transaction, so a failure here also undoes
        the block or delete that triggered it. Days that have already ended
        are left untouched.
        """
        now = self.clock()
        day_start, day_end = day_bounds(date_str)
        if day_end <= now:
            return []

        sessions = db.query(MentorshipSession).filter(
            MentorshipSession.instructor_id == instructor_id,
            MentorshipSession.status == SessionStatus.BOOKED,
            MentorshipSession.start_time >= max(now, day_start),
            MentorshipSession.start_time <= day_end
        ).order_by(MentorshipSession.start_time.asc()).all()

        cancelled = []
        for session in sessions:
            session.transition_to(SessionStatus.CANCELLED_BY_INSTRUCTOR)
            session.cancelled_at = now
            db.query(SessionTimeReservation).filter(
                SessionTimeReservation.session_id == session.id
            ).delete(synchronize_session=False)
            cancelled.append({
                'id': session.id,
                'student_id': session.student_id,
                'course_id': session.course_id,
                'start_time': session.start_time
            })

        if cancelled:
            logger.warning(f"Cancelled {len(cancelled)} sessions for instructor {instructor_id} "
                           f"on {date_str}")
        return cancelled

    def _announce_closure(self, instructor_id: int, date_str: str, cancelled: List[Dict],
                          reason: str = ''):
        """Tell every student of the instructor; those who lost a session get the times"""
        try:
            with get_db() as db:
                instructor = db.query(User).filter_by(id=instructor_id).first()
                instructor_name = instructor.name if instructor else 'Your instructor'

            recipients = self.course_service.get_instructor_student_ids(instructor_id)
        except Exception as e:
            logger.error(f"Error resolving students for instructor {instructor_id}: {str(e)}")
            return

        lost_sessions: Dict[int, List[Dict]] = {}
        for session in cancelled:
            lost_sessions.setdefault(session['student_id'], []).append(session)
        recipients.update(lost_sessions)

        base_message = f"{instructor_name} is not available for consultations on {date_str}."
        if reason:
            base_message += f" Note: {reason}"

        messages = []
        for student_id in sorted(recipients):
            message = base_message
            course_id = None
            if student_id in lost_sessions:
                times = ', '.join(s['start_time'].strftime('%H:%M') for s in lost_sessions[student_id])
                message += f" Your session(s) at {times} on {date_str} have been cancelled."
                course_id = lost_sessions[student_id][0]['course_id']
            messages.append({
                'user_id': student_id,
                'type': NotificationType.CONSULTATION_BLOCKED,
                'title': 'Consultations unavailable',
                'message': message,
                'link': '/mentorship',
                'course_id': course_id
            })

        self.notification_service.notify_many(messages)

    def _format_availability(self, day: InstructorAvailability) -> Dict:
        return {
            'id': day.id,
            'instructor': day.instructor_id,
            'date': day.date,
            'timeRanges': list(day.time_ranges or []),
            'dayNote': day.day_note or '',
            'isBlocked': day.is_blocked,
            'createdAt': day.created_at.isoformat() if day.created_at else None,
            'updatedAt': day.updated_at.isoformat() if day.updated_at else None
        }
