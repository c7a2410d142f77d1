from typing import Dict, List, Optional, Set
from sqlalchemy.exc import IntegrityError
from app.database import DatabaseManager, get_db
from app.models import Course, Enrollment, User
from app.models.notification import NotificationType
from app.models.user import UserRole
from app.services.notification_service import NotificationService
from app.utils.logger import get_logger

logger = get_logger(__name__)


class CourseService:
    """Course records and the enrolment lookups mentorship depends on"""

    def __init__(self, notification_service: Optional[NotificationService] = None):
        self.course_db = DatabaseManager(Course)
        self.notification_service = notification_service or NotificationService()

    def create_course(self, instructor_id: int, data: Dict) -> Dict:
        try:
            course = self.course_db.create(
                title=data['title'].strip(),
                description=(data.get('description') or '').strip(),
                instructor_id=instructor_id
            )
            logger.info(f"Course created: {course.id} by instructor {instructor_id}")
            return self._format_course(course, student_count=0)

        except Exception as e:
            logger.error(f"Error creating course: {str(e)}")
            return {'error': 'Failed to create course', 'status': 500}

    def get_course(self, course_id: int) -> Dict:
        try:
            with get_db() as db:
                course = db.query(Course).filter_by(id=course_id).first()
                if not course:
                    return {'error': 'Course not found', 'status': 404}
                return self._format_course(course, student_count=course.enrollments.count())

        except Exception as e:
            logger.error(f"Error getting course: {str(e)}")
            return {'error': 'Failed to get course', 'status': 500}

    def enroll_student(self, student_id: int, course_id: int) -> Dict:
        """Enroll a student and let the instructor know"""
        try:
            with get_db() as db:
                course = db.query(Course).filter_by(id=course_id).first()
                if not course:
                    return {'error': 'Course not found', 'status': 404}

                student = db.query(User).filter_by(id=student_id).first()
                if not student or student.role != UserRole.STUDENT:
                    return {'error': 'Only students can enroll', 'status': 403}

                existing = db.query(Enrollment).filter_by(
                    course_id=course_id, student_id=student_id
                ).first()
                if existing:
                    return {'error': 'Already enrolled in this course', 'status': 400}

                db.add(Enrollment(course_id=course_id, student_id=student_id))
                db.flush()

                instructor_id = course.instructor_id
                course_title = course.title
                student_name = student.name

        except IntegrityError:
            return {'error': 'Already enrolled in this course', 'status': 400}
        except Exception as e:
            logger.error(f"Error enrolling student {student_id} in course {course_id}: {str(e)}")
            return {'error': 'Failed to enroll', 'status': 500}

        self.notification_service.notify(
            instructor_id,
            NotificationType.STUDENT_ENROLLED,
            'New student enrolled',
            f'{student_name} enrolled in "{course_title}".',
            link=f'/courses/{course_id}',
            course_id=course_id
        )
        logger.info(f"Student {student_id} enrolled in course {course_id}")
        return {'success': True, 'course_id': course_id}

    def get_membership(self, course_id: int) -> Optional[Dict]:
        """Instructor and enrolled-student ids for a course, or None if it does not exist"""
        with get_db() as db:
            course = db.query(Course).filter_by(id=course_id).first()
            if not course:
                return None
            student_ids = [
                row.student_id for row in
                db.query(Enrollment.student_id).filter(Enrollment.course_id == course_id).all()
            ]
            return {
                'course_id': course.id,
                'title': course.title,
                'instructor_id': course.instructor_id,
                'student_ids': student_ids
            }

    def get_instructor_student_ids(self, instructor_id: int) -> Set[int]:
        """Every student enrolled in any course the instructor teaches"""
        with get_db() as db:
            rows = db.query(Enrollment.student_id).join(
                Course, Course.id == Enrollment.course_id
            ).filter(Course.instructor_id == instructor_id).distinct().all()
            return {row.student_id for row in rows}

    def get_instructor_courses(self, instructor_id: int) -> List[Dict]:
        try:
            with get_db() as db:
                courses = db.query(Course).filter_by(
                    instructor_id=instructor_id
                ).order_by(Course.created_at.asc()).all()
                return [self._format_course(c, student_count=c.enrollments.count()) for c in courses]

        except Exception as e:
            logger.error(f"Error getting instructor courses: {str(e)}")
            return []

    def _format_course(self, course: Course, student_count: int) -> Dict:
        return {
            'id': course.id,
            'title': course.title,
            'description': course.description,
            'instructor': course.instructor_id,
            'studentCount': student_count
        }
