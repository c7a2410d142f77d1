import os

# Point the application at a throwaway database before anything imports it
os.environ['DATABASE_URL'] = 'sqlite:///test_mentorship.db'
os.environ.setdefault('LOG_FILE', 'logs/test_mentorship.log')
os.environ['NOTIFICATION_EMAILS_ENABLED'] = 'false'

import pytest  # noqa: E402
from datetime import datetime  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from app.database import drop_db, init_db, DatabaseManager  # noqa: E402
from app.models import User, Course, Enrollment, InstructorAvailability  # noqa: E402
from app.models.user import UserRole  # noqa: E402
from app.services.availability_service import AvailabilityService  # noqa: E402
from app.services.course_service import CourseService  # noqa: E402
from app.services.mentorship_service import MentorshipService  # noqa: E402
from app.services.notification_service import NotificationService  # noqa: E402
from app.services.scheduling import DEFAULT_POLICY  # noqa: E402
from app.services.slot_service import SlotService  # noqa: E402


class FixedClock:
    """Callable clock the tests can move around"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    """Clock fixed the morning before the 2025-06-10 test day"""
    return FixedClock(datetime(2025, 6, 9, 8, 0))


@pytest.fixture
def database():
    """Fresh schema for each test"""
    drop_db()
    init_db()
    yield
    drop_db()


@pytest.fixture
def make_user(database):
    user_db = DatabaseManager(User)
    counter = {'n': 0}

    def _make_user(role=UserRole.STUDENT, name=None):
        counter['n'] += 1
        n = counter['n']
        return user_db.create(
            name=name or f'{role.value.title()} {n}',
            email=f'{role.value}{n}@test.com',
            password_hash='hashed',
            role=role,
            is_active=True
        )

    return _make_user


@pytest.fixture
def make_course(database):
    course_db = DatabaseManager(Course)
    enrollment_db = DatabaseManager(Enrollment)

    def _make_course(instructor, students=(), title='Test Course'):
        course = course_db.create(title=title, description='', instructor_id=instructor.id)
        for student in students:
            enrollment_db.create(course_id=course.id, student_id=student.id)
        return course

    return _make_course


@pytest.fixture
def make_availability(database):
    availability_db = DatabaseManager(InstructorAvailability)

    def _make_availability(instructor, date, ranges, is_blocked=False, day_note=''):
        return availability_db.create(
            instructor_id=instructor.id,
            date=date,
            time_ranges=[
                {'startTime': start, 'endTime': end, 'note': note}
                for start, end, note in ranges
            ],
            day_note=day_note,
            is_blocked=is_blocked
        )

    return _make_availability


@pytest.fixture
def mentorship_setup(make_user, make_course):
    """An instructor teaching one course with two enrolled students and one outsider"""
    instructor = make_user(UserRole.INSTRUCTOR, name='Ada Instructor')
    student = make_user(UserRole.STUDENT, name='Sam Student')
    other_student = make_user(UserRole.STUDENT, name='Olive Student')
    outsider = make_user(UserRole.STUDENT, name='Nora Outsider')
    course = make_course(instructor, [student, other_student])

    return {
        'instructor': instructor,
        'student': student,
        'other_student': other_student,
        'outsider': outsider,
        'course': course
    }


@pytest.fixture
def services(database, clock):
    """Service graph sharing one notification sink and the fixed clock"""
    notification_service = NotificationService()
    course_service = CourseService(notification_service)
    return SimpleNamespace(
        notifications=notification_service,
        courses=course_service,
        availability=AvailabilityService(notification_service, course_service, clock),
        slots=SlotService(course_service, DEFAULT_POLICY, clock),
        mentorship=MentorshipService(notification_service, course_service, DEFAULT_POLICY, clock)
    )
