#!/usr/bin/env python3
"""
Script to seed the database with sample data for testing
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, timedelta
from app.database import init_db, drop_db, get_db
from app.models import User, Course, Enrollment, InstructorAvailability
from app.models.user import UserRole
from app.utils.security import hash_password

DEFAULT_PASSWORD = 'Password123'


def create_users(db):
    """Create one instructor and a handful of students"""
    password_hash = hash_password(DEFAULT_PASSWORD)

    instructor = User(
        name='Ada Instructor',
        email='instructor@example.com',
        password_hash=password_hash,
        role=UserRole.INSTRUCTOR
    )
    db.add(instructor)

    students = []
    for i in range(1, 4):
        student = User(
            name=f'Student {i}',
            email=f'student{i}@example.com',
            password_hash=password_hash,
            role=UserRole.STUDENT
        )
        db.add(student)
        students.append(student)

    db.flush()
    return instructor, students


def create_courses(db, instructor, students):
    """Create two courses and enroll the students"""
    courses = [
        Course(title='Intro to Python', description='Basics of Python programming',
               instructor_id=instructor.id),
        Course(title='Data Structures', description='Lists, trees and graphs',
               instructor_id=instructor.id),
    ]
    db.add_all(courses)
    db.flush()

    for student in students:
        db.add(Enrollment(course_id=courses[0].id, student_id=student.id))
    db.add(Enrollment(course_id=courses[1].id, student_id=students[0].id))
    return courses


def create_availability(db, instructor):
    """Open the next three days with a morning and an afternoon range"""
    for offset in range(1, 4):
        day = (date.today() + timedelta(days=offset)).isoformat()
        db.add(InstructorAvailability(
            instructor_id=instructor.id,
            date=day,
            time_ranges=[
                {'startTime': '09:00', 'endTime': '11:00', 'note': 'Morning office hours'},
                {'startTime': '14:00', 'endTime': '15:30', 'note': ''},
            ],
            day_note='',
            is_blocked=False
        ))


def main():
    reset = '--reset' in sys.argv
    if reset:
        drop_db()
    init_db()

    with get_db() as db:
        if db.query(User).count() and not reset:
            print("Database already seeded; use --reset to start over")
            return

        instructor, students = create_users(db)
        create_courses(db, instructor, students)
        create_availability(db, instructor)

    print("Seeded 1 instructor, 3 students, 2 courses and 3 days of availability")
    print(f"All accounts use the password '{DEFAULT_PASSWORD}'")


if __name__ == '__main__':
    main()
