from sqlalchemy import Column, String, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class Course(BaseModel):
    __tablename__ = 'courses'

    title = Column(String(255), nullable=False)
    description = Column(Text, default='')
    instructor_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Relationships
    instructor = relationship("User", back_populates="courses_taught")
    enrollments = relationship("Enrollment", back_populates="course", lazy='dynamic')


class Enrollment(BaseModel):
    __tablename__ = 'enrollments'
    __table_args__ = (
        UniqueConstraint('course_id', 'student_id', name='uq_enrollment_course_student'),
    )

    course_id = Column(Integer, ForeignKey('courses.id'), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Relationships
    course = relationship("Course", back_populates="enrollments")
    student = relationship("User", back_populates="enrollments")
