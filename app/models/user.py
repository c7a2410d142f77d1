from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class UserRole(enum.Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class User(BaseModel):
    __tablename__ = 'users'

    # Basic Info
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False)

    # Status
    is_active = Column(Boolean, default=True)
    email_notifications = Column(Boolean, default=True)

    # Relationships
    courses_taught = relationship("Course", back_populates="instructor", lazy='dynamic')
    enrollments = relationship("Enrollment", back_populates="student", lazy='dynamic')
    availabilities = relationship("InstructorAvailability", back_populates="instructor", lazy='dynamic')
    notifications = relationship("Notification", back_populates="user", lazy='dynamic')
