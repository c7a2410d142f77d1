from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, DateTime, Enum, Index
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class NotificationType(enum.Enum):
    CONSULTATION_BOOKED = "consultation_booked"
    CONSULTATION_CANCELLED = "consultation_cancelled"
    CONSULTATION_BLOCKED = "consultation_blocked"
    STUDENT_ENROLLED = "student_enrolled"


class Notification(BaseModel):
    __tablename__ = 'notifications'
    __table_args__ = (
        Index('ix_notifications_user_read', 'user_id', 'is_read', 'created_at'),
    )

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # Client route to open for this notification
    link = Column(String(500))

    course_id = Column(Integer, ForeignKey('courses.id'))

    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime)

    # Relationships
    user = relationship("User", back_populates="notifications")
    course = relationship("Course")
