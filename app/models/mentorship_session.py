from sqlalchemy import Column, Text, Integer, ForeignKey, DateTime, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class SessionStatus(enum.Enum):
    BOOKED = "booked"
    CANCELLED_BY_STUDENT = "cancelledByStudent"
    CANCELLED_BY_INSTRUCTOR = "cancelledByInstructor"
    COMPLETED = "completed"


# booked is the only state with outgoing edges
ALLOWED_TRANSITIONS = {
    SessionStatus.BOOKED: {
        SessionStatus.CANCELLED_BY_STUDENT,
        SessionStatus.CANCELLED_BY_INSTRUCTOR,
        SessionStatus.COMPLETED,
    },
}


class MentorshipSession(BaseModel):
    __tablename__ = 'mentorship_sessions'
    __table_args__ = (
        Index('ix_sessions_instructor_start', 'instructor_id', 'start_time'),
        Index('ix_sessions_student_start', 'student_id', 'start_time'),
        Index('ix_sessions_course_start', 'course_id', 'start_time'),
    )

    instructor_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    student_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    course_id = Column(Integer, ForeignKey('courses.id'), nullable=False)

    # Local instants; end_time is start_time + duration_minutes
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    status = Column(Enum(SessionStatus), default=SessionStatus.BOOKED, nullable=False, index=True)

    student_note = Column(Text, default='')
    instructor_note = Column(Text, default='')

    cancelled_at = Column(DateTime)
    completed_at = Column(DateTime)

    # Relationships
    instructor = relationship("User", foreign_keys=[instructor_id])
    student = relationship("User", foreign_keys=[student_id])
    course = relationship("Course")
    reservations = relationship("SessionTimeReservation", back_populates="session",
                                cascade="all, delete-orphan")

    def can_transition_to(self, new_status: SessionStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: SessionStatus):
        """Move to new_status, refusing any edge outside the state machine"""
        if not self.can_transition_to(new_status):
            raise ValueError(
                f"Cannot move session from {self.status.value} to {new_status.value}"
            )
        self.status = new_status


class SessionTimeReservation(BaseModel):
    """One row per minute held by a booked session.

    The unique key on (instructor_id, minute) makes the database refuse a
    second booked session that shares any minute with an existing one.
    """
    __tablename__ = 'session_time_reservations'
    __table_args__ = (
        UniqueConstraint('instructor_id', 'minute', name='uq_reservation_instructor_minute'),
    )

    session_id = Column(Integer, ForeignKey('mentorship_sessions.id'), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    minute = Column(DateTime, nullable=False)

    session = relationship("MentorshipSession", back_populates="reservations")
