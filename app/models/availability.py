from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class InstructorAvailability(BaseModel):
    __tablename__ = 'instructor_availabilities'
    __table_args__ = (
        UniqueConstraint('instructor_id', 'date', name='uq_availability_instructor_date'),
    )

    instructor_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Calendar day as "YYYY-MM-DD"
    date = Column(String(10), nullable=False)

    # Free time ranges stored as JSON
    # Format: [{"startTime": "09:00", "endTime": "10:30", "note": "..."}, ...]
    time_ranges = Column(JSON, nullable=False, default=list)

    day_note = Column(Text, default='')

    # Blocked days accept no bookings regardless of time_ranges
    is_blocked = Column(Boolean, default=False, nullable=False)

    # Relationships
    instructor = relationship("User", back_populates="availabilities")
