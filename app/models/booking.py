from sqlalchemy import Column, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
import enum

from app.core.database import Base
from app.core.types import UTCDateTime


class BookingStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Booking(Base):
    __tablename__ = "bookings"

    # Student is a user, tutor is a tutor profile
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    tutor_id = Column(UUID(as_uuid=True), ForeignKey("tutor_profiles.id"), nullable=False)

    # Session start, fixed one hour duration
    session_date = Column(UTCDateTime, nullable=False)

    # Status
    status = Column(Enum(BookingStatus), default=BookingStatus.UPCOMING, nullable=False)

    # Relationships
    student = relationship("User", back_populates="bookings_as_student")
    tutor = relationship("TutorProfile", back_populates="bookings")

    def __repr__(self):
        return f"<Booking(student_id={self.student_id}, tutor_id={self.tutor_id}, session_date={self.session_date}, status={self.status})>"


# Collision lookups scan a tutor's bookings around an instant
Index("idx_bookings_tutor_session_date", Booking.tutor_id, Booking.session_date)
