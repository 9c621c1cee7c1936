from sqlalchemy import Column, String, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"

    # Foreign key to tutor profile
    tutor_id = Column(UUID(as_uuid=True), ForeignKey("tutor_profiles.id", ondelete="CASCADE"), nullable=False)

    # Recurring weekly window, minutes since midnight UTC
    day = Column(String, nullable=False)  # Canonical day name, e.g. "Monday"
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)  # 0 with a later start means end of day

    # Relationships
    tutor = relationship("TutorProfile", back_populates="availability")

    def __repr__(self):
        return f"<AvailabilitySlot(tutor_id={self.tutor_id}, day={self.day}, start={self.start_minute}, end={self.end_minute})>"


Index("idx_availability_slots_tutor_day", AvailabilitySlot.tutor_id, AvailabilitySlot.day)
