from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("student_id", "tutor_id", name="uq_reviews_student_tutor"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    tutor_id = Column(UUID(as_uuid=True), ForeignKey("tutor_profiles.id"), nullable=False)
    booking_id = Column(UUID(as_uuid=True), ForeignKey("bookings.id"), nullable=True)  # Completed session being reviewed

    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)

    # Relationships
    student = relationship("User", back_populates="reviews")
    tutor = relationship("TutorProfile", back_populates="reviews")

    def __repr__(self):
        return f"<Review(student_id={self.student_id}, tutor_id={self.tutor_id}, rating={self.rating})>"
