from sqlalchemy import Column, String, Text, Float, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.database import Base


tutor_categories = Table(
    "tutor_categories",
    Base.metadata,
    Column("tutor_id", UUID(as_uuid=True), ForeignKey("tutor_profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"

    name = Column(String, unique=True, nullable=False)

    # Relationships
    tutors = relationship("TutorProfile", secondary=tutor_categories, back_populates="categories")

    def __repr__(self):
        return f"<Category(name={self.name})>"


class TutorProfile(Base):
    __tablename__ = "tutor_profiles"

    # Foreign key to user
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True)

    # Profile information
    bio = Column(Text, nullable=True)
    price_per_hour = Column(Float, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0)  # Mean of review ratings

    # Relationships
    user = relationship("User", back_populates="tutor_profile")
    categories = relationship("Category", secondary=tutor_categories, back_populates="tutors")
    availability = relationship("AvailabilitySlot", back_populates="tutor", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="tutor")
    reviews = relationship("Review", back_populates="tutor")

    def __repr__(self):
        return f"<TutorProfile(user_id={self.user_id}, price_per_hour={self.price_per_hour})>"
