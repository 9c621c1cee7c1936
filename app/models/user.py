from sqlalchemy import Column, String, Enum, Boolean
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base


class UserRole(str, enum.Enum):
    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    # Core user fields
    auth_provider_id = Column(String, unique=True, index=True, nullable=True)  # External credential service ID
    role = Column(Enum(UserRole), default=UserRole.STUDENT, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)

    # Moderation
    is_banned = Column(Boolean, default=False, nullable=False)

    # Relationships
    tutor_profile = relationship("TutorProfile", back_populates="user", uselist=False)
    bookings_as_student = relationship("Booking", back_populates="student")
    reviews = relationship("Review", back_populates="student")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
