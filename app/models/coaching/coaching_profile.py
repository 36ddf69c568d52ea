from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, JSON, UniqueConstraint
from sqlalchemy.sql import func
from app.cores.db import Base


class TutorCoachingProfile(Base):
    __tablename__ = "tutor_coaching_profiles"

    id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, nullable=False)
    tutor_type = Column(String(20), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="NGN")
    bio = Column(Text, nullable=True)
    # Lista de temas (strings)
    specializations = Column(JSON, nullable=True)
    is_accepting_bookings = Column(Boolean, nullable=False, default=True, index=True)
    min_duration_minutes = Column(Integer, nullable=False, default=30)
    max_duration_minutes = Column(Integer, nullable=False, default=180)
    timezone = Column(String(50), nullable=True, default="Africa/Lagos")
    total_sessions_completed = Column(Integer, nullable=False, default=0)
    average_rating = Column(Numeric(3, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("tutor_id", "tutor_type", name="unique_tutor_coaching_profile"),
    )

    def __repr__(self):
        return f"<TutorCoachingProfile(tutor_id={self.tutor_id}, tutor_type={self.tutor_type})>"
