from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Index
from sqlalchemy.sql import func
from app.cores.db import Base


class TutorAvailability(Base):
    __tablename__ = "tutor_availability"

    id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, nullable=False)
    tutor_type = Column(String(20), nullable=False)
    # True = semanal, False = fecha puntual
    is_recurring = Column(Boolean, nullable=False, default=False)
    # 0=domingo ... 6=sábado, solo para recurrentes
    day_of_week = Column(Integer, nullable=True)
    specific_date = Column(Date, nullable=True, index=True)
    # "HH:MM", se comparan como texto
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    timezone = Column(String(50), nullable=False, default="Africa/Lagos")
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_tutor_availability_tutor", "tutor_id", "tutor_type"),
        Index("ix_tutor_availability_recurring_day", "is_recurring", "day_of_week"),
    )

    def __repr__(self):
        return f"<TutorAvailability(id={self.id}, tutor_id={self.tutor_id}, {self.start_time}-{self.end_time})>"
