from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, Index
from sqlalchemy.sql import func
from app.cores.db import Base
from app.models.coaching.constants import BookingStatus


class CoachingBookingRequest(Base):
    __tablename__ = "coaching_booking_requests"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    tutor_id = Column(Integer, nullable=False)
    tutor_type = Column(String(20), nullable=False)

    # Qué quiere aprender el estudiante
    topic = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    # Propuesta original del estudiante
    proposed_start_time = Column(DateTime, nullable=False, index=True)
    proposed_end_time = Column(DateTime, nullable=False)
    proposed_duration_minutes = Column(Integer, nullable=False)
    is_from_availability = Column(Boolean, nullable=False, default=False)

    # Contrapropuesta del tutor
    counter_proposed_start_time = Column(DateTime, nullable=True)
    counter_proposed_end_time = Column(DateTime, nullable=True)
    counter_proposed_duration_minutes = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    accepted_by = Column(String(10), nullable=True)

    # Tarifa fijada al crear la solicitud
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    estimated_price = Column(Numeric(10, 2), nullable=False)
    final_price = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(10), nullable=False, default="NGN")

    student_note = Column(Text, nullable=True)
    tutor_note = Column(Text, nullable=True)

    # Lo asigna el flujo de pago después de aceptar
    session_id = Column(Integer, nullable=True, index=True)

    accepted_at = Column(DateTime, nullable=True)
    declined_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_coaching_booking_requests_tutor", "tutor_id", "tutor_type"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<CoachingBookingRequest(id={self.id}, student_id={self.student_id}, tutor_id={self.tutor_id}, status={self.status})>"
