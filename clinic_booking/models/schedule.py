"""Weekly schedule block model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String

from clinic_booking.database import Base


class Schedule(Base):
    """A recurring weekly availability window for a doctor.

    ``day_of_week`` counts from Sunday (0) to Saturday (6). Times are stored as
    zero-padded ``HH:mm`` strings so they compare correctly as text.
    """
    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_schedules_time_order"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedules_day_range"),
        Index("idx_schedules_doctor_day", "doctor_id", "day_of_week", "start_time"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
