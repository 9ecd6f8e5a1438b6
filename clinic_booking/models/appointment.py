"""Appointment model definitions."""

import enum
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, text

from clinic_booking.database import ACTIVE_STATUS_CLAUSE, Base


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value)

# action -> {source status: target status}. Anything missing is rejected.
TRANSITIONS = {
    "update": {AppointmentStatus.SCHEDULED: AppointmentStatus.SCHEDULED},
    "confirm": {AppointmentStatus.SCHEDULED: AppointmentStatus.CONFIRMED},
    "cancel": {
        AppointmentStatus.SCHEDULED: AppointmentStatus.CANCELLED,
        AppointmentStatus.CONFIRMED: AppointmentStatus.CANCELLED,
    },
}


class Appointment(Base):
    """Represents a booked appointment."""
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one active booking per doctor, date and time.
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
        ),
        Index("idx_appointments_patient_date", "patient_id", "appointment_date"),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)
    status = Column(
        Enum(
            AppointmentStatus,
            name="appointment_status",
            native_enum=False,
            create_constraint=True,
            validate_strings=True,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    reason = Column(String, nullable=False)
    notes = Column(String)
    price = Column(Numeric(10, 2))
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
