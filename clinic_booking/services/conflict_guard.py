"""Pre-write checks for a requested doctor/date/time.

``has_conflict`` is only a fast path: two requests can both pass it before either
commits. The partial unique index on ``appointments`` is what actually rejects
the second writer.
"""

from datetime import date

from sqlalchemy.orm import Session

from clinic_booking.models.appointment import ACTIVE_STATUSES, Appointment
from clinic_booking.services import schedule_store
from clinic_booking.services.formatting import day_of_week


def has_conflict(
    doctor_id: int,
    appointment_date: date,
    appointment_time: str,
    db: Session,
    exclude_appointment_id: int | None = None,
) -> bool:
    query = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.appointment_time == appointment_time,
        Appointment.status.in_(ACTIVE_STATUSES),
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.first() is not None


def is_within_schedule(doctor_id: int, appointment_date: date, appointment_time: str, db: Session) -> bool:
    # Inclusive on both ends, unlike slot generation which excludes end_time.
    blocks = schedule_store.get_active_blocks_for_day(doctor_id, day_of_week(appointment_date), db)
    return any(block.start_time <= appointment_time <= block.end_time for block in blocks)
