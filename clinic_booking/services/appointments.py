"""Appointment lifecycle manager.

Owns creation, rescheduling, confirmation and cancellation of appointments.
Every lookup is scoped to the calling patient, so an appointment owned by
someone else is reported as not found.
"""

import logging
from datetime import date

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_booking.core import config
from clinic_booking.core.errors import ConflictError, NotFoundError, ScheduleError, StateError, ValidationError
from clinic_booking.models.appointment import TRANSITIONS, Appointment, AppointmentStatus
from clinic_booking.models.doctor import Doctor
from clinic_booking.services.conflict_guard import has_conflict, is_within_schedule
from clinic_booking.services.formatting import format_appointment, is_valid_time

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ('appointment_date', 'appointment_time', 'reason', 'notes')
CLEARABLE_FIELDS = ('notes',)

PAST_DATE_MESSAGE = 'Appointments cannot be booked on a past date.'
OUTSIDE_SCHEDULE_MESSAGE = 'The doctor has no availability at that date and time.'
SLOT_TAKEN_MESSAGE = 'That time slot is already booked.'
NOT_FOUND_MESSAGE = 'Appointment not found.'


class AppointmentPage(BaseModel):
    items: list[dict]
    page: int
    page_size: int
    total: int


def require_transition(appointment: Appointment, action: str) -> AppointmentStatus:
    """Return the target status for ``action`` or raise ``StateError``."""
    edges = TRANSITIONS[action]
    current = AppointmentStatus(appointment.status)
    if current not in edges:
        required = tuple(status.value for status in edges)
        raise StateError(
            f"Cannot {action} an appointment that is {current.value}; "
            f"it must be {' or '.join(required)}.",
            current=current.value,
            required=required,
        )
    return edges[current]


def validate_reason(reason: str | None) -> str:
    normalized = (reason or '').strip()
    if not normalized:
        raise ValidationError('reason is required.')
    return normalized


def validate_appointment_time(value) -> str:
    if not is_valid_time(value):
        raise ValidationError(f'Invalid appointment time format: {value!r}. Use HH:mm.')
    return value


def check_slot_is_bookable(
    doctor_id: int,
    appointment_date: date,
    appointment_time: str,
    db: Session,
    exclude_appointment_id: int | None = None,
) -> None:
    if appointment_date < date.today():
        raise ValidationError(PAST_DATE_MESSAGE)

    if not is_within_schedule(doctor_id, appointment_date, appointment_time, db):
        raise ScheduleError(OUTSIDE_SCHEDULE_MESSAGE)

    if has_conflict(doctor_id, appointment_date, appointment_time, db, exclude_appointment_id):
        logger.warning('Rejected booking for doctor %s at %s %s: slot taken.',
                       doctor_id, appointment_date, appointment_time)
        raise ConflictError(SLOT_TAKEN_MESSAGE)


def _slot_taken(db: Session, doctor_id: int, appointment_date: date, appointment_time: str) -> ConflictError:
    # Lost the race to another writer for the same slot.
    db.rollback()
    logger.warning('Unique slot constraint rejected doctor %s at %s %s.',
                   doctor_id, appointment_date, appointment_time)
    return ConflictError(SLOT_TAKEN_MESSAGE)


def _commit_booking(appointment: Appointment, db: Session) -> None:
    slot = (appointment.doctor_id, appointment.appointment_date, appointment.appointment_time)
    try:
        db.commit()
    except IntegrityError as exc:
        raise _slot_taken(db, *slot) from exc
    db.refresh(appointment)


def _write_if_status_allows(appointment: Appointment, action: str, values: dict, db: Session) -> None:
    """Apply ``values`` only while the row still sits in a source status of ``action``.

    The status check runs inside the UPDATE, so a concurrent transition that
    committed after ``appointment`` was loaded makes this write match no rows.
    """
    appointment_id, patient_id = appointment.id, appointment.patient_id
    sources = [status.value for status in TRANSITIONS[action]]
    slot = (
        appointment.doctor_id,
        values.get('appointment_date', appointment.appointment_date),
        values.get('appointment_time', appointment.appointment_time),
    )
    try:
        matched = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.patient_id == patient_id,
            Appointment.status.in_(sources),
        ).update(values, synchronize_session=False)
        db.commit()
    except IntegrityError as exc:
        raise _slot_taken(db, *slot) from exc

    if matched == 0:
        _raise_stale(appointment_id, patient_id, action, db)
    db.refresh(appointment)


def _raise_stale(appointment_id: int, patient_id: int, action: str, db: Session) -> None:
    current = _get_owned_appointment(appointment_id, patient_id, db)
    require_transition(current, action)
    status = getattr(current.status, 'value', current.status)
    raise StateError(
        f'Appointment {appointment_id} changed while it was being updated; try again.',
        current=status,
        required=tuple(source.value for source in TRANSITIONS[action]),
    )


def _get_doctor(doctor_id: int, db: Session) -> Doctor | None:
    return db.query(Doctor).filter(Doctor.id == doctor_id).first()


def _get_owned_appointment(appointment_id: int, patient_id: int, db: Session) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.patient_id == patient_id,
    ).first()
    if appointment is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return appointment


def _enriched(appointment: Appointment, db: Session) -> dict:
    return format_appointment(appointment, _get_doctor(appointment.doctor_id, db))


def create_appointment(
    patient_id: int,
    doctor_id: int,
    appointment_date: date,
    appointment_time: str,
    reason: str,
    notes: str | None = None,
    *,
    db: Session,
) -> dict:
    validate_appointment_time(appointment_time)
    reason = validate_reason(reason)

    doctor = _get_doctor(doctor_id, db)
    if doctor is None:
        raise NotFoundError('Doctor not found.')

    check_slot_is_bookable(doctor_id, appointment_date, appointment_time, db)

    specialty = doctor.specialty
    appointment = Appointment(
        patient_id=patient_id,
        doctor_id=doctor_id,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        status=AppointmentStatus.SCHEDULED.value,
        reason=reason,
        notes=notes,
        price=specialty.base_price if specialty is not None else None,
    )
    db.add(appointment)
    _commit_booking(appointment, db)

    logger.info('Booked appointment %s for patient %s with doctor %s at %s %s.',
                appointment.id, patient_id, doctor_id, appointment_date, appointment_time)
    return format_appointment(appointment, doctor)


def update_appointment(appointment_id: int, patient_id: int, changes: dict, db: Session) -> dict:
    appointment = _get_owned_appointment(appointment_id, patient_id, db)
    require_transition(appointment, 'update')

    # A present notes key is authoritative, so None clears it.
    updates = {
        field: value
        for field, value in changes.items()
        if field in MUTABLE_FIELDS and (value is not None or field in CLEARABLE_FIELDS)
    }
    if 'appointment_time' in updates:
        validate_appointment_time(updates['appointment_time'])
    if 'reason' in updates:
        updates['reason'] = validate_reason(updates['reason'])

    new_date = updates.get('appointment_date', appointment.appointment_date)
    new_time = updates.get('appointment_time', appointment.appointment_time)
    if new_date != appointment.appointment_date or new_time != appointment.appointment_time:
        check_slot_is_bookable(
            appointment.doctor_id,
            new_date,
            new_time,
            db,
            exclude_appointment_id=appointment.id,
        )

    if updates:
        _write_if_status_allows(appointment, 'update', updates, db)

    logger.info('Updated appointment %s: %s', appointment.id, sorted(updates))
    return _enriched(appointment, db)


def _apply_transition(appointment_id: int, patient_id: int, action: str, db: Session) -> dict:
    appointment = _get_owned_appointment(appointment_id, patient_id, db)
    target = require_transition(appointment, action)

    previous = getattr(appointment.status, 'value', appointment.status)
    _write_if_status_allows(appointment, action, {'status': target.value}, db)

    logger.info('Appointment %s moved from %s to %s.', appointment.id, previous, target.value)
    return _enriched(appointment, db)


def confirm_appointment(appointment_id: int, patient_id: int, db: Session) -> dict:
    return _apply_transition(appointment_id, patient_id, 'confirm', db)


def cancel_appointment(appointment_id: int, patient_id: int, db: Session) -> dict:
    return _apply_transition(appointment_id, patient_id, 'cancel', db)


def get_appointment(appointment_id: int, patient_id: int, db: Session) -> dict:
    return _enriched(_get_owned_appointment(appointment_id, patient_id, db), db)


def list_appointments(
    patient_id: int,
    status_filter: str | None = None,
    page: int = 1,
    page_size: int | None = None,
    *,
    db: Session,
) -> AppointmentPage:
    valid_page = max(1, page or 1)
    if page_size is None:
        page_size = config.DEFAULT_PAGE_SIZE
    valid_page_size = max(1, min(config.MAX_PAGE_SIZE, page_size))

    query = db.query(Appointment).filter(Appointment.patient_id == patient_id)

    if status_filter is not None and status_filter.strip():
        normalized_status = status_filter.strip().lower()
        try:
            AppointmentStatus(normalized_status)
        except ValueError as exc:
            raise ValidationError(f'Unknown appointment status: {status_filter!r}.') from exc
        query = query.filter(Appointment.status == normalized_status)

    total = query.count()
    appointments = query.order_by(
        Appointment.appointment_date.desc(),
        Appointment.appointment_time.desc(),
        Appointment.id.desc(),
    ).offset((valid_page - 1) * valid_page_size).limit(valid_page_size).all()

    doctors: dict[int, Doctor | None] = {}
    items = []
    for appointment in appointments:
        if appointment.doctor_id not in doctors:
            doctors[appointment.doctor_id] = _get_doctor(appointment.doctor_id, db)
        items.append(format_appointment(appointment, doctors[appointment.doctor_id]))

    return AppointmentPage(items=items, page=valid_page, page_size=valid_page_size, total=total)
