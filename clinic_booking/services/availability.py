"""Availability engine.

Turns a doctor's weekly schedule blocks into the concrete slot grid for a single
calendar date and marks which slots already hold an active appointment.
"""

from datetime import date, datetime, timedelta

from pydantic import BaseModel
from sqlalchemy.orm import Session

from clinic_booking.core import config
from clinic_booking.core.errors import NotFoundError, ValidationError
from clinic_booking.models.appointment import ACTIVE_STATUSES, Appointment
from clinic_booking.models.doctor import Doctor
from clinic_booking.services import schedule_store
from clinic_booking.services.formatting import day_of_week

SLOT_AVAILABLE = 'available'
SLOT_OCCUPIED = 'occupied'


class Slot(BaseModel):
    time: str
    status: str
    is_available: bool
    appointment_id: int | None = None
    reason: str | None = None


class SlotGrid(BaseModel):
    doctor_id: int
    slot_date: date
    slot_duration_minutes: int
    slots: list[Slot]
    total: int
    available_count: int
    occupied_count: int


def generate_time_slots(start_time: str, end_time: str, interval_minutes: int) -> list[str]:
    slots: list[str] = []
    current = datetime.strptime(start_time, '%H:%M')
    end = datetime.strptime(end_time, '%H:%M')

    # End boundary is exclusive.
    while current < end:
        slots.append(current.strftime('%H:%M'))
        current += timedelta(minutes=interval_minutes)

    return slots


def select_block_for_day(blocks, weekday: int):
    # First active match wins; overlapping blocks are not merged.
    for block in blocks:
        if block.day_of_week == weekday and block.is_active:
            return block
    return None


def build_slot_grid(
    blocks,
    appointments,
    slot_date: date,
    slot_duration_minutes: int,
    doctor_id: int,
) -> SlotGrid:
    if slot_duration_minutes < 1:
        raise ValidationError(f'slot_duration_minutes must be positive, got: {slot_duration_minutes}.')

    block = select_block_for_day(blocks, day_of_week(slot_date))
    if block is None:
        return SlotGrid(
            doctor_id=doctor_id,
            slot_date=slot_date,
            slot_duration_minutes=slot_duration_minutes,
            slots=[],
            total=0,
            available_count=0,
            occupied_count=0,
        )

    occupied_times = {}
    for appointment in appointments:
        if appointment.status in ACTIVE_STATUSES:
            occupied_times[appointment.appointment_time] = appointment

    slots: list[Slot] = []
    for slot_time in generate_time_slots(block.start_time, block.end_time, slot_duration_minutes):
        appointment = occupied_times.get(slot_time)
        if appointment is None:
            slots.append(Slot(time=slot_time, status=SLOT_AVAILABLE, is_available=True))
        else:
            slots.append(
                Slot(
                    time=slot_time,
                    status=SLOT_OCCUPIED,
                    is_available=False,
                    appointment_id=appointment.id,
                    reason=appointment.reason,
                )
            )

    available_count = sum(1 for slot in slots if slot.is_available)
    return SlotGrid(
        doctor_id=doctor_id,
        slot_date=slot_date,
        slot_duration_minutes=slot_duration_minutes,
        slots=slots,
        total=len(slots),
        available_count=available_count,
        occupied_count=len(slots) - available_count,
    )


def resolve_slot_duration(doctor: Doctor, slot_duration_minutes: int | None) -> int:
    if slot_duration_minutes is not None:
        return slot_duration_minutes
    if doctor.consultation_minutes:
        return doctor.consultation_minutes
    if doctor.specialty is not None and doctor.specialty.consultation_minutes:
        return doctor.specialty.consultation_minutes
    return config.DEFAULT_SLOT_DURATION_MINUTES


def compute_available_slots(
    doctor_id: int,
    slot_date: date,
    slot_duration_minutes: int | None,
    db: Session,
) -> SlotGrid:
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if doctor is None:
        raise NotFoundError('Doctor not found.')

    duration = resolve_slot_duration(doctor, slot_duration_minutes)
    blocks = schedule_store.get_active_blocks_for_day(doctor_id, day_of_week(slot_date), db)
    appointments = db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == slot_date,
        Appointment.status.in_(ACTIVE_STATUSES),
    ).all()

    return build_slot_grid(blocks, appointments, slot_date, duration, doctor_id)
