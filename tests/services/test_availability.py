from datetime import date
from types import SimpleNamespace

import pytest

from clinic_booking.core import config
from clinic_booking.core.errors import NotFoundError, ValidationError
from clinic_booking.models.appointment import Appointment
from clinic_booking.models.doctor import Doctor
from clinic_booking.models.schedule import Schedule
from clinic_booking.services.availability import (
    build_slot_grid,
    compute_available_slots,
    day_of_week,
    generate_time_slots,
)


def _block(day: int, start: str, end: str, active: bool = True):
    return SimpleNamespace(day_of_week=day, start_time=start, end_time=end, is_active=active)


def _appointment(appointment_id: int, time: str, status: str = 'scheduled', reason: str = 'Checkup'):
    return SimpleNamespace(id=appointment_id, appointment_time=time, status=status, reason=reason)


def _minutes(value: str) -> int:
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


@pytest.mark.parametrize(
    ('slot_date', 'expected'),
    [
        (date(2026, 1, 4), 0),
        (date(2026, 1, 5), 1),
        (date(2026, 1, 10), 6),
        (date(2024, 2, 29), 4),
        (date(1900, 1, 1), 1),
    ],
)
def test_day_of_week_counts_from_sunday(slot_date: date, expected: int) -> None:
    assert day_of_week(slot_date) == expected


def test_generate_time_slots_excludes_end_boundary() -> None:
    assert generate_time_slots('09:00', '10:00', 30) == ['09:00', '09:30']


def test_generate_time_slots_keeps_partial_last_slot_start() -> None:
    assert generate_time_slots('09:00', '10:00', 40) == ['09:00', '09:40']


@pytest.mark.parametrize(
    ('start', 'end', 'duration'),
    [
        ('08:00', '12:00', 15),
        ('08:15', '17:45', 40),
        ('00:00', '23:59', 60),
        ('13:00', '13:05', 30),
    ],
)
def test_generate_time_slots_is_evenly_spaced_and_before_end(start: str, end: str, duration: int) -> None:
    slots = generate_time_slots(start, end, duration)

    assert slots[0] == start
    assert all(slot < end for slot in slots)
    gaps = [_minutes(later) - _minutes(earlier) for earlier, later in zip(slots, slots[1:])]
    assert all(gap == duration for gap in gaps)


def test_build_slot_grid_all_available_for_free_day() -> None:
    grid = build_slot_grid([_block(1, '09:00', '10:00')], [], date(2026, 1, 5), 30, doctor_id=7)

    assert [(slot.time, slot.status) for slot in grid.slots] == [('09:00', 'available'), ('09:30', 'available')]
    assert (grid.total, grid.available_count, grid.occupied_count) == (2, 2, 0)


def test_build_slot_grid_marks_occupied_slot() -> None:
    grid = build_slot_grid(
        [_block(1, '09:00', '10:00')],
        [_appointment(11, '09:30')],
        date(2026, 1, 5),
        30,
        doctor_id=7,
    )

    assert grid.slots[0].status == 'available'
    assert grid.slots[1].status == 'occupied'
    assert grid.slots[1].appointment_id == 11
    assert grid.slots[1].reason == 'Checkup'
    assert grid.available_count == 1
    assert grid.occupied_count == 1


def test_build_slot_grid_ignores_cancelled_appointments() -> None:
    grid = build_slot_grid(
        [_block(1, '09:00', '10:00')],
        [_appointment(11, '09:00', status='cancelled')],
        date(2026, 1, 5),
        30,
        doctor_id=7,
    )

    assert grid.available_count == 2


def test_build_slot_grid_is_empty_without_block_for_weekday() -> None:
    grid = build_slot_grid([_block(2, '09:00', '10:00')], [], date(2026, 1, 5), 30, doctor_id=7)

    assert grid.slots == []
    assert (grid.total, grid.available_count, grid.occupied_count) == (0, 0, 0)


def test_build_slot_grid_uses_first_active_block() -> None:
    blocks = [
        _block(1, '07:00', '08:00', active=False),
        _block(1, '09:00', '10:00'),
        _block(1, '14:00', '15:00'),
    ]

    grid = build_slot_grid(blocks, [], date(2026, 1, 5), 30, doctor_id=7)

    assert [slot.time for slot in grid.slots] == ['09:00', '09:30']


def test_build_slot_grid_rejects_non_positive_duration() -> None:
    with pytest.raises(ValidationError):
        build_slot_grid([_block(1, '09:00', '10:00')], [], date(2026, 1, 5), 0, doctor_id=7)


def test_compute_available_slots_reads_schedule_and_bookings(db, doctor, patient, monday_block, next_monday) -> None:
    db.add(
        Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=next_monday,
            appointment_time='09:30',
            status='scheduled',
            reason='Control',
        )
    )
    db.commit()

    grid = compute_available_slots(doctor.id, next_monday, 30, db)

    assert [(slot.time, slot.status) for slot in grid.slots] == [('09:00', 'available'), ('09:30', 'occupied')]
    assert grid.available_count == 1
    assert grid.slot_date == next_monday


def test_compute_available_slots_falls_back_to_specialty_duration(db, doctor, monday_block, next_monday) -> None:
    grid = compute_available_slots(doctor.id, next_monday, None, db)

    assert grid.slot_duration_minutes == 30
    assert grid.total == 2


def test_compute_available_slots_uses_configured_default(db, next_monday) -> None:
    doctor = Doctor(first_name='Mario', last_name='Paz')
    db.add(doctor)
    db.commit()
    db.add(Schedule(doctor_id=doctor.id, day_of_week=1, start_time='09:00', end_time='11:00', is_active=True))
    db.commit()

    grid = compute_available_slots(doctor.id, next_monday, None, db)

    assert grid.slot_duration_minutes == config.DEFAULT_SLOT_DURATION_MINUTES
    assert grid.slots[0].time == '09:00'


def test_compute_available_slots_ignores_inactive_blocks(db, doctor, monday_block, next_monday) -> None:
    monday_block.is_active = False
    db.commit()

    grid = compute_available_slots(doctor.id, next_monday, 30, db)

    assert grid.total == 0


def test_compute_available_slots_rejects_unknown_doctor(db, next_monday) -> None:
    with pytest.raises(NotFoundError):
        compute_available_slots(999, next_monday, 30, db)
