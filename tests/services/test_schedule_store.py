import pytest

from clinic_booking.core.errors import ValidationError
from clinic_booking.services import schedule_store


def test_create_schedule_block_persists_active_block(db, doctor) -> None:
    block = schedule_store.create_schedule_block(doctor.id, 1, '09:00', '13:00', db=db)

    assert block.id is not None
    assert block.is_active is True
    assert schedule_store.get_schedule_block(block.id, db).start_time == '09:00'


def test_get_schedule_blocks_by_doctor_orders_by_day_then_start(db, doctor) -> None:
    schedule_store.create_schedule_block(doctor.id, 3, '08:00', '12:00', db=db)
    schedule_store.create_schedule_block(doctor.id, 1, '14:00', '18:00', db=db)
    schedule_store.create_schedule_block(doctor.id, 1, '08:00', '12:00', db=db)

    blocks = schedule_store.get_schedule_blocks_by_doctor(doctor.id, db)

    assert [(block.day_of_week, block.start_time) for block in blocks] == [
        (1, '08:00'),
        (1, '14:00'),
        (3, '08:00'),
    ]


def test_get_schedule_blocks_by_doctor_returns_empty_list(db, doctor) -> None:
    assert schedule_store.get_schedule_blocks_by_doctor(doctor.id, db) == []


@pytest.mark.parametrize('bad_time', ['9:00', '24:00', '12:60', 'noon', '12:00:00', ''])
def test_create_schedule_block_rejects_bad_start_time(db, doctor, bad_time: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        schedule_store.create_schedule_block(doctor.id, 1, bad_time, '18:00', db=db)

    assert 'start_time' in exception_info.value.message
    assert repr(bad_time) in exception_info.value.message


def test_create_schedule_block_rejects_bad_end_time(db, doctor) -> None:
    with pytest.raises(ValidationError) as exception_info:
        schedule_store.create_schedule_block(doctor.id, 1, '09:00', '25:00', db=db)

    assert 'end_time' in exception_info.value.message


@pytest.mark.parametrize('bad_day', [-1, 7, 10])
def test_create_schedule_block_rejects_day_out_of_range(db, doctor, bad_day: int) -> None:
    with pytest.raises(ValidationError) as exception_info:
        schedule_store.create_schedule_block(doctor.id, bad_day, '09:00', '10:00', db=db)

    assert 'day_of_week' in exception_info.value.message


@pytest.mark.parametrize(('start', 'end'), [('10:00', '10:00'), ('11:00', '09:00')])
def test_create_schedule_block_requires_start_before_end(db, doctor, start: str, end: str) -> None:
    with pytest.raises(ValidationError):
        schedule_store.create_schedule_block(doctor.id, 1, start, end, db=db)


def test_update_schedule_block_keeps_unspecified_fields(db, doctor) -> None:
    block = schedule_store.create_schedule_block(doctor.id, 2, '09:00', '13:00', db=db)

    updated = schedule_store.update_schedule_block(block.id, {'end_time': '15:00', 'start_time': None}, db)

    assert updated.start_time == '09:00'
    assert updated.end_time == '15:00'
    assert updated.day_of_week == 2
    assert updated.is_active is True


def test_update_schedule_block_can_deactivate(db, doctor) -> None:
    block = schedule_store.create_schedule_block(doctor.id, 2, '09:00', '13:00', db=db)

    updated = schedule_store.update_schedule_block(block.id, {'is_active': False}, db)

    assert updated.is_active is False


def test_update_schedule_block_validates_merged_range(db, doctor) -> None:
    block = schedule_store.create_schedule_block(doctor.id, 2, '09:00', '13:00', db=db)

    with pytest.raises(ValidationError):
        schedule_store.update_schedule_block(block.id, {'start_time': '14:00'}, db)

    assert schedule_store.get_schedule_block(block.id, db).start_time == '09:00'


def test_update_schedule_block_rejects_bad_day(db, doctor) -> None:
    block = schedule_store.create_schedule_block(doctor.id, 2, '09:00', '13:00', db=db)

    with pytest.raises(ValidationError):
        schedule_store.update_schedule_block(block.id, {'day_of_week': 9}, db)


def test_update_schedule_block_returns_none_when_missing(db) -> None:
    assert schedule_store.update_schedule_block(404, {'end_time': '15:00'}, db) is None


def test_delete_schedule_block(db, doctor) -> None:
    block = schedule_store.create_schedule_block(doctor.id, 2, '09:00', '13:00', db=db)

    assert schedule_store.delete_schedule_block(block.id, db) is True
    assert schedule_store.get_schedule_block(block.id, db) is None
    assert schedule_store.delete_schedule_block(block.id, db) is False
