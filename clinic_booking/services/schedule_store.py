"""Persistence for doctors' weekly schedule blocks."""

import logging

from sqlalchemy.orm import Session

from clinic_booking.core.errors import ValidationError
from clinic_booking.models.schedule import Schedule
from clinic_booking.services.formatting import is_valid_time

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('day_of_week', 'start_time', 'end_time', 'is_active')


def validate_time_field(field_name: str, value) -> str:
    if not is_valid_time(value):
        raise ValidationError(f'Invalid {field_name} format: {value!r}. Use HH:mm.')
    return value


def validate_day_of_week(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
        raise ValidationError(f'day_of_week must be between 0 and 6, got: {value!r}.')
    return value


def validate_time_range(start_time: str, end_time: str) -> None:
    if start_time >= end_time:
        raise ValidationError(
            f'start_time ({start_time}) must be earlier than end_time ({end_time}).'
        )


def create_schedule_block(
    doctor_id: int,
    day_of_week: int,
    start_time: str,
    end_time: str,
    is_active: bool = True,
    *,
    db: Session,
) -> Schedule:
    validate_time_field('start_time', start_time)
    validate_time_field('end_time', end_time)
    validate_day_of_week(day_of_week)
    validate_time_range(start_time, end_time)

    block = Schedule(
        doctor_id=doctor_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        is_active=True if is_active is None else is_active,
    )
    db.add(block)
    db.commit()
    db.refresh(block)

    logger.info('Created schedule block %s for doctor %s (day %s, %s-%s).',
                block.id, doctor_id, day_of_week, start_time, end_time)
    return block


def get_schedule_blocks_by_doctor(doctor_id: int, db: Session) -> list[Schedule]:
    return db.query(Schedule).filter(
        Schedule.doctor_id == doctor_id,
    ).order_by(Schedule.day_of_week.asc(), Schedule.start_time.asc(), Schedule.id.asc()).all()


def get_active_blocks_for_day(doctor_id: int, day_of_week: int, db: Session) -> list[Schedule]:
    return db.query(Schedule).filter(
        Schedule.doctor_id == doctor_id,
        Schedule.day_of_week == day_of_week,
        Schedule.is_active.is_(True),
    ).order_by(Schedule.start_time.asc(), Schedule.id.asc()).all()


def get_schedule_block(block_id: int, db: Session) -> Schedule | None:
    return db.query(Schedule).filter(Schedule.id == block_id).first()


def update_schedule_block(block_id: int, changes: dict, db: Session) -> Schedule | None:
    """Apply a partial update; keys that are absent or ``None`` keep their value."""
    block = get_schedule_block(block_id, db)
    if block is None:
        return None

    updates = {
        field: value
        for field, value in changes.items()
        if field in UPDATABLE_FIELDS and value is not None
    }

    if 'start_time' in updates:
        validate_time_field('start_time', updates['start_time'])
    if 'end_time' in updates:
        validate_time_field('end_time', updates['end_time'])
    if 'day_of_week' in updates:
        validate_day_of_week(updates['day_of_week'])
    validate_time_range(
        updates.get('start_time', block.start_time),
        updates.get('end_time', block.end_time),
    )

    for field, value in updates.items():
        setattr(block, field, value)

    db.commit()
    db.refresh(block)

    logger.info('Updated schedule block %s: %s', block_id, sorted(updates))
    return block


def delete_schedule_block(block_id: int, db: Session) -> bool:
    deleted = db.query(Schedule).filter(Schedule.id == block_id).delete()
    db.commit()

    if deleted:
        logger.info('Deleted schedule block %s.', block_id)
    return deleted > 0
