from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_booking.auth.dependencies import get_current_user, require_admin
from clinic_booking.core.errors import BookingError
from clinic_booking.database import get_db
from clinic_booking.models.user import User
from clinic_booking.routes import common
from clinic_booking.services import schedule_store
from clinic_booking.services.formatting import format_schedule_block

router = APIRouter(tags=['schedules'])

SCHEDULE_NOT_FOUND_DETAIL = 'Schedule block not found.'


def _strip(value: str | None) -> str | None:
    return value.strip() if value is not None else None


class CreateScheduleBlockRequest(BaseModel):
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool = True

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_times(cls, value: str) -> str:
        return value.strip()


class UpdateScheduleBlockRequest(BaseModel):
    day_of_week: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    is_active: bool | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_times(cls, value: str | None) -> str | None:
        return _strip(value)


class ScheduleBlockResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: int
    day_name: str
    start_time: str
    end_time: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


@router.post('', response_model=ScheduleBlockResponse, status_code=status.HTTP_201_CREATED)
def create_schedule_block(
    data: CreateScheduleBlockRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    common.ensure_database_ready()

    try:
        block = schedule_store.create_schedule_block(
            data.doctor_id,
            data.day_of_week,
            data.start_time,
            data.end_time,
            data.is_active,
            db=db,
        )
        return format_schedule_block(block)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc


@router.get('/doctor/{doctor_id}', response_model=list[ScheduleBlockResponse])
def list_doctor_schedule(
    doctor_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    common.ensure_database_ready()

    try:
        return [format_schedule_block(block) for block in schedule_store.get_schedule_blocks_by_doctor(doctor_id, db)]
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.get('/{block_id}', response_model=ScheduleBlockResponse)
def get_schedule_block(
    block_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    common.ensure_database_ready()

    try:
        block = schedule_store.get_schedule_block(block_id, db)
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc

    if block is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SCHEDULE_NOT_FOUND_DETAIL)
    return format_schedule_block(block)


@router.put('/{block_id}', response_model=ScheduleBlockResponse)
def update_schedule_block(
    block_id: int,
    data: UpdateScheduleBlockRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    common.ensure_database_ready()

    try:
        block = schedule_store.update_schedule_block(block_id, data.model_dump(exclude_unset=True), db)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc

    if block is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SCHEDULE_NOT_FOUND_DETAIL)
    return format_schedule_block(block)


@router.delete('/{block_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule_block(
    block_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    common.ensure_database_ready()

    try:
        deleted = schedule_store.delete_schedule_block(block_id, db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SCHEDULE_NOT_FOUND_DETAIL)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
