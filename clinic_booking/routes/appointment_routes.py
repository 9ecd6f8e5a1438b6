from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_booking.auth.dependencies import get_current_user
from clinic_booking.core.errors import BookingError
from clinic_booking.database import get_db
from clinic_booking.models.user import User
from clinic_booking.routes import common
from clinic_booking.services import appointments as appointment_service
from clinic_booking.services.availability import SlotGrid, compute_available_slots

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    date: date
    time: str
    reason: str
    notes: str | None = None

    @field_validator('time')
    @classmethod
    def strip_time(cls, value: str) -> str:
        return value.strip()

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Reason is required.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class UpdateAppointmentRequest(BaseModel):
    appointment_date: date | None = Field(default=None, alias='date')
    time: str | None = None
    reason: str | None = None
    notes: str | None = None

    @field_validator('time')
    @classmethod
    def strip_time(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    def to_changes(self) -> dict:
        # Only fields the client sent; an explicit null notes clears them.
        field_map = {
            'appointment_date': 'appointment_date',
            'time': 'appointment_time',
            'reason': 'reason',
            'notes': 'notes',
        }
        return {
            field_map[field]: getattr(self, field)
            for field in self.model_fields_set
            if field in field_map
        }


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    date: date
    time: str
    status: str
    status_display: str
    day_name: str
    formatted_date: str
    reason: str
    notes: str | None = None
    price: float | None = None
    doctor_name: str | None = None
    specialty_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AppointmentListResponse(BaseModel):
    items: list[AppointmentResponse]
    page: int
    page_size: int
    total: int


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        return appointment_service.create_appointment(
            current_user.id,
            data.doctor_id,
            data.date,
            data.time,
            data.reason,
            data.notes,
            db=db,
        )
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc


@router.get('', response_model=AppointmentListResponse)
def list_appointments(
    appointment_status: str | None = Query(default=None, alias='status'),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        result = appointment_service.list_appointments(
            current_user.id,
            appointment_status,
            page,
            page_size,
            db=db,
        )
        return result.model_dump()
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.get('/available-slots', response_model=SlotGrid)
def list_available_slots(
    doctor_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    slot_duration_minutes: int | None = Query(default=None, ge=1, le=480),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    common.ensure_database_ready()

    try:
        return compute_available_slots(doctor_id, slot_date, slot_duration_minutes, db)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        return appointment_service.get_appointment(appointment_id, current_user.id, db)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        return appointment_service.update_appointment(appointment_id, current_user.id, data.to_changes(), db)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc


@router.put('/{appointment_id}/confirm', response_model=AppointmentResponse)
def confirm_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        return appointment_service.confirm_appointment(appointment_id, current_user.id, db)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc


@router.delete('/{appointment_id}', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        return appointment_service.cancel_appointment(appointment_id, current_user.id, db)
    except BookingError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise common.database_unavailable() from exc
