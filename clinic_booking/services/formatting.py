"""Display helpers for weekday names, status labels and long dates."""

import re
from datetime import date

from clinic_booking.core import config

TIME_PATTERN = re.compile(r'^([01][0-9]|2[0-3]):[0-5][0-9]$')

DAY_NAMES = {
    'es': ['Domingo', 'Lunes', 'Martes', 'Miércoles', 'Jueves', 'Viernes', 'Sábado'],
    'en': ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday'],
}

MONTH_NAMES = {
    'es': [
        'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio',
        'julio', 'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre',
    ],
    'en': [
        'January', 'February', 'March', 'April', 'May', 'June',
        'July', 'August', 'September', 'October', 'November', 'December',
    ],
}

STATUS_LABELS = {
    'es': {
        'scheduled': 'Programada',
        'confirmed': 'Confirmada',
        'completed': 'Completada',
        'cancelled': 'Cancelada',
        'no_show': 'No Asistió',
    },
    'en': {
        'scheduled': 'Scheduled',
        'confirmed': 'Confirmed',
        'completed': 'Completed',
        'cancelled': 'Cancelled',
        'no_show': 'No Show',
    },
}


def _locale(locale: str | None) -> str:
    selected = (locale or config.DISPLAY_LOCALE).lower()
    return selected if selected in DAY_NAMES else 'en'


def is_valid_time(value) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def day_of_week(value: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return value.isoweekday() % 7


def get_day_name(day_number: int, locale: str | None = None) -> str:
    if 0 <= day_number <= 6:
        return DAY_NAMES[_locale(locale)][day_number]
    return 'Día inválido' if _locale(locale) == 'es' else 'Invalid day'


def get_status_display(status: str, locale: str | None = None) -> str:
    return STATUS_LABELS[_locale(locale)].get(status, status)


def format_long_date(value: date, locale: str | None = None) -> str:
    selected = _locale(locale)
    day_name = DAY_NAMES[selected][day_of_week(value)]
    month_name = MONTH_NAMES[selected][value.month - 1]
    if selected == 'es':
        return f'{day_name.lower()}, {value.day} de {month_name} de {value.year}'
    return f'{day_name}, {month_name} {value.day}, {value.year}'


def format_schedule_block(block) -> dict:
    return {
        'id': block.id,
        'doctor_id': block.doctor_id,
        'day_of_week': block.day_of_week,
        'day_name': get_day_name(block.day_of_week),
        'start_time': block.start_time,
        'end_time': block.end_time,
        'is_active': bool(block.is_active),
        'created_at': block.created_at,
        'updated_at': block.updated_at,
    }


def format_appointment(appointment, doctor=None) -> dict:
    specialty = doctor.specialty if doctor is not None else None
    status = getattr(appointment.status, 'value', appointment.status)
    return {
        'id': appointment.id,
        'patient_id': appointment.patient_id,
        'doctor_id': appointment.doctor_id,
        'date': appointment.appointment_date,
        'time': appointment.appointment_time,
        'status': status,
        'status_display': get_status_display(status),
        'day_name': get_day_name(day_of_week(appointment.appointment_date)),
        'formatted_date': format_long_date(appointment.appointment_date),
        'reason': appointment.reason,
        'notes': appointment.notes,
        'price': float(appointment.price) if appointment.price is not None else None,
        'doctor_name': doctor.full_name if doctor is not None else None,
        'specialty_name': specialty.name if specialty is not None else None,
        'created_at': appointment.created_at,
        'updated_at': appointment.updated_at,
    }
