import os
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinic_booking.database import Base  # noqa: E402
from clinic_booking.models.appointment import Appointment  # noqa: E402
from clinic_booking.models.doctor import Doctor, Specialty  # noqa: E402
from clinic_booking.models.schedule import Schedule  # noqa: E402
from clinic_booking.models.user import ADMIN_ROLE, PATIENT_ROLE, User  # noqa: E402

TABLES = [User.__table__, Specialty.__table__, Doctor.__table__, Schedule.__table__, Appointment.__table__]


def next_date_for_weekday(day_of_week: int, weeks_ahead: int = 1) -> date:
    """A future date whose Sunday-based weekday is ``day_of_week``."""
    today = date.today()
    offset = (day_of_week - today.isoweekday() % 7) % 7
    return today + timedelta(days=offset + 7 * weeks_ahead)


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def patient(db) -> User:
    user = User(email='patient@example.com', full_name='Ana Torres', role=PATIENT_ROLE)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_patient(db) -> User:
    user = User(email='other@example.com', full_name='Luis Vega', role=PATIENT_ROLE)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db) -> User:
    user = User(email='admin@clinic.example.com', full_name='Clinic Admin', role=ADMIN_ROLE)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def doctor(db) -> Doctor:
    specialty = Specialty(name='Cardiología', consultation_minutes=30, base_price=45)
    db.add(specialty)
    db.flush()

    doctor = Doctor(first_name='Elena', last_name='Ruiz', email='elena.ruiz@clinic.example.com',
                    specialty_id=specialty.id)
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def monday_block(db, doctor) -> Schedule:
    block = Schedule(doctor_id=doctor.id, day_of_week=1, start_time='09:00', end_time='10:00', is_active=True)
    db.add(block)
    db.commit()
    db.refresh(block)
    return block


@pytest.fixture
def next_monday() -> date:
    return next_date_for_weekday(1)
