import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_booking.core import config

logger = logging.getLogger(__name__)

ACTIVE_STATUS_CLAUSE = "status IN ('scheduled', 'confirmed')"


def _engine_options(database_url: str) -> dict:
    options = {'echo': config.SQL_ECHO}
    if database_url.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
    else:
        options['pool_pre_ping'] = True
    return options


engine = create_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schedule_schema_checked = False
_appointment_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_database() -> None:
    # Registers every table on Base.metadata before create_all.
    from clinic_booking.models import appointment, doctor, schedule, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
    ensure_schedule_schema()
    ensure_appointment_schema()


def dispose_engine() -> None:
    engine.dispose()
    logger.info('Database connection pool closed.')


def ensure_schedule_schema() -> None:
    global _schedule_schema_checked

    if _schedule_schema_checked:
        return

    with _schema_lock:
        if _schedule_schema_checked:
            return

        inspector = inspect(engine)

        if 'schedules' not in inspector.get_table_names():
            _schedule_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_schedules_doctor_day ON schedules(doctor_id, day_of_week, start_time)')
            )

        _schedule_schema_checked = True


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
            ('price', 'ALTER TABLE appointments ADD COLUMN price NUMERIC(10, 2)'),
            ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot '
                    'ON appointments(doctor_id, appointment_date, appointment_time) '
                    f'WHERE {ACTIVE_STATUS_CLAUSE}'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_date ON appointments(patient_id, appointment_date)')
            )

        _appointment_schema_checked = True
