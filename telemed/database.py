from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from telemed.core import config


def _connect_args(database_url: str) -> dict:
    backend_name = make_url(database_url).get_backend_name()
    if backend_name == 'postgresql':
        timeout_ms = config.UPSTREAM_QUERY_TIMEOUT_SECONDS * 1000
        return {'options': f'-c statement_timeout={timeout_ms}'}
    if backend_name == 'sqlite':
        return {'check_same_thread': False, 'timeout': config.UPSTREAM_QUERY_TIMEOUT_SECONDS}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None) -> list[str]:
    """Create every mapped table that does not exist yet.

    Returns the names of the tables that were created.
    """
    # Register every model on Base.metadata before create_all runs.
    from telemed.models import appointment, audit_log, health_record, time_slot, user  # noqa: F401

    bind = bind or engine
    existing_tables = set(inspect(bind).get_table_names())
    Base.metadata.create_all(bind=bind)
    return sorted(set(Base.metadata.tables) - existing_tables)


def ensure_lookup_indexes() -> None:
    global _schema_checked

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        with engine.begin() as connection:
            if 'time_slots' in table_names:
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_time_slots_doctor_day '
                        'ON time_slots(doctor_id, day_of_week, start_time)'
                    )
                )
            if 'appointments' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
                migration_steps = [
                    ('mode', "ALTER TABLE appointments ADD COLUMN mode VARCHAR NOT NULL DEFAULT 'video'"),
                    (
                        'payment_status',
                        "ALTER TABLE appointments ADD COLUMN payment_status VARCHAR NOT NULL DEFAULT 'pending'",
                    ),
                ]
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_appointments_doctor_date '
                        'ON appointments(doctor_id, date)'
                    )
                )
            if 'audit_logs' in table_names:
                connection.execute(
                    text('CREATE INDEX IF NOT EXISTS idx_audit_logs_user ON audit_logs(user_id, timestamp)')
                )

        _schema_checked = True
