from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_rating_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_rating_schema(bind=None) -> None:
    """Bring an older ``ratings`` table up to the current shape.

    Adds ``updated_at`` when it is missing and creates the unique
    ``(user_id, store_id)`` index the upsert protocol depends on.
    """
    global _rating_schema_checked

    if _rating_schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _rating_schema_checked:
            return

        inspector = inspect(bind)

        if 'ratings' not in inspector.get_table_names():
            _rating_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('ratings')}
        migration_steps = [
            ('updated_at', 'ALTER TABLE ratings ADD COLUMN updated_at TIMESTAMP'),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_ratings_user_store ON ratings(user_id, store_id)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_ratings_store ON ratings(store_id)')
            )

        _rating_schema_checked = True
