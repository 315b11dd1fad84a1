import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from remindme.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def make_engine(settings: Optional[Settings] = None) -> Engine:
    """Create the engine for the reminders database.

    SQLite connections get the configured journal mode on connect (WAL by
    default) and may be used from the worker threads the service offloads to.
    """
    settings = settings or default_settings
    url = settings.DATABASE_URL
    is_sqlite = url.startswith("sqlite")

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=settings.DATABASE_ECHO,
    )

    journal_mode = settings.SQLITE_JOURNAL_MODE
    if is_sqlite and journal_mode:
        @event.listens_for(engine, "connect")
        def _set_journal_mode(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute(f"PRAGMA journal_mode={journal_mode}")
            finally:
                cursor.close()

    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@contextmanager
def get_db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Session scope for one store call: commit on success, rollback on error, always close."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        db.close()
