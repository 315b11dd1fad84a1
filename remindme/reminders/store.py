"""
Reminder store - durable record keeping for reminders (create, list, delete)
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from remindme.db.base import Base
from remindme.db.session import get_db_session, make_session_factory

from . import repository
from .exceptions import StorageError
from .metrics import reminders_created_total, reminders_deleted_total
from .schemas import ReminderCreate, ReminderRead

logger = logging.getLogger(__name__)


class ReminderStore:
    """SQLAlchemy-backed store. Every failure surfaces as StorageError."""

    def __init__(self, engine: Engine, session_factory: Optional[sessionmaker] = None):
        self.engine = engine
        self.session_factory = session_factory or make_session_factory(engine)

    def initialize(self) -> None:
        """Create the reminders table if it does not exist yet. Safe to call on every start."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Error while initializing database: {e}")
            raise StorageError(f"Cannot initialize reminders database: {e}") from e
        logger.info("Database initialized")

    def list_all(self) -> List[ReminderRead]:
        try:
            with get_db_session(self.session_factory) as db:
                return [ReminderRead.from_row(r) for r in repository.list_reminders(db)]
        except SQLAlchemyError as e:
            logger.error(f"Error while loading reminders: {e}")
            raise StorageError(f"Cannot load reminders: {e}") from e

    def get(self, reminder_id: int) -> Optional[ReminderRead]:
        try:
            with get_db_session(self.session_factory) as db:
                row = repository.get_reminder(db, reminder_id)
                return ReminderRead.from_row(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Error while loading reminder {reminder_id}: {e}")
            raise StorageError(f"Cannot load reminder {reminder_id}: {e}") from e

    def add(self, title: str, message: str, scheduled_at: datetime) -> int:
        """Insert a reminder and return its new id. No validation of the scheduled time."""
        data = ReminderCreate(title=title, message=message, scheduled_at=scheduled_at)
        try:
            with get_db_session(self.session_factory) as db:
                reminder_id = repository.create_reminder(db, data).id
        except SQLAlchemyError as e:
            logger.error(f"Error while adding reminder: {e}")
            raise StorageError(f"Cannot add reminder: {e}") from e

        reminders_created_total.inc()
        logger.info(f"Added reminder {reminder_id} scheduled at {data.scheduled_at.isoformat()}")
        return reminder_id

    def delete(self, reminder_id: int) -> bool:
        """Remove a reminder. Deleting an unknown id is a no-op, reported as False."""
        try:
            with get_db_session(self.session_factory) as db:
                deleted = repository.delete_reminder(db, reminder_id)
        except SQLAlchemyError as e:
            logger.error(f"Error while deleting reminder {reminder_id}: {e}")
            raise StorageError(f"Cannot delete reminder {reminder_id}: {e}") from e

        if deleted:
            reminders_deleted_total.inc()
            logger.info(f"Deleted reminder {reminder_id}")
        else:
            logger.debug(f"Reminder {reminder_id} already gone, nothing to delete")
        return deleted
