from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .models import Reminder
from .schemas import ReminderCreate


def create_reminder(db: Session, data: ReminderCreate) -> Reminder:
    reminder = Reminder(
        title=data.title,
        message=data.message,
        date=data.scheduled_at.isoformat(),
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def get_reminder(db: Session, reminder_id: int) -> Optional[Reminder]:
    return db.get(Reminder, reminder_id)


def list_reminders(db: Session) -> List[Reminder]:
    stmt = select(Reminder).order_by(Reminder.id.asc())
    return list(db.execute(stmt).scalars())


def delete_reminder(db: Session, reminder_id: int) -> bool:
    """Delete by id. Returns False when there was nothing to delete."""
    result = db.execute(delete(Reminder).where(Reminder.id == reminder_id))
    db.commit()
    return bool(result.rowcount)
