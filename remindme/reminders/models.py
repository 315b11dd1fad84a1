"""
Reminder table - one row per reminder, ids are never reused
"""
from sqlalchemy import Column, Integer, Text

from remindme.db.base import Base


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text)
    message = Column(Text)
    date = Column(Text)  # ISO-8601 timestamp, stored exactly as given

    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again
    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        return f"<Reminder id={self.id} title={self.title!r} date={self.date}>"
