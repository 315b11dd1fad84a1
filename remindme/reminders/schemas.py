"""
Schemas shared by the store, the notification coordinator and the UI layer
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class ArmStatus(str, Enum):
    """Result of arming a reminder's notification"""
    ARMED = "armed"
    PERMISSION_DENIED = "permission_denied"  # not sent, the host would drop it
    FAILED = "failed"


class NotificationHandlerConfig(BaseModel):
    """How a notification is presented when it arrives while the app is in the foreground"""
    model_config = ConfigDict(frozen=True)

    show_alert: bool = True
    play_sound: bool = True
    set_badge: bool = False


class NotificationContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    body: str = ""
    sound: bool = True


class Notification(BaseModel):
    """A notification request as known to the host, addressed by its tag"""
    model_config = ConfigDict(frozen=True)

    tag: str
    content: NotificationContent
    trigger_at: datetime


class NotificationResponse(BaseModel):
    """The user interacted with a delivered notification"""
    notification: Notification
    action: str = "default"


class ReceivedNotification(BaseModel):
    """A notification delivered while the app is in the foreground"""
    notification: Notification
    presentation: NotificationHandlerConfig


class ReminderCreate(BaseModel):
    title: str = ""
    message: str = ""
    scheduled_at: datetime


class ReminderRead(BaseModel):
    id: int
    title: str
    message: str
    scheduled_at: datetime

    @property
    def tag(self) -> str:
        return str(self.id)

    @classmethod
    def from_row(cls, row) -> "ReminderRead":
        return cls(
            id=row.id,
            title=row.title or "",
            message=row.message or "",
            scheduled_at=datetime.fromisoformat(row.date),
        )


class AddOutcome(BaseModel):
    """Result of the add flow; `error` is set when the reminder was stored but not armed"""
    reminder: ReminderRead
    notification: ArmStatus
    error: Optional[str] = None
    reminders: List[ReminderRead] = Field(default_factory=list)
    # set when the mutation committed but the list could not be re-read
    refresh_error: Optional[str] = None

    @property
    def consistent(self) -> bool:
        return self.notification != ArmStatus.FAILED


class DeleteOutcome(BaseModel):
    """Result of the delete flow; `error` is set when cancellation failed but the row was still removed"""
    reminder_id: int
    deleted: bool
    cancelled: bool
    error: Optional[str] = None
    reminders: List[ReminderRead] = Field(default_factory=list)
    # set when the mutation committed but the list could not be re-read
    refresh_error: Optional[str] = None
