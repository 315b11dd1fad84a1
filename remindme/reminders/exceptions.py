class ReminderError(Exception):
    """Base exception for the reminders core"""
    pass


class StorageError(ReminderError):
    """The reminder store could not complete an operation"""
    pass


class NotificationError(ReminderError):
    """The host notification subsystem rejected a request"""
    pass


class NotificationSchedulingError(NotificationError):
    """A notification could not be armed"""
    pass


class PastDueNotificationError(NotificationSchedulingError):
    """Arming was refused because the scheduled time has already passed"""

    def __init__(self, tag: str, scheduled_at):
        self.tag = tag
        self.scheduled_at = scheduled_at
        super().__init__(f"Notification {tag} is past due ({scheduled_at.isoformat()})")


class OperationInProgressError(ReminderError):
    """Another add or delete is still running"""
    pass
