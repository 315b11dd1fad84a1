"""
Reminder service - the add/delete/list flows the UI calls into.

Store and host share no transaction. Add inserts first and then arms; a
failed arm leaves the reminder stored without a notification and is reported
in the outcome. Delete cancels first and then removes the row, so a crash in
between leaves at worst a stray notification, never an uncancellable reminder.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple

from .coordinator import NotificationCoordinator
from .exceptions import NotificationError, OperationInProgressError, StorageError
from .metrics import notifications_arm_failed_total
from .schemas import AddOutcome, ArmStatus, DeleteOutcome, PermissionStatus, ReminderRead
from .store import ReminderStore

logger = logging.getLogger(__name__)


class ReminderService:
    def __init__(self, store: ReminderStore, coordinator: NotificationCoordinator):
        self.store = store
        self.coordinator = coordinator
        self._busy = False

    @property
    def busy(self) -> bool:
        """True while an add or delete is running; the UI disables its controls off this."""
        return self._busy

    async def startup(self) -> PermissionStatus:
        """Create the schema, then ask for notification permission.

        A StorageError here is fatal for the caller. A refused permission is
        not, and neither is a host that fails to answer: reminders still work,
        they just won't notify until permission is asked again.
        """
        await asyncio.to_thread(self.store.initialize)
        try:
            return await self.coordinator.request_permission()
        except NotificationError as e:
            logger.error(f"Starting without notification permission: {e}")
            return PermissionStatus.UNDETERMINED

    async def list_all(self) -> List[ReminderRead]:
        return await asyncio.to_thread(self.store.list_all)

    async def add(self, title: str, message: str, scheduled_at: datetime) -> AddOutcome:
        async with self._operation("add"):
            reminder_id = await asyncio.to_thread(self.store.add, title, message, scheduled_at)
            reminder = ReminderRead(id=reminder_id, title=title, message=message, scheduled_at=scheduled_at)

            error = None
            try:
                status = await self.coordinator.arm(reminder_id, title, message, scheduled_at)
            except NotificationError as e:
                # The row stays; rolling it back would be another non-transactional write
                notifications_arm_failed_total.inc()
                logger.error(f"Reminder {reminder_id} stored but its notification was not armed: {e}")
                status = ArmStatus.FAILED
                error = str(e)

            reminders, refresh_error = await self._refresh()
            return AddOutcome(
                reminder=reminder,
                notification=status,
                error=error,
                reminders=reminders,
                refresh_error=refresh_error,
            )

    async def delete(self, reminder_id: int) -> DeleteOutcome:
        async with self._operation("delete"):
            error = None
            try:
                cancelled = await self.coordinator.cancel(reminder_id)
            except NotificationError as e:
                logger.error(f"Could not cancel notification for reminder {reminder_id}, deleting anyway: {e}")
                cancelled = False
                error = str(e)

            deleted = await asyncio.to_thread(self.store.delete, reminder_id)
            reminders, refresh_error = await self._refresh()
            return DeleteOutcome(
                reminder_id=reminder_id,
                deleted=deleted,
                cancelled=cancelled,
                error=error,
                reminders=reminders,
                refresh_error=refresh_error,
            )

    async def _refresh(self) -> Tuple[List[ReminderRead], Optional[str]]:
        # the mutation already committed; a failed re-read must not look like a failed add/delete
        try:
            return await self.list_all(), None
        except StorageError as e:
            logger.error(f"Reminder list could not be refreshed: {e}")
            return [], str(e)

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        if self._busy:
            raise OperationInProgressError(f"Cannot {name} while another operation is in progress")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False
