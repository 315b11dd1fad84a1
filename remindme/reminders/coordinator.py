"""
Notification coordinator - keeps the host's scheduled notifications in step
with the reminder lifecycle. A reminder's notification is tagged ``str(id)``.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, List, Optional, Tuple

from remindme.core.config import PastDuePolicy

from .exceptions import NotificationError, NotificationSchedulingError, PastDueNotificationError
from .host import Clock, NotificationHost, Subscription
from .metrics import (
    notifications_armed_total,
    notifications_cancelled_total,
    notifications_delivered_total,
    notifications_tapped_total,
)
from .schemas import (
    ArmStatus,
    Notification,
    NotificationContent,
    NotificationHandlerConfig,
    NotificationResponse,
    PermissionStatus,
    ReceivedNotification,
)

logger = logging.getLogger(__name__)


class NotificationCoordinator:
    def __init__(
        self,
        host: NotificationHost,
        handler_config: Optional[NotificationHandlerConfig] = None,
        past_due_policy: PastDuePolicy = PastDuePolicy.FIRE_IMMEDIATELY,
        clock: Optional[Clock] = None,
    ):
        self.host = host
        self.handler_config = handler_config or NotificationHandlerConfig()
        self.past_due_policy = past_due_policy
        self._clock: Clock = clock or datetime.now
        self._permission = PermissionStatus.UNDETERMINED

    @property
    def permission_status(self) -> PermissionStatus:
        return self._permission

    async def request_permission(self) -> PermissionStatus:
        """Ask the host for delivery permission and remember the answer."""
        try:
            self._permission = await self.host.request_permission()
        except NotificationError:
            raise
        except Exception as e:
            logger.error(f"Notification permission request failed: {e}")
            raise NotificationError(f"Permission request failed: {e}") from e
        if self._permission != PermissionStatus.GRANTED:
            logger.warning(f"Notification permission not granted ({self._permission.value})")
        return self._permission

    async def arm(self, reminder_id: int, title: str, message: str, scheduled_at: datetime) -> ArmStatus:
        """Schedule the reminder's notification.

        Returns PERMISSION_DENIED without contacting the host when the user
        refused notifications. Raises PastDueNotificationError under the
        REJECT policy and NotificationSchedulingError when the host fails.
        """
        tag = str(reminder_id)

        if self._permission == PermissionStatus.DENIED:
            logger.info(f"Skipping notification {tag}: permission denied")
            return ArmStatus.PERMISSION_DENIED

        if scheduled_at <= self._clock(scheduled_at.tzinfo):
            if self.past_due_policy == PastDuePolicy.REJECT:
                raise PastDueNotificationError(tag, scheduled_at)
            logger.info(f"Notification {tag} is past due, firing immediately")

        content = NotificationContent(title=title, body=message, sound=self.handler_config.play_sound)
        try:
            await self.host.schedule(tag, content, scheduled_at)
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationSchedulingError(f"Error scheduling notification {tag}: {e}") from e

        notifications_armed_total.inc()
        logger.info(f"Armed notification {tag} for {scheduled_at.isoformat()}")
        return ArmStatus.ARMED

    async def cancel(self, reminder_id: int) -> bool:
        """Cancel the reminder's notification. Nothing scheduled is still success (returns False)."""
        tag = str(reminder_id)
        try:
            cancelled = await self.host.cancel(tag)
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(f"Error cancelling notification {tag}: {e}") from e

        if cancelled:
            notifications_cancelled_total.inc()
            logger.info(f"Cancelled notification {tag}")
        else:
            logger.debug(f"No scheduled notification {tag} to cancel")
        return cancelled

    def scheduled_tags(self) -> List[str]:
        return self.host.scheduled_tags()

    def on_notification_received(self, handler: Callable[[ReceivedNotification], Any]) -> Subscription:
        def _on_received(notification: Notification):
            notifications_delivered_total.inc()
            logger.info(f"Notification received: {notification.tag}")
            return handler(ReceivedNotification(notification=notification, presentation=self.handler_config))

        return self.host.add_received_listener(_on_received)

    def on_notification_tapped(self, handler: Callable[[NotificationResponse], Any]) -> Subscription:
        def _on_tapped(response: NotificationResponse):
            notifications_tapped_total.inc()
            logger.info(f"Notification opened: {response.notification.tag}")
            return handler(response)

        return self.host.add_response_listener(_on_tapped)

    @contextmanager
    def listen(
        self,
        on_received: Optional[Callable[[ReceivedNotification], Any]] = None,
        on_tapped: Optional[Callable[[NotificationResponse], Any]] = None,
    ) -> Iterator[Tuple[Optional[Subscription], Optional[Subscription]]]:
        """Hold both subscriptions for the lifetime of the calling UI context."""
        received = self.on_notification_received(on_received) if on_received else None
        tapped = self.on_notification_tapped(on_tapped) if on_tapped else None
        try:
            yield received, tapped
        finally:
            for subscription in (received, tapped):
                if subscription is not None:
                    subscription.remove()
