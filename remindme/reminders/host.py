"""
Host notification subsystem.

`NotificationHost` is the surface the coordinator consumes: permission, one-shot
scheduling addressed by a tag, cancel-by-tag and two listener registries
(delivered in the foreground, opened by the user). `LocalNotificationHost`
implements it in-process on the running asyncio loop.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .schemas import (
    Notification,
    NotificationContent,
    NotificationResponse,
    PermissionStatus,
)

logger = logging.getLogger(__name__)

# Called like datetime.now: given a tzinfo it returns an aware "now" in that zone,
# given None it returns naive local wall-clock time. Trigger times are compared
# against it directly, so both sides must agree on awareness.
Clock = Callable[[Optional[tzinfo]], datetime]

# strong refs for listener coroutines still running on the loop
_pending_tasks: Set[asyncio.Task] = set()


class Subscription:
    """Handle for a registered listener. Removing it twice is harmless."""

    def __init__(self, listeners: List[Callable], callback: Callable):
        self._listeners = listeners
        self._callback = callback
        self._listeners.append(callback)

    @property
    def active(self) -> bool:
        return self._listeners is not None

    def remove(self) -> None:
        if self._listeners is None:
            return
        try:
            self._listeners.remove(self._callback)
        except ValueError:
            pass
        self._listeners = None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.remove()


def _log_listener_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Notification listener {task.get_coro()!r} failed", exc_info=exc)


def emit(listeners: List[Callable], event: Any) -> None:
    """Invoke each listener once. A failing listener is logged and does not stop the others."""
    for callback in list(listeners):
        try:
            result = callback(event)
            if asyncio.iscoroutine(result):
                task = asyncio.get_running_loop().create_task(result)
                _pending_tasks.add(task)
                task.add_done_callback(_pending_tasks.discard)
                task.add_done_callback(_log_listener_failure)
        except Exception:
            logger.exception(f"Notification listener {callback!r} failed")


class NotificationHost(ABC):
    @abstractmethod
    async def request_permission(self) -> PermissionStatus:
        ...

    @abstractmethod
    async def get_permission_status(self) -> PermissionStatus:
        ...

    @abstractmethod
    async def schedule(self, tag: str, content: NotificationContent, trigger_at: datetime) -> Notification:
        """Schedule a one-shot notification. A tag that is already scheduled is replaced."""

    @abstractmethod
    async def cancel(self, tag: str) -> bool:
        """Cancel by tag. Returns False when nothing was scheduled under it."""

    @abstractmethod
    def scheduled_tags(self) -> List[str]:
        ...

    @abstractmethod
    def add_received_listener(self, callback: Callable[[Notification], Any]) -> Subscription:
        ...

    @abstractmethod
    def add_response_listener(self, callback: Callable[[NotificationResponse], Any]) -> Subscription:
        ...

    async def close(self) -> None:
        pass


class LocalNotificationHost(NotificationHost):
    """In-process host: deliveries are timers on the running event loop.

    Notifications that come due fire while the loop is running. Without a
    granted permission they are dropped at delivery time, which is what a real
    platform does with an app that was refused.
    """

    def __init__(self, grant_permission: bool = True, clock: Optional[Clock] = None):
        self.grant_permission = grant_permission
        self._clock: Clock = clock or datetime.now
        self._permission = PermissionStatus.UNDETERMINED
        self._scheduled: Dict[str, Tuple[Notification, asyncio.TimerHandle]] = {}
        self._presented: Dict[str, Notification] = {}
        self._received_listeners: List[Callable] = []
        self._response_listeners: List[Callable] = []

    async def request_permission(self) -> PermissionStatus:
        if self._permission == PermissionStatus.UNDETERMINED:
            self._permission = PermissionStatus.GRANTED if self.grant_permission else PermissionStatus.DENIED
        return self._permission

    async def get_permission_status(self) -> PermissionStatus:
        return self._permission

    async def schedule(self, tag: str, content: NotificationContent, trigger_at: datetime) -> Notification:
        loop = asyncio.get_running_loop()
        if tag in self._scheduled:
            await self.cancel(tag)

        delay = max(0.0, (trigger_at - self._clock(trigger_at.tzinfo)).total_seconds())
        notification = Notification(tag=tag, content=content, trigger_at=trigger_at)
        handle = loop.call_later(delay, self._deliver, tag)
        self._scheduled[tag] = (notification, handle)
        logger.debug(f"Scheduled notification {tag} in {delay:.1f}s")
        return notification

    async def cancel(self, tag: str) -> bool:
        entry = self._scheduled.pop(tag, None)
        if entry is None:
            return False
        entry[1].cancel()
        logger.debug(f"Cancelled notification {tag}")
        return True

    def scheduled_tags(self) -> List[str]:
        return list(self._scheduled)

    def get_scheduled(self, tag: str) -> Optional[Notification]:
        entry = self._scheduled.get(tag)
        return entry[0] if entry else None

    def presented(self) -> List[Notification]:
        return list(self._presented.values())

    def add_received_listener(self, callback: Callable[[Notification], Any]) -> Subscription:
        return Subscription(self._received_listeners, callback)

    def add_response_listener(self, callback: Callable[[NotificationResponse], Any]) -> Subscription:
        return Subscription(self._response_listeners, callback)

    def open_notification(self, tag: str, action: str = "default") -> Optional[NotificationResponse]:
        """Simulate the user tapping a delivered notification."""
        notification = self._presented.pop(tag, None)
        if notification is None:
            logger.debug(f"No delivered notification {tag} to open")
            return None
        response = NotificationResponse(notification=notification, action=action)
        emit(self._response_listeners, response)
        return response

    def _deliver(self, tag: str) -> None:
        entry = self._scheduled.pop(tag, None)
        if entry is None:
            return
        notification = entry[0]
        if self._permission != PermissionStatus.GRANTED:
            logger.info(f"Notification {tag} dropped: permission {self._permission.value}")
            return
        self._presented[tag] = notification
        emit(self._received_listeners, notification)

    async def close(self) -> None:
        for _, handle in self._scheduled.values():
            handle.cancel()
        self._scheduled.clear()
        self._received_listeners.clear()
        self._response_listeners.clear()
