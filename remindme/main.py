import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from prometheus_client import start_http_server
from sqlalchemy.engine import Engine

from remindme.core.config import Settings, settings as default_settings
from remindme.core.logging_config import configure_logging
from remindme.db.session import make_engine
from remindme.reminders.coordinator import NotificationCoordinator
from remindme.reminders.host import LocalNotificationHost, NotificationHost
from remindme.reminders.schemas import NotificationHandlerConfig
from remindme.reminders.service import ReminderService
from remindme.reminders.store import ReminderStore

logger = logging.getLogger(__name__)


@dataclass
class ReminderApp:
    settings: Settings
    engine: Engine
    store: ReminderStore
    host: NotificationHost
    coordinator: NotificationCoordinator
    service: ReminderService
    metrics_server: Optional[Any] = None

    async def close(self) -> None:
        if self.metrics_server is not None:
            # shutdown blocks until serve_forever notices, off the loop
            await asyncio.to_thread(self.metrics_server.shutdown)
            self.metrics_server.server_close()
            self.metrics_server = None
            logger.info("Metrics server stopped")
        await self.host.close()
        self.engine.dispose()
        logger.info("Reminder app closed")


def build_app(settings: Optional[Settings] = None, host: Optional[NotificationHost] = None) -> ReminderApp:
    """Wire engine, store, host, coordinator and service from settings."""
    settings = settings or default_settings
    engine = make_engine(settings)
    store = ReminderStore(engine)
    host = host or LocalNotificationHost()
    coordinator = NotificationCoordinator(
        host,
        handler_config=NotificationHandlerConfig(
            show_alert=settings.NOTIFICATION_SHOW_ALERT,
            play_sound=settings.NOTIFICATION_PLAY_SOUND,
            set_badge=settings.NOTIFICATION_SET_BADGE,
        ),
        past_due_policy=settings.PAST_DUE_POLICY,
    )
    service = ReminderService(store, coordinator)
    return ReminderApp(
        settings=settings,
        engine=engine,
        store=store,
        host=host,
        coordinator=coordinator,
        service=service,
    )


@asynccontextmanager
async def reminder_app(
    settings: Optional[Settings] = None,
    host: Optional[NotificationHost] = None,
    setup_logging: bool = False,
) -> AsyncIterator[ReminderApp]:
    """Start the reminder core for the lifetime of the UI and release it afterwards."""
    settings = settings or default_settings
    if setup_logging:
        configure_logging(settings)

    app = build_app(settings, host=host)
    try:
        if settings.METRICS_ENABLED:
            app.metrics_server, _ = start_http_server(settings.METRICS_PORT)
            logger.info(f"Metrics exposed on port {settings.METRICS_PORT}")
        logger.info("Starting reminder app...")
        permission = await app.service.startup()
        logger.info(f"Reminder app ready (notification permission: {permission.value})")
        yield app
    finally:
        await app.close()
