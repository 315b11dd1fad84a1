from datetime import datetime, timedelta
from typing import List

import pytest

from remindme.core.config import Settings
from remindme.db.session import make_engine
from remindme.reminders.coordinator import NotificationCoordinator
from remindme.reminders.host import LocalNotificationHost
from remindme.reminders.service import ReminderService
from remindme.reminders.store import ReminderStore


class FailingHost(LocalNotificationHost):
    """Local host whose permission, schedule or cancel calls blow up, for the partial-failure paths."""

    def __init__(
        self, fail_schedule: bool = True, fail_cancel: bool = False, fail_permission: bool = False, **kwargs
    ):
        super().__init__(**kwargs)
        self.fail_schedule = fail_schedule
        self.fail_cancel = fail_cancel
        self.fail_permission = fail_permission

    async def request_permission(self):
        if self.fail_permission:
            raise RuntimeError("permission service crashed")
        return await super().request_permission()

    async def schedule(self, tag, content, trigger_at):
        if self.fail_schedule:
            raise RuntimeError("invalid trigger")
        return await super().schedule(tag, content, trigger_at)

    async def cancel(self, tag):
        if self.fail_cancel:
            raise RuntimeError("host unavailable")
        return await super().cancel(tag)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'reminders.db'}")


@pytest.fixture
def engine(settings):
    engine = make_engine(settings)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> ReminderStore:
    store = ReminderStore(engine)
    store.initialize()
    return store


@pytest.fixture
def host() -> LocalNotificationHost:
    return LocalNotificationHost()


@pytest.fixture
def coordinator(host) -> NotificationCoordinator:
    return NotificationCoordinator(host)


@pytest.fixture
def service(store, coordinator) -> ReminderService:
    return ReminderService(store, coordinator)


@pytest.fixture
def tomorrow() -> datetime:
    return (datetime.now() + timedelta(days=1)).replace(microsecond=0)


def as_fields(reminders) -> List[tuple]:
    return [(r.title, r.message, r.scheduled_at) for r in reminders]
