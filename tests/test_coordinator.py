import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from remindme.core.config import PastDuePolicy
from remindme.reminders.coordinator import NotificationCoordinator
from remindme.reminders.exceptions import (
    NotificationError,
    NotificationSchedulingError,
    PastDueNotificationError,
)
from remindme.reminders.host import LocalNotificationHost
from remindme.reminders.schemas import ArmStatus, NotificationHandlerConfig, PermissionStatus

from tests.conftest import FailingHost


def run(coro):
    return asyncio.run(coro)


def test_arm_schedules_under_reminder_id_tag(host, coordinator, tomorrow):
    async def scenario():
        await coordinator.request_permission()
        status = await coordinator.arm(7, "Pay rent", "Due today", tomorrow)
        return status, host.get_scheduled("7")

    status, notification = run(scenario())
    assert status == ArmStatus.ARMED
    assert notification.tag == "7"
    assert notification.content.title == "Pay rent"
    assert notification.content.body == "Due today"
    assert notification.content.sound is True
    assert notification.trigger_at == tomorrow


def test_sound_follows_handler_config(host, tomorrow):
    coordinator = NotificationCoordinator(host, handler_config=NotificationHandlerConfig(play_sound=False))

    async def scenario():
        await coordinator.arm(1, "Quiet", "", tomorrow)
        return host.get_scheduled("1")

    assert run(scenario()).content.sound is False


def test_arm_then_cancel_leaves_nothing_scheduled(host, coordinator, tomorrow):
    async def scenario():
        await coordinator.arm(3, "t", "m", tomorrow)
        assert coordinator.scheduled_tags() == ["3"]
        cancelled = await coordinator.cancel(3)
        return cancelled, coordinator.scheduled_tags()

    cancelled, tags = run(scenario())
    assert cancelled is True
    assert tags == []


def test_cancel_without_arm_is_success(coordinator):
    assert run(coordinator.cancel(42)) is False


def test_cancel_twice_is_success(coordinator, tomorrow):
    async def scenario():
        await coordinator.arm(5, "t", "m", tomorrow)
        return await coordinator.cancel(5), await coordinator.cancel(5)

    assert run(scenario()) == (True, False)


def test_rearming_replaces_previous_notification(host, coordinator, tomorrow):
    async def scenario():
        await coordinator.arm(9, "old", "", tomorrow)
        await coordinator.arm(9, "new", "", tomorrow)
        return host.scheduled_tags(), host.get_scheduled("9")

    tags, notification = run(scenario())
    assert tags == ["9"]
    assert notification.content.title == "new"


def test_permission_denied_is_a_distinct_state():
    host = LocalNotificationHost(grant_permission=False)
    coordinator = NotificationCoordinator(host)

    async def scenario():
        permission = await coordinator.request_permission()
        status = await coordinator.arm(1, "t", "m", datetime.now() + timedelta(hours=1))
        return permission, status

    permission, status = run(scenario())
    assert permission == PermissionStatus.DENIED
    assert coordinator.permission_status == PermissionStatus.DENIED
    assert status == ArmStatus.PERMISSION_DENIED
    assert host.scheduled_tags() == []


def test_past_due_fires_immediately_by_default(host, coordinator):
    received = []
    coordinator.on_notification_received(received.append)

    async def scenario():
        await coordinator.request_permission()
        status = await coordinator.arm(11, "Late", "Already due", datetime.now() - timedelta(minutes=5))
        await asyncio.sleep(0.05)
        return status

    assert run(scenario()) == ArmStatus.ARMED
    assert [r.notification.tag for r in received] == ["11"]
    assert host.scheduled_tags() == []


def test_past_due_rejected_under_reject_policy(host):
    coordinator = NotificationCoordinator(host, past_due_policy=PastDuePolicy.REJECT)

    with pytest.raises(PastDueNotificationError) as excinfo:
        run(coordinator.arm(12, "Late", "", datetime.now() - timedelta(seconds=1)))
    assert excinfo.value.tag == "12"
    assert isinstance(excinfo.value, NotificationSchedulingError)
    assert host.scheduled_tags() == []


def test_past_due_check_uses_injected_clock(host):
    fixed_now = datetime(2030, 1, 1, 12, 0)
    coordinator = NotificationCoordinator(host, past_due_policy=PastDuePolicy.REJECT, clock=lambda tz: fixed_now)

    with pytest.raises(PastDueNotificationError):
        run(coordinator.arm(1, "", "", datetime(2030, 1, 1, 11, 59)))


def test_aware_timestamps_are_compared_in_their_zone(host):
    coordinator = NotificationCoordinator(host, past_due_policy=PastDuePolicy.REJECT)
    later = datetime.now(timezone.utc) + timedelta(hours=2)

    assert run(coordinator.arm(2, "", "", later)) == ArmStatus.ARMED


def test_clock_is_asked_for_now_in_the_trigger_zone(host):
    seen = []

    def clock(tz):
        seen.append(tz)
        return datetime(2030, 1, 1, 12, 0, tzinfo=tz)

    coordinator = NotificationCoordinator(host, past_due_policy=PastDuePolicy.REJECT, clock=clock)
    run(coordinator.arm(1, "", "", datetime(2030, 1, 1, 13, 0)))
    run(coordinator.arm(2, "", "", datetime(2030, 1, 1, 13, 0, tzinfo=timezone.utc)))

    assert seen == [None, timezone.utc]


def test_host_schedule_failure_raises_scheduling_error():
    coordinator = NotificationCoordinator(FailingHost(fail_schedule=True))

    with pytest.raises(NotificationSchedulingError, match="invalid trigger"):
        run(coordinator.arm(1, "t", "m", datetime.now() + timedelta(hours=1)))


def test_host_cancel_failure_raises_notification_error():
    coordinator = NotificationCoordinator(FailingHost(fail_schedule=False, fail_cancel=True))

    with pytest.raises(NotificationError, match="host unavailable"):
        run(coordinator.cancel(1))


def test_host_permission_failure_raises_notification_error():
    coordinator = NotificationCoordinator(FailingHost(fail_schedule=False, fail_permission=True))

    with pytest.raises(NotificationError, match="permission service crashed"):
        run(coordinator.request_permission())
    assert coordinator.permission_status == PermissionStatus.UNDETERMINED


def test_received_handler_gets_presentation_config():
    config = NotificationHandlerConfig(show_alert=True, play_sound=True, set_badge=False)
    host = LocalNotificationHost(clock=lambda tz: datetime(2030, 1, 1, 8, 0))
    coordinator = NotificationCoordinator(host, handler_config=config)
    received = []
    coordinator.on_notification_received(received.append)

    async def scenario():
        await coordinator.request_permission()
        await coordinator.arm(4, "Stand up", "Stretch", datetime(2030, 1, 1, 8, 0))
        await asyncio.sleep(0.05)

    run(scenario())
    assert len(received) == 1
    assert received[0].presentation == config
    assert received[0].notification.content.title == "Stand up"


def test_tapped_handler_gets_response(host, coordinator):
    tapped = []
    coordinator.on_notification_tapped(tapped.append)

    async def scenario():
        await coordinator.request_permission()
        await coordinator.arm(6, "Call mom", "Sunday", datetime.now())
        await asyncio.sleep(0.05)
        return host.open_notification("6")

    response = run(scenario())
    assert response is not None
    assert len(tapped) == 1
    assert tapped[0].notification.content.title == "Call mom"
    assert tapped[0].notification.content.body == "Sunday"


def test_listen_releases_subscriptions_on_exit(host, coordinator):
    received, tapped = [], []

    async def scenario():
        await coordinator.request_permission()
        with coordinator.listen(on_received=received.append, on_tapped=tapped.append) as (sub_received, sub_tapped):
            assert sub_received.active and sub_tapped.active
        await coordinator.arm(8, "After unmount", "", datetime.now())
        await asyncio.sleep(0.05)
        host.open_notification("8")
        return sub_received, sub_tapped

    sub_received, sub_tapped = run(scenario())
    assert not sub_received.active and not sub_tapped.active
    assert received == [] and tapped == []


def test_listen_releases_subscriptions_on_error(coordinator):
    with pytest.raises(RuntimeError):
        with coordinator.listen(on_received=lambda event: None) as (sub_received, sub_tapped):
            raise RuntimeError("unmounted with error")
    assert sub_tapped is None
    assert not sub_received.active


def test_coordinators_are_independent(tomorrow):
    first = NotificationCoordinator(LocalNotificationHost())
    second = NotificationCoordinator(LocalNotificationHost())

    async def scenario():
        await first.arm(1, "only first", "", tomorrow)

    run(scenario())
    assert first.scheduled_tags() == ["1"]
    assert second.scheduled_tags() == []
