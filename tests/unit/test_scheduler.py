"""Unit tests for reminder reconciliation"""

import asyncio
import pytest
from datetime import timedelta
from decimal import Decimal
from safespend.domain.exceptions import PermissionNotGrantedError
from safespend.domain.models import PendingNotification, SpendSettings
from safespend.infrastructure.database.repositories import OVERSPEND_LAST_NOTIFIED
from safespend.services.scheduler import ObligationScheduler, RescheduleLocks


async def test_cancels_only_own_reminders(notifier, markers, accounts, bills, now, spend_settings):
    """Test foreign notifications survive a reschedule"""
    notifier.registry[1] = PendingNotification(id=1, marker="safespend")
    notifier.registry[2] = PendingNotification(id=2, marker="calendar-app")
    notifier.registry[3] = PendingNotification(id=3, marker=None)

    scheduler = ObligationScheduler(notifier, markers)
    outcome = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)

    assert outcome.completed is True
    assert outcome.cancelled_ids == [1]
    assert 2 in notifier.registry and 3 in notifier.registry
    assert notifier.calls == ["check_permissions", "get_pending", "cancel", "schedule"]
    assert len(notifier.batches) == 1


async def test_reschedule_is_idempotent(notifier, markers, accounts, bills, now, spend_settings):
    """Test two runs with unchanged inputs leave the same identifier set pending"""
    scheduler = ObligationScheduler(notifier, markers)

    first = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)
    after_first = set(notifier.registry)
    second = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)

    assert set(first.active_ids) == set(second.active_ids)
    assert set(notifier.registry) == after_first == set(second.active_ids)


async def test_same_day_rerun_keeps_pending_overspend_alert(notifier, markers, accounts, bills, now, spend_settings):
    """Test a later reschedule neither cancels nor re-submits today's alert"""
    scheduler = ObligationScheduler(notifier, markers)
    first = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)
    alert = next(r for r in first.scheduled if r.kind == "overspend")

    second = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now + timedelta(hours=1))

    assert second.retained_ids == [alert.id]
    assert alert.id not in second.cancelled_ids
    assert alert.id not in second.scheduled_ids
    assert alert.id in notifier.registry


async def test_overspend_alert_cancelled_once_resolved(notifier, markers, accounts, bills, now, spend_settings):
    scheduler = ObligationScheduler(notifier, markers)
    first = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)
    alert = next(r for r in first.scheduled if r.kind == "overspend")

    # Bank account topped up, nothing overspent anymore
    accounts[0].balance_current = Decimal("5000.00")
    second = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)

    assert second.retained_ids == []
    assert alert.id in second.cancelled_ids
    assert alert.id not in notifier.registry


async def test_overspend_alert_once_per_day(notifier, markers, accounts, bills, now, spend_settings):
    scheduler = ObligationScheduler(notifier, markers)

    first = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)
    second = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now + timedelta(hours=3))
    next_day = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now + timedelta(days=1))

    assert first.overspend_alert is True
    assert [r.kind for r in first.scheduled].count("overspend") == 1
    assert second.overspend_alert is False
    assert "overspend" not in [r.kind for r in second.scheduled]
    assert next_day.overspend_alert is True
    # Yesterday's alert is not kept past its day
    assert first.scheduled[-1].id in next_day.cancelled_ids
    assert markers.get(OVERSPEND_LAST_NOTIFIED) == "2026-10-20"


async def test_no_overspend_alert_when_all_accounts_healthy(notifier, markers, accounts, bills, now, spend_settings):
    scheduler = ObligationScheduler(notifier, markers)
    outcome = await scheduler.reschedule_all(accounts[1:], bills, spend_settings, now=now)

    assert outcome.overspend_alert is False
    assert markers.get(OVERSPEND_LAST_NOTIFIED) is None


async def test_bill_reminders_scheduled_for_active_bills(notifier, markers, accounts, bills, now, spend_settings):
    scheduler = ObligationScheduler(notifier, markers)
    outcome = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)

    # Rent due in 5 days: pre-due and due; streaming is paid
    kinds = sorted(r.kind for r in outcome.scheduled if r.kind != "overspend")
    assert kinds == ["due", "pre"]


async def test_permission_denied_raises_before_touching_schedule(notifier_factory, markers, accounts, bills, now, spend_settings):
    notifier = notifier_factory(granted=False)
    notifier.registry[7] = PendingNotification(id=7, marker="safespend")
    scheduler = ObligationScheduler(notifier, markers)

    with pytest.raises(PermissionNotGrantedError):
        await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)

    assert notifier.calls == ["check_permissions", "request_permissions"]
    assert 7 in notifier.registry


async def test_disabled_notifications_clear_schedule(notifier, markers, accounts, bills, now):
    notifier.registry[7] = PendingNotification(id=7, marker="safespend")
    snapshot = SpendSettings(notifications_enabled=False)
    scheduler = ObligationScheduler(notifier, markers)

    outcome = await scheduler.reschedule_all(accounts, bills, snapshot, now=now)

    assert outcome.completed is True
    assert outcome.scheduled == []
    assert outcome.cancelled_ids == [7]
    assert notifier.registry == {}
    assert "schedule" not in notifier.calls
    assert markers.get(OVERSPEND_LAST_NOTIFIED) is None


async def test_platform_failure_is_soft(notifier_factory, markers, accounts, bills, now, spend_settings):
    """Test a failed submit returns a warning, keeps cancellations, and skips the marker"""
    notifier = notifier_factory(fail_on="schedule")
    notifier.registry[7] = PendingNotification(id=7, marker="safespend")
    scheduler = ObligationScheduler(notifier, markers)

    outcome = await scheduler.reschedule_all(accounts, bills, spend_settings, now=now)

    assert outcome.completed is False
    assert outcome.warning
    assert outcome.cancelled_ids == [7]
    assert outcome.scheduled == []
    # No rollback of the cancel, no retry
    assert notifier.registry == {}
    assert notifier.calls.count("schedule") == 1
    assert markers.get(OVERSPEND_LAST_NOTIFIED) is None


async def test_failure_while_listing_pending(notifier_factory, markers, accounts, bills, now, spend_settings):
    notifier = notifier_factory(fail_on="get_pending")
    outcome = await ObligationScheduler(notifier, markers).reschedule_all(accounts, bills, spend_settings, now=now)

    assert outcome.completed is False
    assert outcome.cancelled_ids == []


async def test_concurrent_reschedules_do_not_interleave(notifier_factory, markers, accounts, bills, now, spend_settings):
    """Test the per-scope lock serializes fetch -> cancel -> submit"""

    class SlowNotifier(notifier_factory):
        def __init__(self):
            super().__init__()
            self.active = 0
            self.max_active = 0

        async def get_pending(self):
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            await asyncio.sleep(0.01)
            return await super().get_pending()

        async def schedule(self, notifications):
            await asyncio.sleep(0.01)
            await super().schedule(notifications)
            self.active -= 1

    notifier = SlowNotifier()
    locks = RescheduleLocks()
    schedulers = [
        ObligationScheduler(notifier, markers, scope="user_1", lock=locks.for_scope("user_1")) for _ in range(3)
    ]

    outcomes = await asyncio.gather(
        *(s.reschedule_all(accounts, bills, spend_settings, now=now) for s in schedulers)
    )

    assert notifier.max_active == 1
    assert all(o.completed for o in outcomes)
    assert sum(o.overspend_alert for o in outcomes) == 1


def test_locks_are_per_scope():
    locks = RescheduleLocks()
    assert locks.for_scope("a") is locks.for_scope("a")
    assert locks.for_scope("a") is not locks.for_scope("b")
