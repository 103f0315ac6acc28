"""Reminder reconciliation against the platform notification service"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from safespend.domain.exceptions import NotificationServiceError, PermissionNotGrantedError
from safespend.domain.models import (
    Account,
    Bill,
    PendingNotification,
    RescheduleOutcome,
    ScheduledReminder,
    SpendSettings,
)
from safespend.domain.reminders import (
    ReminderPolicy,
    any_overspent,
    build_overspend_reminder,
    overspend_reminder_key,
    plan_bill_reminders,
    reminder_id,
)
from safespend.infrastructure.database.repositories import OVERSPEND_LAST_NOTIFIED
from safespend.infrastructure.observability.logging import log_reschedule
from safespend.infrastructure.observability.metrics import (
    notification_failure_counter,
    overspend_alert_counter,
    record_scheduled,
    reschedule_counter,
    reschedule_latency_histogram,
)

logger = logging.getLogger(__name__)


class NotificationService(Protocol):
    """Platform capability the scheduler drives"""

    async def check_permissions(self) -> bool: ...

    async def request_permissions(self) -> bool: ...

    async def get_pending(self) -> List[PendingNotification]: ...

    async def cancel(self, ids: List[int]) -> None: ...

    async def schedule(self, notifications: List[ScheduledReminder]) -> None: ...


class MarkerStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: Optional[str]) -> None: ...


class RescheduleLocks:
    """One lock per user scope so reschedules never interleave"""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}

    def for_scope(self, scope: str) -> asyncio.Lock:
        if scope not in self._locks:
            self._locks[scope] = asyncio.Lock()
        return self._locks[scope]


class ObligationScheduler:
    """
    Keeps the device's reminder schedule in line with bills and balances.

    Each run cancels every pending notification carrying the engine's marker
    and submits the freshly planned set as one batch. Today's overspend alert
    is the exception: while accounts stay overspent it is left pending with
    its original fire time. Reminder ids are derived from (bill, date, kind),
    so unchanged inputs leave the same id set on the device after every run.

    Platform failures are not retried and already-cancelled reminders are not
    restored: until the next successful run the device may hold only part of
    the schedule.
    """

    def __init__(
        self,
        notifier: NotificationService,
        markers: MarkerStore,
        policy: Optional[ReminderPolicy] = None,
        scope: str = "default",
        lock: Optional[asyncio.Lock] = None,
    ):
        self.notifier = notifier
        self.markers = markers
        self.policy = policy or ReminderPolicy()
        self.scope = scope
        self.lock = lock or asyncio.Lock()

    async def ensure_permission(self) -> bool:
        """Check notification permission, prompting the user if needed"""
        if await self.notifier.check_permissions():
            return True
        return await self.notifier.request_permissions()

    def _overspend_due(self, accounts: List[Account], bills: List[Bill], settings: SpendSettings, now: datetime) -> bool:
        if not any_overspent(accounts, bills, settings, now):
            return False
        return self.markers.get(OVERSPEND_LAST_NOTIFIED) != now.date().isoformat()

    def _pending_alert(
        self,
        pending: List[PendingNotification],
        accounts: List[Account],
        bills: List[Bill],
        settings: SpendSettings,
        now: datetime,
    ) -> List[int]:
        """Today's overspend alert, if already pending and still warranted"""
        if not settings.notifications_enabled:
            return []
        if self.markers.get(OVERSPEND_LAST_NOTIFIED) != now.date().isoformat():
            return []
        alert_id = reminder_id(overspend_reminder_key(now.date()))
        if not any(n.id == alert_id and n.marker == self.policy.marker for n in pending):
            return []
        return [alert_id] if any_overspent(accounts, bills, settings, now) else []

    async def reschedule_all(
        self,
        accounts: List[Account],
        bills: List[Bill],
        settings: SpendSettings,
        now: Optional[datetime] = None,
    ) -> RescheduleOutcome:
        """
        Replace the engine's reminders with a freshly computed schedule.

        Flow:
        1. Verify notification permission (skipped when notifications are off)
        2. Fetch pending notifications and keep the engine's own
        3. Cancel them, except today's overspend alert while still overspent
        4. Plan bill reminders within the horizon, plus the daily overspend alert
        5. Submit the new set as one batch

        Raises:
            PermissionNotGrantedError: Before any platform change when the user declined
        """
        async with self.lock:
            if now is None:
                now = datetime.now()
            start_time = time.time()

            cancelled: List[int] = []
            retained: List[int] = []
            reminders: List[ScheduledReminder] = []
            overspend_alert = False
            operation = "permissions"

            try:
                if settings.notifications_enabled and not await self.ensure_permission():
                    reschedule_counter.labels(outcome="permission_denied").inc()
                    raise PermissionNotGrantedError("Notification permission not granted")

                operation = "get_pending"
                pending = await self.notifier.get_pending()
                retained = self._pending_alert(pending, accounts, bills, settings, now)
                ours = [n.id for n in pending if n.marker == self.policy.marker and n.id not in retained]

                if ours:
                    operation = "cancel"
                    await self.notifier.cancel(ours)
                    cancelled = ours

                if settings.notifications_enabled:
                    reminders = plan_bill_reminders(bills, now, settings, self.policy)
                    if self._overspend_due(accounts, bills, settings, now):
                        reminders.append(build_overspend_reminder(now, settings, self.policy))
                        overspend_alert = True

                if reminders:
                    operation = "schedule"
                    await self.notifier.schedule(reminders)

            except NotificationServiceError as e:
                notification_failure_counter.labels(operation=operation).inc()
                reschedule_counter.labels(outcome="failed").inc()
                logger.warning(
                    f"Reminder scheduling could not complete: {e}",
                    extra={"scope": self.scope, "operation": operation},
                )
                duration = time.time() - start_time
                log_reschedule(self.scope, len(cancelled), 0, False, False, duration * 1000)
                return RescheduleOutcome(
                    cancelled_ids=cancelled,
                    scheduled=[],
                    overspend_alert=False,
                    completed=False,
                    warning="Reminders could not be fully scheduled",
                    retained_ids=retained,
                )

            if overspend_alert:
                self.markers.set(OVERSPEND_LAST_NOTIFIED, now.date().isoformat())
                overspend_alert_counter.inc()

            duration = time.time() - start_time
            reschedule_latency_histogram.observe(duration)
            reschedule_counter.labels(outcome="completed" if settings.notifications_enabled else "disabled").inc()
            record_scheduled(reminders)
            log_reschedule(self.scope, len(cancelled), len(reminders), overspend_alert, True, duration * 1000)

            return RescheduleOutcome(
                cancelled_ids=cancelled,
                scheduled=reminders,
                overspend_alert=overspend_alert,
                retained_ids=retained,
            )
