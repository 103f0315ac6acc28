"""Reminder planning - per-bill and overspend local notifications"""

import hashlib
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from safespend.domain.models import Account, Bill, ScheduledReminder, SpendSettings
from safespend.domain.recurrence import is_lapsed, next_occurrence_on_or_after
from safespend.domain.spendable import compute_spendable_for_account
from safespend.utils.date_utils import at_time, parse_hhmm


@dataclass(frozen=True)
class ReminderPolicy:
    """Timing knobs for reminder planning"""

    marker: str = "safespend"
    hour: int = 9
    minute: int = 0
    pre_due_days: int = 3
    horizon_days: int = 60
    overspend_delay_minutes: int = 1


def reminder_id(key: str) -> int:
    """
    Map a logical reminder key to the platform's uint32 identifier space.

    The same key always yields the same id across processes, which is what
    makes cancel-then-recreate idempotent.
    """
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=4).digest()
    return int.from_bytes(digest, "big")


def bill_reminder_key(bill: Bill, due: date, kind: str) -> str:
    return f"bill:{bill.id}:{due.isoformat()}:{kind}"


def overspend_reminder_key(day: date) -> str:
    return f"overspend:{day.isoformat()}"


def within_quiet_hours(moment: datetime, start: Optional[str], end: Optional[str]) -> bool:
    """
    Whether the wall-clock time falls inside [start, end).

    The range wraps past midnight when start > end. Quiet hours apply only
    when both bounds are set and differ.
    """
    if not start or not end:
        return False
    start_h, start_m = parse_hhmm(start)
    end_h, end_m = parse_hhmm(end)
    s = start_h * 60 + start_m
    e = end_h * 60 + end_m
    t = moment.hour * 60 + moment.minute
    if s == e:
        return False
    if s < e:
        return s <= t < e
    return t >= s or t < e


def adjust_for_quiet_hours(moment: datetime, settings: SpendSettings) -> datetime:
    """Defer a fire time inside quiet hours to the end of the quiet period"""
    if not within_quiet_hours(moment, settings.quiet_hours_start, settings.quiet_hours_end):
        return moment
    end_h, end_m = parse_hhmm(settings.quiet_hours_end)
    target = at_time(moment.date(), end_h, end_m)
    if target <= moment:
        target += timedelta(days=1)
    return target


def _fire_time(day: date, settings: SpendSettings, policy: ReminderPolicy) -> datetime:
    return adjust_for_quiet_hours(at_time(day, policy.hour, policy.minute), settings)


def _reminder(
    bill: Bill, due: date, kind: str, title: str, body: str, fire_at: datetime, policy: ReminderPolicy
) -> ScheduledReminder:
    return ScheduledReminder(
        id=reminder_id(bill_reminder_key(bill, due, kind)),
        title=title,
        body=body,
        fire_at=fire_at,
        marker=policy.marker,
        kind=kind,
    )


def build_bill_reminders(
    bill: Bill,
    now: datetime,
    settings: SpendSettings,
    policy: ReminderPolicy = ReminderPolicy(),
) -> List[ScheduledReminder]:
    """
    Build pre-due, due and overdue reminders for one bill.

    - pre: pre_due_days before the next occurrence
    - due: on the occurrence date, while the occurrence is not yet past
    - overdue: occurrence already past, fired the following morning

    Pre and due reminders are dropped when their fire time is not after now,
    so a bill due tonight and added after the reminder hour gets none.

    Paid bills get nothing. A one-off bill whose date has passed while still
    owed gets an overdue reminder keyed on its original date.
    """
    if not bill.is_active:
        return []

    amount = f"{bill.amount:.2f}"
    tomorrow = now.date() + timedelta(days=1)

    next_due = next_occurrence_on_or_after(bill, now)
    if next_due is None:
        if not is_lapsed(bill, now):
            return []
        due_day = bill.due_date.date()
        return [
            _reminder(
                bill,
                due_day,
                "overdue",
                f"Overdue bill: {bill.name}",
                f"Was due {due_day.isoformat()} - {amount}",
                _fire_time(tomorrow, settings, policy),
                policy,
            )
        ]

    due_day = next_due.date()
    reminders = []

    pre_fire = _fire_time(due_day - timedelta(days=policy.pre_due_days), settings, policy)
    if pre_fire > now:
        reminders.append(
            _reminder(
                bill,
                due_day,
                "pre",
                f"Upcoming bill: {bill.name}",
                f"Due in {policy.pre_due_days} days - {amount}",
                pre_fire,
                policy,
            )
        )

    if next_due >= now:
        due_fire = _fire_time(due_day, settings, policy)
        if due_fire > now:
            reminders.append(
                _reminder(
                    bill,
                    due_day,
                    "due",
                    f"Bill due today: {bill.name}",
                    f"Amount - {amount}",
                    due_fire,
                    policy,
                )
            )
    else:
        reminders.append(
            _reminder(
                bill,
                due_day,
                "overdue",
                f"Overdue bill: {bill.name}",
                f"Was due {due_day.isoformat()} - {amount}",
                _fire_time(tomorrow, settings, policy),
                policy,
            )
        )

    return reminders


def plan_bill_reminders(
    bills: Iterable[Bill],
    now: datetime,
    settings: SpendSettings,
    policy: ReminderPolicy = ReminderPolicy(),
) -> List[ScheduledReminder]:
    """All bill reminders firing within the horizon"""
    horizon = now + timedelta(days=policy.horizon_days)
    return [
        reminder
        for bill in bills
        for reminder in build_bill_reminders(bill, now, settings, policy)
        if reminder.fire_at <= horizon
    ]


def any_overspent(
    accounts: Iterable[Account],
    bills: List[Bill],
    settings: SpendSettings,
    now: datetime,
) -> bool:
    """True when at least one account's safe-to-spend is negative"""
    return any(
        compute_spendable_for_account(account, bills, settings, now=now).safe_to_spend < 0
        for account in accounts
    )


def build_overspend_reminder(
    now: datetime,
    settings: SpendSettings,
    policy: ReminderPolicy = ReminderPolicy(),
) -> ScheduledReminder:
    """Single caution alert fired shortly after now"""
    fire_at = now.replace(second=0, microsecond=0) + timedelta(minutes=policy.overspend_delay_minutes)
    return ScheduledReminder(
        id=reminder_id(overspend_reminder_key(now.date())),
        title="Caution: approaching buffer",
        body="Safe to spend is below your buffer. Review upcoming bills.",
        fire_at=adjust_for_quiet_hours(fire_at, settings),
        marker=policy.marker,
        kind="overspend",
    )
