"""Safe-to-spend engine - windowed bill obligations against account balances"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from safespend.domain.models import Account, Bill, SpendableResult, SpendSettings
from safespend.domain.recurrence import is_lapsed, next_occurrence_on_or_after
from safespend.utils.date_utils import is_same_day

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_buffer(account: Account, settings: SpendSettings) -> Decimal:
    """Reserved cushion: fixed amount, share of balance, or nothing"""
    if settings.buffer_mode == "fixed":
        return Decimal(settings.buffer_value)
    if settings.buffer_mode == "percent":
        return account.balance_current * Decimal(settings.buffer_percent) / 100
    return ZERO


def compute_spendable_for_account(
    account: Account,
    bills: Iterable[Bill],
    settings: SpendSettings,
    holds_today: Decimal = ZERO,
    holds_window: Decimal = ZERO,
    earmarks: Decimal = ZERO,
    now: Optional[datetime] = None,
) -> SpendableResult:
    """
    Compute spendable figures for one account.

    Only active (unpaid/scheduled) bills whose effective account is this
    account are considered:
    - due_today: next occurrence on the same calendar day as now
    - obligations_window: next occurrence before now + spend_window_days

    spendable_now = balance - holds_today - due_today
    safe_to_spend = balance - obligations_window - holds_window - earmarks - buffer

    A negative safe_to_spend means the account is over-committed.
    One-off bills whose due date has passed have no next occurrence and are
    left out of both sums; their total is reported as lapsed_total.
    """
    if now is None:
        now = datetime.now()
    window_end = now + timedelta(days=settings.spend_window_days)

    due_today = ZERO
    obligations_window = ZERO
    lapsed_total = ZERO

    for bill in bills:
        if bill.effective_account_id != account.id or not bill.is_active:
            continue

        next_due = next_occurrence_on_or_after(bill, now)
        if next_due is None:
            if is_lapsed(bill, now):
                lapsed_total += bill.amount
            continue

        if is_same_day(next_due, now):
            due_today += bill.amount
        if next_due < window_end:
            obligations_window += bill.amount

    buffer = compute_buffer(account, settings)
    balance = account.balance_current

    return SpendableResult(
        spendable_now=round2(balance - holds_today - due_today),
        safe_to_spend=round2(balance - obligations_window - holds_window - earmarks - buffer),
        due_today=round2(due_today),
        obligations_window=round2(obligations_window),
        lapsed_total=round2(lapsed_total),
    )


def aggregate_safe_to_spend(
    accounts: Iterable[Account],
    bills: List[Bill],
    settings: SpendSettings,
    include_credit: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Decimal:
    """Sum safe-to-spend across accounts, credit accounts only when included"""
    if include_credit is None:
        include_credit = settings.include_credit_in_spendable

    total = sum(
        (
            compute_spendable_for_account(account, bills, settings, now=now).safe_to_spend
            for account in accounts
            if include_credit or account.type != "credit"
        ),
        ZERO,
    )
    return round2(total)


def can_cover_bill(
    account: Account,
    bill: Bill,
    bills: List[Bill],
    settings: SpendSettings,
    now: Optional[datetime] = None,
) -> bool:
    """Whether paying the bill from this account keeps safe-to-spend non-negative"""
    result = compute_spendable_for_account(account, bills, settings, now=now)
    return result.safe_to_spend - bill.amount >= 0
