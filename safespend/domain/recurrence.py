"""Projection of a bill's next due date from its anchor and repeat rule"""

from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from safespend.domain.models import Bill
from safespend.utils.date_utils import start_of_day


def next_occurrence_on_or_after(bill: Bill, reference: datetime) -> Optional[datetime]:
    """
    Compute the bill's next occurrence on or after the reference day.

    The reference is normalized to local midnight, so any occurrence falling
    on the reference day counts. Computed dates keep the anchor's time of day.

    Rules:
    - none:    the anchor itself, or None once it has passed
    - monthly: anchor's day-of-month in the reference month, else next month
    - yearly:  anchor's month/day in the reference year, else next year

    Days that do not exist in the target month are clamped to its last day
    (31st -> 30th, Feb 29 -> Feb 28). Every candidate is derived from the
    anchor, so a short month never shifts later occurrences.
    """
    anchor = bill.due_date
    start = start_of_day(reference)

    if bill.repeat == "monthly":
        candidate = anchor + relativedelta(year=start.year, month=start.month)
        if candidate >= start:
            return candidate
        following = start + relativedelta(months=1)
        return anchor + relativedelta(year=following.year, month=following.month)

    if bill.repeat == "yearly":
        candidate = anchor + relativedelta(year=start.year)
        if candidate >= start:
            return candidate
        return anchor + relativedelta(year=start.year + 1)

    # Non-recurring (and any unknown rule) behaves as a one-off
    return anchor if anchor >= start else None


def is_lapsed(bill: Bill, reference: datetime) -> bool:
    """One-off bill still owed although its due date has passed"""
    return (
        bill.repeat not in ("monthly", "yearly")
        and bill.is_active
        and next_occurrence_on_or_after(bill, reference) is None
    )
