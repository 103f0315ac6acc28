"""Rule-based spending recommendations"""

from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from safespend.domain.models import Account, Bill, Recommendation, SpendSettings, Transaction
from safespend.domain.spendable import ZERO, compute_spendable_for_account, round2
from safespend.utils.date_utils import (
    days_in_month,
    format_month_year,
    is_same_month,
    month_key,
    previous_month,
)

SPIKE_RATIO = Decimal("1.5")
SPIKE_MIN_INCREASE = Decimal("50")


def _expenses_by_category(transactions: Iterable[Transaction], month: date) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.type == "expense" and is_same_month(txn.date, month):
            totals[txn.category or "Uncategorized"] += txn.amount
    return totals


def budget_drift(
    month: date,
    transactions: List[Transaction],
    now: datetime,
) -> Optional[Recommendation]:
    """
    Compare month-to-date spend with a pro-rated share of last month's total.

    Last month's expenses act as the implicit budget. When spend is ahead of
    pace, suggest a daily cap that spreads what is left of that budget over
    the remaining days.
    """
    total_days = days_in_month(month.year, month.month)
    current = is_same_month(now, month)
    days_elapsed = min(total_days, now.day if current else total_days)
    days_remaining = max(0, total_days - days_elapsed)

    prior = previous_month(month)
    prior_total = sum(
        (t.amount for t in transactions if t.type == "expense" and is_same_month(t.date, prior)),
        ZERO,
    )
    mtd_total = sum(
        (
            t.amount
            for t in transactions
            if t.type == "expense"
            and is_same_month(t.date, month)
            and (not current or t.date.day <= now.day)
        ),
        ZERO,
    )

    if prior_total <= 0 or days_elapsed <= 0:
        return None

    allowed = prior_total * days_elapsed / total_days
    if mtd_total <= allowed:
        return None

    remaining_budget = max(ZERO, prior_total - mtd_total)
    cap = round2(remaining_budget / days_remaining) if days_remaining > 0 else round2(ZERO)
    return Recommendation(
        id=f"budget-{month_key(month)}",
        type="budget-drift",
        severity="warning",
        message=(
            f"You are outpacing your {format_month_year(prior)} budget. "
            f"Cap daily spend to {cap} for the rest of the month."
        ),
        amount=cap,
    )


def category_spikes(month: date, transactions: List[Transaction]) -> List[Recommendation]:
    """Categories up at least 50% and at least 50 units on last month"""
    current = _expenses_by_category(transactions, month)
    prior = _expenses_by_category(transactions, previous_month(month))

    recs = []
    for category, amount in current.items():
        before = prior.get(category, ZERO)
        if before <= 0:
            continue
        increase = amount - before
        if amount >= before * SPIKE_RATIO and increase >= SPIKE_MIN_INCREASE:
            pct = (increase / before * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            recs.append(
                Recommendation(
                    id=f"spike-{month_key(month)}-{category}",
                    type="category-spike",
                    severity="info",
                    message=(
                        f"Spending in {category} is up +{pct}% vs last month. "
                        "Consider tightening this category."
                    ),
                    amount=round2(increase),
                )
            )
    return recs


def low_spendable(
    month: date,
    accounts: List[Account],
    bills: List[Bill],
    settings: SpendSettings,
    now: datetime,
) -> Optional[Recommendation]:
    """Suggest moving the worst shortfall from the account with the most room"""
    results = [
        (account, compute_spendable_for_account(account, bills, settings, now=now).safe_to_spend)
        for account in accounts
    ]
    negatives = sorted((r for r in results if r[1] < 0), key=lambda r: r[1])
    positives = sorted((r for r in results if r[1] > 0), key=lambda r: r[1], reverse=True)
    if not negatives or not positives:
        return None

    receiver, shortfall = negatives[0]
    donor, _ = positives[0]
    need = abs(shortfall)
    return Recommendation(
        id=f"move-{month_key(month)}-{receiver.name}",
        type="low-spendable",
        severity="danger",
        message=f"Low safe-to-spend in {receiver.name}. Consider moving around {need} from {donor.name}.",
        amount=need,
    )


def compute_recommendations(
    month: date,
    transactions: List[Transaction],
    accounts: List[Account],
    bills: List[Bill],
    settings: SpendSettings,
    now: Optional[datetime] = None,
) -> List[Recommendation]:
    """
    Derive dashboard insights for the given month.

    Order: budget drift, category spikes, low spendable. An empty list is a
    normal outcome.
    """
    if now is None:
        now = datetime.now()

    recs: List[Recommendation] = []

    drift = budget_drift(month, transactions, now)
    if drift:
        recs.append(drift)

    recs.extend(category_spikes(month, transactions))

    move = low_spendable(month, accounts, bills, settings, now)
    if move:
        recs.append(move)

    return recs
