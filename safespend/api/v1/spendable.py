"""POST /v1/spendable - Safe-to-spend per account and in aggregate"""

from datetime import datetime
from fastapi import APIRouter

from safespend.api.v1.schemas import (
    CanCoverRequest,
    CanCoverResponse,
    SpendableRequest,
    SpendableResponse,
    SpendableSchema,
    resolve_settings,
)
from safespend.domain.spendable import aggregate_safe_to_spend, can_cover_bill, compute_spendable_for_account

router = APIRouter()


@router.post("/spendable", response_model=SpendableResponse)
def compute_spendable(request_body: SpendableRequest):
    """
    Compute spendable figures for every account plus the aggregate.

    Holds and earmarks apply to each account's figures; the aggregate sums
    plain safe-to-spend, excluding credit accounts unless included.
    """
    snapshot = resolve_settings(request_body.settings)
    now = request_body.now or datetime.now()
    accounts = [a.to_domain() for a in request_body.accounts]
    bills = [b.to_domain() for b in request_body.bills]

    results = [
        SpendableSchema.from_domain(
            account.id,
            compute_spendable_for_account(
                account,
                bills,
                snapshot,
                holds_today=request_body.holds_today,
                holds_window=request_body.holds_window,
                earmarks=request_body.earmarks,
                now=now,
            ),
        )
        for account in accounts
    ]

    total = aggregate_safe_to_spend(accounts, bills, snapshot, include_credit=request_body.include_credit, now=now)
    return SpendableResponse(accounts=results, aggregate_safe_to_spend=total)


@router.post("/spendable/can-cover", response_model=CanCoverResponse)
def check_can_cover(request_body: CanCoverRequest):
    """Whether the account can pay the bill without going below zero safe-to-spend"""
    snapshot = resolve_settings(request_body.settings)
    account = request_body.account.to_domain()
    bill = request_body.bill.to_domain()
    bills = [b.to_domain() for b in request_body.bills]

    return CanCoverResponse(
        account_id=account.id,
        bill_id=bill.id,
        can_cover=can_cover_bill(account, bill, bills, snapshot, now=request_body.now or datetime.now()),
    )
