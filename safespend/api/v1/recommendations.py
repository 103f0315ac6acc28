"""POST /v1/recommendations - Monthly spending insights"""

from datetime import datetime
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from safespend.api.v1.schemas import (
    DismissalRequest,
    DismissalResponse,
    RecommendationRequest,
    RecommendationResponse,
    RecommendationSchema,
    resolve_settings,
)
from safespend.domain.recommendations import compute_recommendations
from safespend.infrastructure.database.repositories import RecommendationDismissalRepository
from safespend.infrastructure.database.session import get_db
from safespend.infrastructure.observability.metrics import record_recommendations
from safespend.utils.date_utils import month_key

router = APIRouter()

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


@router.post("/recommendations", response_model=RecommendationResponse)
def get_recommendations(request_body: RecommendationRequest, db: Session = Depends(get_db)):
    """
    Derive budget-drift, category-spike and low-spendable insights.

    Returns:
        Recommendations for the month plus whether the user dismissed them
    """
    key = month_key(request_body.month)
    recs = compute_recommendations(
        request_body.month,
        [t.to_domain() for t in request_body.transactions],
        [a.to_domain() for a in request_body.accounts],
        [b.to_domain() for b in request_body.bills],
        resolve_settings(request_body.settings),
        now=request_body.now or datetime.now(),
    )
    record_recommendations(recs)

    dismissed = RecommendationDismissalRepository(db, scope=request_body.user_id).is_dismissed(key)
    return RecommendationResponse(
        month=key,
        dismissed=dismissed,
        recommendations=[RecommendationSchema.from_domain(r) for r in recs],
    )


@router.get("/recommendations/dismissed/{month}", response_model=DismissalResponse)
def get_dismissal(
    month: str = Path(..., pattern=MONTH_PATTERN),
    user_id: str = Query("default", description="User identifier"),
    db: Session = Depends(get_db),
):
    repo = RecommendationDismissalRepository(db, scope=user_id)
    return DismissalResponse(month=month, dismissed=repo.is_dismissed(month))


@router.put("/recommendations/dismissed/{month}", response_model=DismissalResponse)
def set_dismissal(
    request_body: DismissalRequest,
    month: str = Path(..., pattern=MONTH_PATTERN),
    user_id: str = Query("default", description="User identifier"),
    db: Session = Depends(get_db),
):
    """Hide or restore the month's recommendations panel"""
    repo = RecommendationDismissalRepository(db, scope=user_id)
    repo.set_dismissed(month, request_body.dismissed)
    return DismissalResponse(month=month, dismissed=request_body.dismissed)
