"""POST /v1/bills/next-occurrence - Project each bill's next due date"""

from datetime import datetime
from fastapi import APIRouter

from safespend.api.v1.schemas import NextOccurrenceItem, NextOccurrenceRequest, NextOccurrenceResponse
from safespend.domain.recurrence import is_lapsed, next_occurrence_on_or_after

router = APIRouter()


@router.post("/bills/next-occurrence", response_model=NextOccurrenceResponse)
def project_next_occurrences(request_body: NextOccurrenceRequest):
    """
    Resolve the next occurrence on or after the reference date for each bill.

    Returns:
        One entry per bill; next_due is null for one-off bills already past
    """
    reference = request_body.reference or datetime.now()

    occurrences = []
    for schema in request_body.bills:
        bill = schema.to_domain()
        occurrences.append(
            NextOccurrenceItem(
                bill_id=bill.id,
                next_due=next_occurrence_on_or_after(bill, reference),
                lapsed=is_lapsed(bill, reference),
            )
        )

    return NextOccurrenceResponse(reference=reference, occurrences=occurrences)
