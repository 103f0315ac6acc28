"""POST /v1/reminders/reschedule - Rebuild the local reminder schedule"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from safespend.api.v1.schemas import ReminderSchema, RescheduleRequest, RescheduleResponse, resolve_settings
from safespend.api.dependencies import get_notification_client, get_request_id, get_reschedule_locks
from safespend.config import settings
from safespend.domain.exceptions import PermissionNotGrantedError
from safespend.domain.reminders import ReminderPolicy
from safespend.infrastructure.clients.notifications import HttpNotificationClient
from safespend.infrastructure.database.repositories import MarkerRepository
from safespend.infrastructure.database.session import get_db
from safespend.services.scheduler import ObligationScheduler, RescheduleLocks

router = APIRouter()


def build_policy() -> ReminderPolicy:
    return ReminderPolicy(
        marker=settings.reminder_marker,
        hour=settings.reminder_hour,
        minute=settings.reminder_minute,
        pre_due_days=settings.pre_due_days,
        horizon_days=settings.horizon_days,
        overspend_delay_minutes=settings.overspend_delay_minutes,
    )


@router.post("/reminders/reschedule", response_model=RescheduleResponse)
async def reschedule_reminders(
    request_body: RescheduleRequest,
    request: Request,
    db: Session = Depends(get_db),
    notifier: HttpNotificationClient = Depends(get_notification_client),
    locks: RescheduleLocks = Depends(get_reschedule_locks),
):
    """
    Replace the user's engine-owned reminders with a fresh schedule.

    Flow:
    1. Check notification permission (403 when declined)
    2. Cancel pending reminders carrying the engine marker
    3. Plan bill reminders and the daily overspend alert
    4. Submit the batch

    Scheduling is best-effort: platform failures come back as completed=false
    with a warning rather than an error status.
    """
    request_id = get_request_id(request)
    scheduler = ObligationScheduler(
        notifier=notifier,
        markers=MarkerRepository(db, scope=request_body.user_id),
        policy=build_policy(),
        scope=request_body.user_id,
        lock=locks.for_scope(request_body.user_id),
    )

    try:
        outcome = await scheduler.reschedule_all(
            [a.to_domain() for a in request_body.accounts],
            [b.to_domain() for b in request_body.bills],
            resolve_settings(request_body.settings),
            now=request_body.now,
        )

    except PermissionNotGrantedError as e:
        logging.warning(f"Permission denied: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=403, detail="Notification permission not granted")

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return RescheduleResponse(
        completed=outcome.completed,
        cancelled_count=len(outcome.cancelled_ids),
        retained_ids=outcome.retained_ids,
        overspend_alert=outcome.overspend_alert,
        reminders=[ReminderSchema.from_domain(r) for r in outcome.scheduled],
        warning=outcome.warning,
    )
