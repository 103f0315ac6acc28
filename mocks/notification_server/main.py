from typing import Dict, List, Optional

from fastapi import FastAPI
from pydantic import BaseModel

app = FastAPI(title="Mock Notification Bridge", version="1.0.0")

# Device-side registry, process-local
PENDING: Dict[int, dict] = {}
PERMISSION = {"display": "granted"}


class NotificationIn(BaseModel):
    id: int
    title: str
    body: str
    fire_at: str
    marker: Optional[str] = None


class ScheduleIn(BaseModel):
    notifications: List[NotificationIn]


class CancelIn(BaseModel):
    ids: List[int]


def reset(display: str = "granted") -> None:
    PENDING.clear()
    PERMISSION["display"] = display


@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/notifications/permissions")
def permissions(): return PERMISSION

@app.post("/notifications/permissions/request")
def request_permissions(): return PERMISSION

@app.get("/notifications/pending")
def pending():
    return {"notifications": sorted(PENDING.values(), key=lambda n: n["fire_at"])}

@app.post("/notifications/cancel")
def cancel(payload: CancelIn):
    for notification_id in payload.ids:
        PENDING.pop(notification_id, None)
    return {"cancelled": len(payload.ids)}

@app.post("/notifications/schedule")
def schedule(payload: ScheduleIn):
    for notification in payload.notifications:
        PENDING[notification.id] = notification.model_dump()
    return {"scheduled": len(payload.notifications)}
