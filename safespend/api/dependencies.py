"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from safespend.infrastructure.clients.notifications import HttpNotificationClient
from safespend.services.scheduler import RescheduleLocks


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> HttpNotificationClient:
    """Provide notification bridge client instance"""
    return HttpNotificationClient()


def get_reschedule_locks(request: Request) -> RescheduleLocks:
    """Per-user reschedule locks shared by every request of this app"""
    return request.app.state.reschedule_locks
