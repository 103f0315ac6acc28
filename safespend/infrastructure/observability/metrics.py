"""Prometheus metrics for reminder scheduling, spendable alerts and recommendations"""

from typing import Iterable
from prometheus_client import Counter, Histogram

from safespend.domain.models import Recommendation, ScheduledReminder

# Scheduling metrics
reminders_scheduled_counter = Counter(
    "safespend_reminders_scheduled_total",
    "Reminders submitted to the notification service",
    ["kind"],  # pre | due | overdue | overspend
)

reschedule_counter = Counter(
    "safespend_reschedule_total",
    "Reschedule runs by outcome",
    ["outcome"],  # completed | failed | permission_denied | disabled
)

reschedule_latency_histogram = Histogram(
    "safespend_reschedule_seconds",
    "End-to-end reschedule duration",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

notification_failure_counter = Counter(
    "notification_service_failures_total",
    "Failed calls to the notification service",
    ["operation"],  # get_pending | cancel | schedule | permissions
)

overspend_alert_counter = Counter(
    "safespend_overspend_alerts_total",
    "Overspend alerts issued (at most one per day per scope)",
)

# Recommendation metrics
recommendation_counter = Counter(
    "safespend_recommendations_total",
    "Recommendations produced",
    ["type"],  # budget-drift | category-spike | low-spendable
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_scheduled(reminders: Iterable[ScheduledReminder]) -> None:
    """Count submitted reminders by kind"""
    for reminder in reminders:
        reminders_scheduled_counter.labels(kind=reminder.kind).inc()


def record_recommendations(recs: Iterable[Recommendation]) -> None:
    for rec in recs:
        recommendation_counter.labels(type=rec.type).inc()
