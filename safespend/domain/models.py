"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

ACTIVE_BILL_STATUSES = ("unpaid", "scheduled")


@dataclass
class Bill:
    """Recurring or one-off obligation charged to an account"""

    id: str
    amount: Decimal
    due_date: datetime  # anchor: first occurrence, keeps its time of day
    repeat: str = "none"  # "none" | "monthly" | "yearly"
    account_id: str = ""
    override_account_id: Optional[str] = None
    status: str = "unpaid"  # "unpaid" | "scheduled" | "paid"
    name: str = ""
    last_paid_at: Optional[datetime] = None

    @property
    def effective_account_id(self) -> str:
        """Account actually charged: the one-off override wins over the primary"""
        return self.override_account_id or self.account_id

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BILL_STATUSES


@dataclass
class Account:
    """Money account whose current balance the engine reads"""

    id: str
    balance_current: Decimal
    type: str = "bank"  # "bank" | "ewallet" | "cash" | "credit"
    name: str = ""
    credit_limit: Optional[Decimal] = None


@dataclass
class Transaction:
    """Booked income or expense"""

    id: str
    type: str  # "income" or "expense"
    amount: Decimal
    date: datetime
    category: str = ""
    account_id: Optional[str] = None


@dataclass
class SpendSettings:
    """Read-only snapshot of the user's spendable and reminder preferences"""

    spend_window_days: int = 14
    buffer_mode: str = "fixed"  # "fixed" | "percent" | "none"
    buffer_value: Decimal = Decimal("50")
    buffer_percent: Decimal = Decimal("10")
    quiet_hours_start: Optional[str] = None  # "HH:MM"
    quiet_hours_end: Optional[str] = None
    notifications_enabled: bool = True
    include_credit_in_spendable: bool = False


@dataclass
class SpendableResult:
    """Per-account spendable figures, recomputed on every call"""

    spendable_now: Decimal
    safe_to_spend: Decimal
    due_today: Decimal
    obligations_window: Decimal
    lapsed_total: Decimal = Decimal("0.00")


@dataclass
class ScheduledReminder:
    """Local notification owned by the engine"""

    id: int
    title: str
    body: str
    fire_at: datetime
    marker: str
    kind: str  # "pre" | "due" | "overdue" | "overspend"


@dataclass
class PendingNotification:
    """Notification currently registered with the platform"""

    id: int
    marker: Optional[str] = None


@dataclass
class Recommendation:
    """Rule-based insight shown on the dashboard"""

    id: str
    type: str  # "budget-drift" | "category-spike" | "low-spendable"
    severity: str  # "info" | "warning" | "danger"
    message: str
    amount: Optional[Decimal] = None


@dataclass
class RescheduleOutcome:
    """Result of one reconciliation run against the notification service"""

    cancelled_ids: list[int]
    scheduled: list[ScheduledReminder]
    overspend_alert: bool
    completed: bool = True
    warning: Optional[str] = None
    retained_ids: list[int] = field(default_factory=list)  # today's overspend alert, left pending

    @property
    def scheduled_ids(self) -> list[int]:
        return [r.id for r in self.scheduled]

    @property
    def active_ids(self) -> list[int]:
        """Engine reminders pending on the device after the run"""
        return self.scheduled_ids + self.retained_ids
