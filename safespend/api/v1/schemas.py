"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

from safespend.config import settings as app_settings
from safespend.domain.models import (
    Account,
    Bill,
    Recommendation,
    ScheduledReminder,
    SpendableResult,
    SpendSettings,
    Transaction,
)
from safespend.utils.date_utils import to_local_naive, validate_hhmm

# Engine compares wall-clock times, so aware inputs are converted to local time
LocalDateTime = Annotated[datetime, AfterValidator(to_local_naive)]

# "HH:MM" wall-clock time, hour 0-23 and minute 0-59
ClockTime = Annotated[str, Field(pattern=r"^\d{1,2}:\d{2}$"), AfterValidator(validate_hhmm)]


class BillSchema(BaseModel):
    """Bill as materialized by the document-store layer"""

    id: str = Field(..., min_length=1)
    name: str = ""
    amount: Decimal = Decimal("0")
    due_date: LocalDateTime
    repeat: Literal["none", "monthly", "yearly"] = "none"
    account_id: str = ""
    override_account_id: Optional[str] = None
    status: Literal["unpaid", "scheduled", "paid"] = "unpaid"
    last_paid_at: Optional[LocalDateTime] = None

    @field_validator("amount", mode="before")
    @classmethod
    def missing_amount_is_zero(cls, v):
        return Decimal("0") if v is None else v

    def to_domain(self) -> Bill:
        return Bill(
            id=self.id,
            name=self.name,
            amount=self.amount,
            due_date=self.due_date,
            repeat=self.repeat,
            account_id=self.account_id,
            override_account_id=self.override_account_id or None,
            status=self.status,
            last_paid_at=self.last_paid_at,
        )


class AccountSchema(BaseModel):
    """Account with its current balance"""

    id: str = Field(..., min_length=1)
    name: str = ""
    balance_current: Decimal = Decimal("0")
    type: Literal["bank", "ewallet", "cash", "credit"] = "bank"
    credit_limit: Optional[Decimal] = None

    @field_validator("balance_current", mode="before")
    @classmethod
    def missing_balance_is_zero(cls, v):
        return Decimal("0") if v is None else v

    def to_domain(self) -> Account:
        return Account(
            id=self.id,
            name=self.name,
            balance_current=self.balance_current,
            type=self.type,
            credit_limit=self.credit_limit,
        )


class TransactionSchema(BaseModel):
    """Booked transaction used for recommendations"""

    id: str
    type: Literal["income", "expense"]
    amount: Decimal = Decimal("0")
    date: LocalDateTime
    category: str = ""
    account_id: Optional[str] = None

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            type=self.type,
            amount=self.amount,
            date=self.date,
            category=self.category,
            account_id=self.account_id,
        )


class SpendSettingsSchema(BaseModel):
    """User settings snapshot; omitted fields fall back to service defaults"""

    spend_window_days: Optional[int] = Field(None, ge=0)
    buffer_mode: Optional[Literal["fixed", "percent", "none"]] = None
    buffer_value: Optional[Decimal] = None
    buffer_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    quiet_hours_start: Optional[ClockTime] = None
    quiet_hours_end: Optional[ClockTime] = None
    notifications_enabled: Optional[bool] = None
    include_credit_in_spendable: Optional[bool] = None

    def to_domain(self) -> SpendSettings:
        snapshot = app_settings.spend_settings()
        for field, value in self.model_dump(exclude_unset=True).items():
            if value is None and not field.startswith("quiet_hours"):
                continue
            setattr(snapshot, field, value)
        return snapshot


def resolve_settings(schema: Optional[SpendSettingsSchema]) -> SpendSettings:
    return schema.to_domain() if schema else app_settings.spend_settings()


class NextOccurrenceRequest(BaseModel):
    """Request body for POST /v1/bills/next-occurrence"""

    bills: List[BillSchema]
    reference: Optional[LocalDateTime] = None


class NextOccurrenceItem(BaseModel):
    bill_id: str
    next_due: Optional[datetime] = None
    lapsed: bool = False


class NextOccurrenceResponse(BaseModel):
    reference: datetime
    occurrences: List[NextOccurrenceItem]


class SpendableRequest(BaseModel):
    """Request body for POST /v1/spendable"""

    accounts: List[AccountSchema]
    bills: List[BillSchema] = []
    settings: Optional[SpendSettingsSchema] = None
    include_credit: Optional[bool] = None
    holds_today: Decimal = Decimal("0")
    holds_window: Decimal = Decimal("0")
    earmarks: Decimal = Decimal("0")
    now: Optional[LocalDateTime] = None


class SpendableSchema(BaseModel):
    """Spendable figures for one account"""

    account_id: str
    spendable_now: Decimal
    safe_to_spend: Decimal
    due_today: Decimal
    obligations_window: Decimal
    lapsed_total: Decimal

    @classmethod
    def from_domain(cls, account_id: str, result: SpendableResult) -> "SpendableSchema":
        return cls(
            account_id=account_id,
            spendable_now=result.spendable_now,
            safe_to_spend=result.safe_to_spend,
            due_today=result.due_today,
            obligations_window=result.obligations_window,
            lapsed_total=result.lapsed_total,
        )


class SpendableResponse(BaseModel):
    accounts: List[SpendableSchema]
    aggregate_safe_to_spend: Decimal


class CanCoverRequest(BaseModel):
    """Request body for POST /v1/spendable/can-cover"""

    account: AccountSchema
    bill: BillSchema
    bills: List[BillSchema] = []
    settings: Optional[SpendSettingsSchema] = None
    now: Optional[LocalDateTime] = None


class CanCoverResponse(BaseModel):
    account_id: str
    bill_id: str
    can_cover: bool


class RecommendationRequest(BaseModel):
    """Request body for POST /v1/recommendations"""

    month: date
    transactions: List[TransactionSchema] = []
    accounts: List[AccountSchema] = []
    bills: List[BillSchema] = []
    settings: Optional[SpendSettingsSchema] = None
    user_id: str = "default"
    now: Optional[LocalDateTime] = None


class RecommendationSchema(BaseModel):
    id: str
    type: str
    severity: str
    message: str
    amount: Optional[Decimal] = None

    @classmethod
    def from_domain(cls, rec: Recommendation) -> "RecommendationSchema":
        return cls(id=rec.id, type=rec.type, severity=rec.severity, message=rec.message, amount=rec.amount)


class RecommendationResponse(BaseModel):
    month: str
    dismissed: bool
    recommendations: List[RecommendationSchema]


class DismissalRequest(BaseModel):
    dismissed: bool


class DismissalResponse(BaseModel):
    month: str
    dismissed: bool


class RescheduleRequest(BaseModel):
    """Request body for POST /v1/reminders/reschedule"""

    user_id: str = Field("default", min_length=1)
    accounts: List[AccountSchema] = []
    bills: List[BillSchema] = []
    settings: Optional[SpendSettingsSchema] = None
    now: Optional[LocalDateTime] = None


class ReminderSchema(BaseModel):
    id: int
    kind: str
    title: str
    body: str
    fire_at: datetime

    @classmethod
    def from_domain(cls, reminder: ScheduledReminder) -> "ReminderSchema":
        return cls(
            id=reminder.id,
            kind=reminder.kind,
            title=reminder.title,
            body=reminder.body,
            fire_at=reminder.fire_at,
        )


class RescheduleResponse(BaseModel):
    completed: bool
    cancelled_count: int
    retained_ids: List[int] = []
    overspend_alert: bool
    reminders: List[ReminderSchema]
    warning: Optional[str] = None
