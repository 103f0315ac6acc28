"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from safespend.api.main import create_app
from safespend.api.dependencies import get_notification_client
from safespend.domain.exceptions import NotificationServiceError
from safespend.domain.models import Account, Bill, PendingNotification, ScheduledReminder, SpendSettings
from safespend.infrastructure.database.models import Base
from safespend.infrastructure.database.repositories import MarkerRepository
from safespend.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday morning, mid-month
NOW = datetime(2026, 10, 19, 10, 30)


class FakeNotifier:
    """In-memory stand-in for the platform notification service"""

    def __init__(self, granted: bool = True, fail_on: str | None = None):
        self.granted = granted
        self.fail_on = fail_on
        self.registry: dict[int, PendingNotification] = {}
        self.batches: List[List[ScheduledReminder]] = []
        self.calls: List[str] = []

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_on == operation:
            raise NotificationServiceError(f"{operation} failed")

    async def check_permissions(self) -> bool:
        self._record("check_permissions")
        return self.granted

    async def request_permissions(self) -> bool:
        self._record("request_permissions")
        return self.granted

    async def get_pending(self) -> List[PendingNotification]:
        self._record("get_pending")
        return list(self.registry.values())

    async def cancel(self, ids: List[int]) -> None:
        self._record("cancel")
        for notification_id in ids:
            self.registry.pop(notification_id, None)

    async def schedule(self, notifications: List[ScheduledReminder]) -> None:
        self._record("schedule")
        self.batches.append(list(notifications))
        for n in notifications:
            self.registry[n.id] = PendingNotification(id=n.id, marker=n.marker)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def markers(db: Session) -> MarkerRepository:
    return MarkerRepository(db, scope="user_1")


@pytest.fixture
def client(db: Session, notifier: FakeNotifier) -> TestClient:
    """Create FastAPI test client with test database and fake notifier"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_client] = lambda: notifier
    return TestClient(app)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def spend_settings() -> SpendSettings:
    """Defaults: 14-day window, fixed buffer of 50, no quiet hours"""
    return SpendSettings()


@pytest.fixture
def accounts() -> list[Account]:
    return [
        Account(id="acc_bank", name="Checking", balance_current=Decimal("500.00"), type="bank"),
        Account(id="acc_wallet", name="Wallet", balance_current=Decimal("2000.00"), type="ewallet"),
        Account(id="acc_card", name="Card", balance_current=Decimal("300.00"), type="credit"),
    ]


@pytest.fixture
def bills(now: datetime) -> list[Bill]:
    """Rent due in 5 days on the bank account, plus a paid subscription"""
    return [
        Bill(
            id="bill_rent",
            name="Rent",
            amount=Decimal("1200.00"),
            due_date=datetime(2026, 1, (now + timedelta(days=5)).day, 0, 0),
            repeat="monthly",
            account_id="acc_bank",
        ),
        Bill(
            id="bill_stream",
            name="Streaming",
            amount=Decimal("15.99"),
            due_date=datetime(2026, 3, 21),
            repeat="monthly",
            account_id="acc_wallet",
            status="paid",
        ),
    ]


@pytest.fixture
def notifier_factory() -> type[FakeNotifier]:
    """Fake notifier class, for tests needing custom permission or failures"""
    return FakeNotifier
