"""Data access layer for engine-owned markers"""

from typing import Optional
from sqlalchemy.orm import Session
from safespend.infrastructure.database.models import EngineMarker, RecommendationDismissal

OVERSPEND_LAST_NOTIFIED = "overspend:last_notified_date"


class MarkerRepository:
    """Repository for scoped key-value markers"""

    def __init__(self, db: Session, scope: str = "default"):
        self.db = db
        self.scope = scope

    def get(self, key: str) -> Optional[str]:
        """Fetch marker value, None when never set"""
        marker = (
            self.db.query(EngineMarker)
            .filter(EngineMarker.scope == self.scope, EngineMarker.key == key)
            .first()
        )
        return marker.value if marker else None

    def set(self, key: str, value: Optional[str]) -> None:
        """Create or overwrite a marker and commit immediately"""
        marker = (
            self.db.query(EngineMarker)
            .filter(EngineMarker.scope == self.scope, EngineMarker.key == key)
            .first()
        )
        if marker is None:
            marker = EngineMarker(scope=self.scope, key=key)
            self.db.add(marker)
        marker.value = value
        self.db.commit()


class RecommendationDismissalRepository:
    """Repository for per-month recommendation dismissals"""

    def __init__(self, db: Session, scope: str = "default"):
        self.db = db
        self.scope = scope

    def _find(self, month_key: str) -> Optional[RecommendationDismissal]:
        return (
            self.db.query(RecommendationDismissal)
            .filter(
                RecommendationDismissal.scope == self.scope,
                RecommendationDismissal.month_key == month_key,
            )
            .first()
        )

    def is_dismissed(self, month_key: str) -> bool:
        record = self._find(month_key)
        return bool(record and record.dismissed)

    def set_dismissed(self, month_key: str, dismissed: bool) -> None:
        record = self._find(month_key)
        if record is None:
            record = RecommendationDismissal(scope=self.scope, month_key=month_key)
            self.db.add(record)
        record.dismissed = dismissed
        self.db.commit()
