"""SQLAlchemy ORM models for engine-owned key-value state"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class EngineMarker(Base):
    """Small persisted marker, e.g. the date the overspend alert last fired"""

    __tablename__ = "engine_marker"
    __table_args__ = (UniqueConstraint("scope", "key", name="uq_engine_marker_scope_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    scope = Column(Text, nullable=False, index=True)
    key = Column(String(128), nullable=False)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class RecommendationDismissal(Base):
    """Per-month dismissal of the recommendations panel"""

    __tablename__ = "recommendation_dismissal"
    __table_args__ = (UniqueConstraint("scope", "month_key", name="uq_recommendation_dismissal_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    scope = Column(Text, nullable=False, index=True)
    month_key = Column(String(7), nullable=False)  # YYYY-MM
    dismissed = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
