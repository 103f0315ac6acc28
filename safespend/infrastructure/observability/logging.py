"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "safespend"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_reschedule(
    scope: str,
    cancelled: int,
    scheduled: int,
    overspend_alert: bool,
    completed: bool,
    duration_ms: float,
) -> None:
    """Log structured reschedule outcome for analysis"""
    logging.getLogger("safespend.scheduler").info(
        "Reschedule completed" if completed else "Reschedule incomplete",
        extra={
            "scope": scope,
            "step": "reschedule_complete",
            "cancelled_count": cancelled,
            "scheduled_count": scheduled,
            "overspend_alert": overspend_alert,
            "completed": completed,
            "duration_ms": duration_ms,
        },
    )
