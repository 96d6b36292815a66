"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from pythonjsonlogger import jsonlogger

from billboard_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


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


def log_distribution(
    request_id: str,
    group_id: str,
    total_amount: Decimal,
    line_count: int,
    strategy: str,
    duration_ms: float,
) -> None:
    """Log a committed distributed payment"""
    logging.info(
        "Distribution committed",
        extra={
            "request_id": request_id,
            "group_id": group_id,
            "step": "distribution_commit",
            "total_amount": str(total_amount),
            "line_count": line_count,
            "strategy": strategy,
            "duration_ms": duration_ms,
        },
    )


def log_validation_failure(request_id: str, operation: str, errors: List[Dict[str, Any]]) -> None:
    """Log a rejected save with the structured errors returned to the caller"""
    logging.warning(
        "Validation failed",
        extra={
            "request_id": request_id,
            "step": operation,
            "error_codes": [error["code"] for error in errors],
            "errors": errors,
        },
    )


def log_missing_price(request_id: str, warnings: List[Dict[str, Any]]) -> None:
    """Log line items priced at zero because no price could be derived"""
    logging.warning(
        "Line items missing pricing",
        extra={
            "request_id": request_id,
            "step": "install_cost",
            "missing_count": len(warnings),
            "sizes": sorted({warning["size"] for warning in warnings}),
        },
    )
