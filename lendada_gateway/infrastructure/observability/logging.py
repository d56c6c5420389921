"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from lendada_gateway.config import settings


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


def log_credit_score(job_id: str, address: str, score: int, risk_level: str, duration_ms: float) -> None:
    """Log structured scoring outcome for analysis"""
    logging.getLogger("lendada_gateway.scoring").info(
        "Credit score computed",
        extra={
            "job_id": job_id,
            "address": address,
            "step": "score_complete",
            "score": score,
            "risk_level": risk_level,
            "duration_ms": duration_ms,
        },
    )


def log_loan_transition(
    operation: str,
    loan_id: str,
    status: str,
    tx_hash: str,
    address: Optional[str] = None,
) -> None:
    """Log a committed loan lifecycle step"""
    logging.getLogger("lendada_gateway.loans").info(
        "Loan transition committed",
        extra={
            "step": f"loan_{operation}",
            "loan_id": loan_id,
            "status": status,
            "tx_hash": tx_hash,
            "address": address,
        },
    )
