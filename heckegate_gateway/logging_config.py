"""
Logging configuration for the HeckeGate gateway.

Structured JSON logs for audit trails and debugging.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import List, Optional

request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """JSON formatter; one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """Audit events for verification decisions and webhook delivery."""

    def __init__(self, name: str = "heckegate.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def verification_request(
        self,
        transaction_id: str,
        transaction_type: str,
        word_length: int,
        amount: Optional[float] = None
    ) -> None:
        self._log(
            logging.INFO,
            "VERIFICATION_REQUEST",
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            word_length=word_length,
            amount=amount,
            message=f"Verification requested for {transaction_type} {transaction_id}"
        )

    def verification_decision(
        self,
        transaction_id: str,
        verdict: str,
        proof_hash: str,
        finding_code: Optional[str] = None,
        severity: Optional[str] = None,
        violated: Optional[List[str]] = None,
        latency_micros: Optional[int] = None
    ) -> None:
        level = logging.INFO if verdict == "APPROVED" else logging.WARNING
        self._log(
            level,
            "VERIFICATION_DECISION",
            transaction_id=transaction_id,
            verdict=verdict,
            proof_hash=proof_hash,
            finding_code=finding_code,
            severity=severity,
            violated=violated,
            latency_micros=latency_micros,
            message=f"Verification decision: {verdict}"
        )

    def validation_rejected(
        self,
        transaction_id: Optional[str],
        error: str,
        detail: str
    ) -> None:
        self._log(
            logging.WARNING,
            "VALIDATION_REJECTED",
            transaction_id=transaction_id,
            error=error,
            detail=detail,
            message=f"Request rejected: {error}"
        )

    def webhook_delivery(
        self,
        subscription_id: str,
        event: str,
        transaction_id: str,
        status: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None
    ) -> None:
        level = logging.INFO if status == "DELIVERED" else logging.ERROR
        self._log(
            level,
            "WEBHOOK_DELIVERY",
            subscription_id=subscription_id,
            webhook_event=event,
            transaction_id=transaction_id,
            status=status,
            status_code=status_code,
            error=error,
            message=f"Webhook {event} {status} for {transaction_id}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the request ID for the current context, generating one if needed."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


audit_log = AuditLogger()
