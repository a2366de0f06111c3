"""
JSON logging for the discovery service.

Every record carries the request's correlation id and the service name.
Provider credentials are scrubbed from both structured fields and message
text before a handler sees them:

    logger.info("Fan-out finished", extra={"event": "fanout_complete", "unique": 41})
"""

import logging
import os
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from pythonjsonlogger import jsonlogger

from utils.security import redact_secrets_from_text

SERVICE_NAME = "safehaven-resources"
TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(correlation_id)s %(message)s"
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_correlation_id() -> Optional[str]:
    return _request_id.get()


def generate_correlation_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


@contextmanager
def correlation_id_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id (generated when missing) for the enclosed block."""
    token = _request_id.set(correlation_id or generate_correlation_id())
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


class CorrelationIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "none"
        return True


class SensitiveDataFilter(logging.Filter):
    """Masks credential-looking extras and scrubs keys out of message text."""

    SENSITIVE_KEYS = frozenset({"api_key", "key", "token", "secret", "authorization"})

    def filter(self, record: logging.LogRecord) -> bool:
        for name in [n for n in vars(record) if n.lower() in self.SENSITIVE_KEYS]:
            setattr(record, name, "[REDACTED]")
        if isinstance(record.msg, str):
            record.msg = redact_secrets_from_text(record.msg)
        if isinstance(record.args, dict):
            record.args = self._mask(record.args)
        return True

    def _mask(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in self.SENSITIVE_KEYS else self._mask(v)
                for k, v in value.items()
            }
        if isinstance(value, list):
            return [self._mask(v) for v in value]
        return value


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            correlation_id=getattr(record, "correlation_id", "none"),
            service=SERVICE_NAME,
            environment=os.getenv("ENVIRONMENT", "development"),
        )
        if record.exc_info and "exception" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return CustomJsonFormatter(JSON_FORMAT, rename_fields={"timestamp": "@timestamp"})
    return logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Install the service's stream handler on the root logger.

    LOG_LEVEL and LOG_FORMAT are read when the arguments are omitted; the
    format defaults to json only when ENVIRONMENT=production. Calling this
    again replaces the handler it installed earlier and leaves others alone.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if log_format is None:
        log_format = os.getenv("LOG_FORMAT") or ("json" if os.getenv("ENVIRONMENT") == "production" else "text")

    root = logging.getLogger()
    for existing in [h for h in root.handlers if getattr(h, "_safehaven", False)]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler._safehaven = True
    handler.setFormatter(_build_formatter(log_format))
    handler.addFilter(CorrelationIDFilter())
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
