"""Structured logging for the marketplace: request correlation, PII masking, and store/AI call timing."""

import hashlib
import logging
import re
import time
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, Optional

from ulid import ULID

from src.utils.logging_config import LoggingConfig, get_logger

_correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Client-supplied ids are echoed into logs and response headers
_CORRELATION_ID_PATTERN = re.compile(r"[A-Za-z0-9_.:-]{1,64}")

# (pattern, replacement), applied in order
_MASKS = (
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+"), "Bearer [REDACTED]"),
    (re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"), "[REDACTED_JWT]"),
    (re.compile(r"\bsb_(?:secret|publishable)_[A-Za-z0-9_-]+"), "[REDACTED_KEY]"),
    (re.compile(r"(?i)\b(api[_-]?key|secret|password|token)(\s*[:=]\s*)\S+"), r"\1\2[REDACTED]"),
    (re.compile(r"(?i)[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}"), "[REDACTED_EMAIL]"),
    # Kenyan mobile numbers: +254 7xx..., 254 1xx..., 07xx..., 01xx...
    (re.compile(r"(?<!\d)(?:\+?254|0)[\s-]?[17]\d{2}[\s-]?\d{3}[\s-]?\d{3}(?!\d)"), "[REDACTED_PHONE]"),
    # KRA PIN, e.g. A012345678Z
    (re.compile(r"\b[AP]\d{9}[A-Z]\b"), "[REDACTED_PIN]"),
)


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


@contextmanager
def correlation_context(incoming: Optional[str] = None):
    """Bind a correlation ID for the duration of one request.

    A well-formed ``incoming`` ID (from the request header) is reused;
    anything else is replaced with a fresh ``req_<ULID>``.
    """
    if incoming and _CORRELATION_ID_PATTERN.fullmatch(incoming):
        correlation_id = incoming
    else:
        correlation_id = f"req_{ULID()}"
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Redact contact details, tax PINs and credentials from free text."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    for pattern, replacement in _MASKS:
        text = pattern.sub(replacement, text)
    return text


def mask_user_id(user_id: Optional[str]) -> Optional[str]:
    """Stable pseudonym for a Supabase user id: prefix plus a short hash."""
    if not user_id or not LoggingConfig.LOG_MASK_SENSITIVE:
        return user_id
    digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:8]
    return f"{user_id[:4]}...{digest}"


def loggable_text(text: Optional[str], max_length: int = 200) -> Optional[str]:
    """Buyer/seller free text (messages, report reasons) as it may appear in logs.

    None when content logging is disabled.
    """
    if not text or not LoggingConfig.LOG_MESSAGE_CONTENT:
        return None
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return mask_sensitive_data(text)


class StructuredLogger:
    """Logger taking keyword fields; the current correlation ID is attached to every record."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        correlation_id = get_correlation_id()
        if correlation_id:
            fields.setdefault("correlation_id", correlation_id)
        self.logger.log(level, message, extra=fields, exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation: str, logger: StructuredLogger, **fields: Any):
    """Time a store or model call.

    Logs the duration at debug level, and a warning when the call exceeds
    ``LOG_SLOW_OPERATION_THRESHOLD_MS``. A call that raises is logged with
    ``failed=True`` and the exception propagates.
    """
    start = time.perf_counter()
    failed = False
    try:
        yield
    except Exception:
        failed = True
        raise
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.debug("Operation timed", operation=operation, elapsed_ms=elapsed_ms, failed=failed, **fields)
        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                "Slow operation",
                operation=operation,
                elapsed_ms=elapsed_ms,
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                failed=failed,
                **fields
            )


def timed(operation: str):
    """Decorator form of ``log_timing`` for coroutine functions."""
    def decorator(func):
        logger = get_structured_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            with log_timing(operation, logger):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
