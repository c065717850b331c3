"""Structured logging utilities with correlation IDs, performance timing, and sensitive data handling."""

import logging
import time
import uuid
import re
import hashlib
from contextvars import ContextVar
from typing import Any, Optional, Dict, Callable
from contextlib import contextmanager
from functools import wraps
from datetime import datetime, timezone

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set the correlation ID in context."""
    _correlation_id_var.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Context manager for correlation ID propagation."""
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    old_id = get_correlation_id()
    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(old_id)


def mask_sensitive_data(text: Optional[str]) -> Optional[str]:
    """Mask sensitive data in text (email addresses, phone numbers, tokens)."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text

    text = re.sub(
        r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}',
        '[REDACTED_EMAIL]',
        text,
        flags=re.IGNORECASE
    )

    text = re.sub(
        r'\b\+?\d[\d\s().-]{7,}\b',
        '[REDACTED_PHONE]',
        text
    )

    text = re.sub(
        r'(?i)(api[_-]?key|token|secret|password|auth)[\s:=]+([A-Za-z0-9_-]{20,})',
        r'\1=[REDACTED]',
        text
    )

    return text


def mask_user_id(user_id: Optional[str]) -> Optional[str]:
    """Mask or hash an owner/user ID for privacy."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not user_id:
        return user_id

    # First 4 chars + short hash
    if len(user_id) > 12:
        hashed = hashlib.sha256(user_id.encode()).hexdigest()[:8]
        return f"{user_id[:4]}...{hashed}"
    return user_id


class StructuredLogger:
    """Logger wrapper with structured keyword fields."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _get_extra(self, **kwargs: Any) -> Dict[str, Any]:
        """Build extra fields for structured logging."""
        extra = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id

        extra.update(kwargs)

        return extra

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._get_extra(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(**kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._get_extra(**kwargs), exc_info=exc_info)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Context manager for timing operations."""
    if logger is None:
        logger = get_structured_logger(__name__)

    start_time = time.time()
    logger.debug(f"Starting {operation_name}", operation=operation_name, **context)

    try:
        yield
    finally:
        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Completed {operation_name}",
            operation=operation_name,
            processing_time_ms=round(elapsed_ms, 2),
            **context
        )

        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                f"Slow operation detected: {operation_name}",
                operation=operation_name,
                processing_time_ms=round(elapsed_ms, 2),
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **context
            )


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator for timing coroutine functions."""
    def decorator(func: Callable) -> Callable:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            with log_timing(op_name, logger=log):
                return await func(*args, **kwargs)

        return wrapper

    return decorator


def setup_logging() -> logging.Logger:
    """Set up structured logging and return the package logger."""
    LoggingConfig.setup_logging()
    return get_logger("src")
