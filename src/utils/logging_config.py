"""Centralized logging and catalog configuration with environment variable support."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger


class LoggingConfig:
    """Centralized logging configuration."""

    # Environment variable defaults
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    LOG_CORRELATION_ID_HEADER = os.environ.get("LOG_CORRELATION_ID_HEADER", "X-Correlation-ID")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))

    @classmethod
    def setup_logging(cls) -> None:
        """Configure logging based on environment variables."""
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))

        # Remove existing handlers
        root_logger.handlers.clear()

        # stdout for serverless
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))

        if cls.LOG_FORMAT == "json":
            formatter = jsonlogger.JsonFormatter(
                "%(timestamp)s %(levelname)s %(name)s %(message)s",
                timestamp=True
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

        # Suppress noisy third-party loggers
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("supabase").setLevel(logging.WARNING)


class CatalogConfig:
    """Catalog and duplicate detection settings."""

    PROPERTIES_TABLE = os.environ.get("PROPERTIES_TABLE", "properties")
    DUPLICATE_DETECTION_ENABLED = os.environ.get("DUPLICATE_DETECTION_ENABLED", "true").lower() == "true"
    BULK_RECHECK_LOG_EVERY = int(os.environ.get("BULK_RECHECK_LOG_EVERY", "50"))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
