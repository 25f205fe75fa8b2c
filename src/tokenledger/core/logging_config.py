"""
tokenledger - Structured Logging Configuration

Configures structured JSON logging for the chaincode runtime and CLI:
- JSON format for easy parsing and aggregation
- Optional rotating log file
- Environment and service tags on every record

Usage:
    from tokenledger.core.logging_config import setup_logging

    logger = setup_logging(name="tokenledger", level="INFO")
    logger.info("Runtime started", extra={"event": "runtime.started"})
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with timestamp, environment and source location fields.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "tokenledger",
    ):
        """
        Args:
            fmt: Log format string
            timestamp: Whether to add timestamps
            environment: Environment name (development, staging, production)
            service_name: Service name for context
        """
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or "development"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name

        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        # "tokenledger.contracts.token_ledger" -> "contracts"
        parts = record.name.split(".")
        log_record["component"] = parts[1] if len(parts) > 2 else parts[-1]
        log_record["source"] = {"module": record.module, "function": record.funcName, "line": record.lineno}


def setup_logging(
    name: str = "tokenledger",
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "development",
    enable_console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Setup structured JSON logging.

    Args:
        name: Logger name (the package logger covers every module below it)
        log_file: Path to JSON log file (optional)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment identifier
        enable_console: Whether to log to stderr
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    for stale in list(logger.handlers):
        logger.removeHandler(stale)

    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])

    def attach(handler: logging.Handler) -> None:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if enable_console:
        attach(logging.StreamHandler(sys.stderr))

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            attach(logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count))
        except OSError as e:
            logger.warning(
                "JSON log file unavailable, continuing without it",
                extra={"event": "logging.file_handler_failed", "log_file": str(path), "error": str(e)},
            )

    return logger


def truncate_address(address: str) -> str:
    """Shorten an address for log fields."""
    if not address:
        return "UNKNOWN"
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"
