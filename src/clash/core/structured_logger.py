"""
Clash - Structured Logging System

Structured logging for operator tooling (deployment glue and CLI):
- JSON log format for easy parsing
- Log levels: DEBUG, INFO, WARN, ERROR, CRITICAL
- Daily log rotation
- Contextual logging with correlation IDs
- Privacy-preserving features
"""

import hashlib
import logging
import os
import threading
import time
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, Optional

from clash.core.logging_config import CustomJsonFormatter

# Context variable for correlation ID
correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class CorrelationIDFilter(logging.Filter):
    """Filter to add correlation ID to log records"""

    def filter(self, record):
        corr_id = correlation_id.get()
        record.correlation_id = corr_id if corr_id else "NO-ID"
        return True


class StructuredLogger:
    """
    Structured logger with JSON output

    Features:
    - Multiple log levels (DEBUG, INFO, WARN, ERROR, CRITICAL)
    - JSON format output
    - Daily rotation
    - Correlation ID tracking
    - Privacy-preserving (truncated addresses, sanitized data)
    """

    def __init__(
        self,
        name: str = "clash.operations",
        log_dir: Optional[str] = None,
        log_level: str = "INFO",
        backup_count: int = 30,
    ):
        """
        Initialize structured logger

        Args:
            name: Logger name
            log_dir: Directory for log files; no file handler when None
            log_level: Minimum log level (DEBUG, INFO, WARN, ERROR, CRITICAL)
            backup_count: Number of rotated files to keep
        """
        self.name = name
        self.logger = logging.getLogger(name)
        level_name = log_level.upper()
        self.logger.setLevel(getattr(logging, "WARNING" if level_name == "WARN" else level_name))

        # Prevent duplicate handlers
        if log_dir and not self.logger.handlers:
            os.makedirs(log_dir, exist_ok=True)
            json_log_path = os.path.join(log_dir, f"{name.lower()}.json.log")
            json_handler = TimedRotatingFileHandler(
                json_log_path,
                when="midnight",
                interval=1,
                backupCount=backup_count,
                encoding="utf-8",
                utc=True,
            )
            json_handler.setFormatter(CustomJsonFormatter(service_name=name.split(".")[0]))
            json_handler.addFilter(CorrelationIDFilter())
            self.logger.addHandler(json_handler)

        self.log_counts = {"DEBUG": 0, "INFO": 0, "WARN": 0, "ERROR": 0, "CRITICAL": 0}

    def _truncate_address(self, address: str) -> str:
        """Truncate wallet address for privacy"""
        if not address or len(address) < 10:
            return "UNKNOWN"
        return f"{address[:6]}...{address[-4:]}"

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Remove sensitive information from data"""
        sensitive_keys = ["private_key", "password", "secret", "api_key", "signature", "mnemonic"]
        sanitized = {}

        for key, value in data.items():
            if any(sensitive in key.lower() for sensitive in sensitive_keys):
                sanitized[key] = "REDACTED"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_data(value)
            else:
                sanitized[key] = value

        return sanitized

    def _log(self, level: str, message: str, **kwargs):
        """Internal logging method"""
        self.log_counts[level] += 1

        if kwargs:
            kwargs = self._sanitize_data(kwargs)
        corr_id = correlation_id.get()
        if corr_id:
            kwargs.setdefault("correlation_id", corr_id)

        extra = {"extra_fields": kwargs} if kwargs else {}
        log_func = getattr(self.logger, "warning" if level == "WARN" else level.lower())
        log_func(message, extra=extra)

    def debug(self, message: str, **kwargs):
        """Log debug message"""
        self._log("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message"""
        self._log("INFO", message, **kwargs)

    def warn(self, message: str, **kwargs):
        """Log warning message"""
        self._log("WARN", message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message (alias for warn for Python logging compatibility)"""
        self._log("WARN", message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message"""
        self._log("ERROR", message, **kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message"""
        self._log("CRITICAL", message, **kwargs)

    # Vesting-specific logging methods

    def schedule_deployed(self, name: str, address: str, start: int, token: str):
        """Log vesting schedule deployment"""
        self.info(
            f"Vesting contract for {name} deployed",
            schedule=name,
            address=address,
            start_time=start,
            token=token,
        )

    def members_assigned(self, schedule: str, members: list, total_amount: int):
        """Log beneficiary registration on a schedule"""
        self.info(
            f"Members added to {schedule} vesting schedule",
            schedule=schedule,
            members=[self._truncate_address(member) for member in members],
            member_count=len(members),
            total_amount=str(total_amount),
        )

    def tokens_claimed(self, schedule: str, beneficiary: str, amount: int):
        """Log a beneficiary claim"""
        self.info(
            f"Tokens claimed from {schedule}",
            schedule=schedule,
            beneficiary=self._truncate_address(beneficiary),
            amount=str(amount),
        )

    def withdrawal(self, schedule: str, token: str, amount: int):
        """Log an owner sweep"""
        self.warn(
            f"Schedule {schedule} balance withdrawn",
            schedule=schedule,
            token=token,
            amount=str(amount),
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get logger statistics"""
        return {
            "log_counts": self.log_counts.copy(),
            "total_logs": sum(self.log_counts.values()),
        }


class LogContext:
    """
    Context manager for correlation ID tracking

    Usage:
        with LogContext() as ctx:
            logger.info("This log will have a correlation ID")
    """

    def __init__(self, custom_id: str = None):
        self.correlation_id = custom_id or self._generate_correlation_id()

    def _generate_correlation_id(self) -> str:
        """Generate unique correlation ID"""
        timestamp = str(time.time()).encode()
        thread_id = str(threading.get_ident()).encode()
        random_data = os.urandom(8)

        return hashlib.sha256(timestamp + thread_id + random_data).hexdigest()[:16]

    def __enter__(self):
        self.token = correlation_id.set(self.correlation_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        correlation_id.reset(self.token)


# Global logger instance
_global_structured_logger = None


def get_structured_logger(name: str = "clash.operations", log_dir: Optional[str] = None) -> StructuredLogger:
    """
    Get global structured logger instance

    Args:
        name: Logger name
        log_dir: Directory for log files, used on first creation only

    Returns:
        StructuredLogger instance
    """
    global _global_structured_logger
    if _global_structured_logger is None:
        _global_structured_logger = StructuredLogger(name, log_dir=log_dir)
    return _global_structured_logger
