"""
Structured logging system for fleet-cleanup.

Provides centralized logging with console and optional file output,
runtime level changes, and metrics tracking for a cleanup pass.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_level(level: str) -> int:
    name = level.strip().upper()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level '{level}' (expected one of: {', '.join(lvl.lower() for lvl in LEVELS)})")
    return getattr(logging, name)


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for a single cleanup pass.
    """

    def __init__(
        self,
        name: str = "fleet-cleanup",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_parse_level(level))
        self.logger.handlers.clear()  # Remove existing handlers
        self._console_handler: Optional[logging.Handler] = None

        self.metrics = {
            "store_requests": 0,
            "units_scanned": 0,
            "jobs_loaded": 0,
            "units_obsolete": 0,
            "units_removed": 0,
            "errors_by_type": {},
        }

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(_parse_level(level))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)
            self._console_handler = console_handler

        if enable_file:
            self.add_file_handler(log_dir)

    def add_file_handler(self, log_dir: Optional[Path] = None) -> Path:
        """
        Start writing log records to a daily file.

        Args:
            log_dir: Directory for log files (default: logs/)

        Returns:
            Path of the log file
        """
        if log_dir is None:
            log_dir = Path("logs")
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f"fleet-cleanup_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        self.logger.addHandler(file_handler)
        return log_file

    def set_level(self, level: str) -> None:
        """
        Change the minimum severity for this logger.

        Raises:
            ValueError: If level is not a known level name
        """
        value = _parse_level(level)
        self.logger.setLevel(value)
        if self._console_handler is not None:
            self._console_handler.setLevel(value)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_store_request(self):
        """Increment store request counter."""
        self.metrics["store_requests"] += 1

    def record_inventory(self, units: int, jobs: int):
        """Record the size of the loaded unit and job inventories."""
        self.metrics["units_scanned"] += units
        self.metrics["jobs_loaded"] += jobs

    def record_obsolete(self, removed: bool = False):
        """Record an obsolete unit, and whether it was actually removed."""
        self.metrics["units_obsolete"] += 1
        if removed:
            self.metrics["units_removed"] += 1

    def record_error(self, error_type: str):
        """Record a failure by error type."""
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return a copy of the current metrics."""
        metrics_copy = self.metrics.copy()
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.debug("=== Cleanup Metrics ===")
        self.debug(f"Store requests: {metrics['store_requests']}")
        self.debug(f"Units scanned: {metrics['units_scanned']}, jobs loaded: {metrics['jobs_loaded']}")
        self.debug(f"Obsolete units: {metrics['units_obsolete']}, removed: {metrics['units_removed']}")

        if metrics["errors_by_type"]:
            self.debug("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.debug(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "fleet-cleanup",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
