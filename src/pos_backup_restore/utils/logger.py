"""
Logging for POS export, import and reset runs.

Every run logs to stdout; a rotating file can be added for an audit trail of
what a reset deleted or an import wrote. Store calls are logged at DEBUG
through StoreCallLogger so they only show up with ``--debug`` or in the file.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

DEFAULT_LOGGER = "pos_backup_restore"

# Console output for operators; the detailed form also goes to log files
OPERATOR_FORMAT = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", "%H:%M:%S")
DETAILED_FORMAT = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
    "%Y-%m-%d %H:%M:%S"
)


def _console_handler(verbose: bool, debug: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(DETAILED_FORMAT if (verbose or debug) else OPERATOR_FORMAT)
    handler.setLevel(logging.DEBUG if debug else logging.INFO)
    return handler


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(DETAILED_FORMAT)
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logger(
    name: str = DEFAULT_LOGGER,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_max_size: int = 10485760,  # 10MB
    log_backup_count: int = 5,
    verbose: bool = False,
    debug: bool = False
) -> logging.Logger:
    """
    Configure the logger of one manager (backup, restore or reset).

    Calling it again for the same name replaces the handlers, so a CLI run
    never logs a line twice.

    Args:
        name: Logger name
        log_level: Level name used unless ``debug`` is set
        log_file: Optional rotating log file
        log_max_size: Bytes per log file before rotation
        log_backup_count: Rotated files to keep
        verbose: Detailed console format
        debug: DEBUG level and detailed console format

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO))

    logger.addHandler(_console_handler(verbose, debug))
    if log_file:
        logger.addHandler(_file_handler(log_file, log_max_size, log_backup_count))

    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER) -> logging.Logger:
    """Logger by name, configured with defaults on first use."""
    logger = logging.getLogger(name)
    return logger if logger.handlers else setup_logger(name)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StoreCallLogger:
    """
    Structured logging for document store calls.

    Every read, batch commit and delete issued against the store goes through
    one of these methods so a run can be reconstructed from the log file.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("pos_store")

    def log_request(self, operation: str, path: str, **kwargs) -> None:
        """Log a store request before it is sent."""
        self.logger.debug(
            f"Store request: {operation} {path}",
            extra={
                "event_type": "store_request",
                "operation": operation,
                "path": path,
                "timestamp": _now(),
                **kwargs
            }
        )

    def log_response(self, operation: str, path: str, response_time: float,
                     count: Optional[int] = None) -> None:
        """
        Log a completed store call.

        Args:
            operation: Store operation name
            path: Collection or document path
            response_time: Call duration in seconds
            count: Documents read or written, when meaningful
        """
        message = f"Store response: {operation} {path} ({response_time:.2f}s)"
        if count is not None:
            message += f" - {count} documents"

        self.logger.debug(
            message,
            extra={
                "event_type": "store_response",
                "operation": operation,
                "path": path,
                "response_time": response_time,
                "count": count,
                "timestamp": _now(),
            }
        )

    def log_rate_limit(self, wait_time: float, current_rate: float, limit: float) -> None:
        """Log a pause imposed by the rate limiter."""
        if wait_time > 0:
            self.logger.info(
                f"Rate limit: waiting {wait_time:.2f}s (rate: {current_rate:.2f}/{limit})",
                extra={
                    "event_type": "rate_limit",
                    "wait_time": wait_time,
                    "current_rate": current_rate,
                    "limit": limit,
                    "timestamp": _now(),
                }
            )

    def log_error(self, error: Exception, context: str = "", **kwargs) -> None:
        """
        Log an error with context.

        Args:
            error: Exception that occurred
            context: Additional context about the error
            **kwargs: Additional error data
        """
        self.logger.error(
            f"Error {context}: {error}",
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "context": context,
                "timestamp": _now(),
                **kwargs
            },
            exc_info=True
        )
