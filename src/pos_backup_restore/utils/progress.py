"""
Per-run progress reporting.

A ProgressSink is created for one export, import or reset run and thrown away
afterwards. It forwards human-readable status strings to the caller's
callback, mirrors them to the log, and keeps the counters and timing of that
run only.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

ProgressCallback = Callable[[str], None]


class ProgressSink:
    """
    Progress and metrics for a single run.

    Args:
        operation: Name of the run, used in log lines
        callback: Receives every progress message (optional)
        logger: Logger that mirrors the messages
    """

    def __init__(
        self,
        operation: str,
        callback: Optional[ProgressCallback] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.operation = operation
        self.callback = callback
        self.logger = logger or logging.getLogger(__name__)
        self.counters: Dict[str, int] = {}
        self.messages: List[str] = []
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def start(self, message: Optional[str] = None) -> None:
        self.start_time = time.monotonic()
        self.logger.info(f"Starting {self.operation}")
        if message:
            self.report(message)

    def report(self, message: str) -> None:
        """Send a status string to the caller and the log."""
        self.messages.append(message)
        self.logger.info(message)
        if self.callback:
            self.callback(message)

    def increment(self, counter: str, amount: int = 1) -> int:
        self.counters[counter] = self.counters.get(counter, 0) + amount
        return self.counters[counter]

    def finish(self, message: Optional[str] = None) -> None:
        """Report the final message and log a summary with duration."""
        if message:
            self.report(message)
        self.end_time = time.monotonic()

        summary = ", ".join(f"{name}={value}" for name, value in sorted(self.counters.items()))
        self.logger.info(
            f"Completed {self.operation} in {self.duration:.2f}s"
            + (f" ({summary})" if summary else "")
        )

    def fail(self, error: Exception) -> None:
        self.end_time = time.monotonic()
        self.logger.error(f"{self.operation} failed after {self.duration:.2f}s: {error}")

    @property
    def duration(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.monotonic()
        return end - self.start_time
