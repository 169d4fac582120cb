"""
Turns raw work counters into debounced percentage reports.

Counters such as bytes over the wire can tick far faster than a progress
widget can redraw, so notifications are throttled to one per
``update_interval_ms``. Log lines are cheap and are emitted on every
percentage change.
"""

import math
import time
from typing import Callable, Literal, Optional

import structlog

from ..config.settings import get_settings

logger = structlog.get_logger(__name__)

NotificationSink = Callable[[str, int], None]
LogSink = Callable[[str], None]


class TransferProgress:
    """Progress state for one logical transfer. Not shared across jobs."""

    def __init__(
        self,
        units: Literal["bytes", "files"] = "bytes",
        message_prefix: Optional[str] = None,
        update_interval_ms: Optional[int] = None,
        notification_sink: Optional[NotificationSink] = None,
        log_sink: Optional[LogSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if update_interval_ms is None:
            update_interval_ms = get_settings().progress_update_interval_ms
        self.units = units
        self.message_prefix = message_prefix
        self.update_interval = update_interval_ms / 1000.0
        self.notification_sink = notification_sink
        self.log_sink = log_sink
        self._clock = clock

        self.total_work: Optional[int] = None
        self._notified_percentage: Optional[int] = None
        self._logged_percentage: Optional[int] = None
        self._last_notified_at: Optional[float] = None

    def _message(self, finished_work: int, total_work: int, percentage: int) -> str:
        prefix = f"{self.message_prefix}: " if self.message_prefix else ""
        return f"{prefix}{finished_work}/{total_work} {self.units} ({percentage}%)"

    def _percentage(self, finished_work: int, total_work: Optional[int]) -> Optional[int]:
        if total_work:
            self.total_work = total_work
        if not self.total_work:
            return None
        return math.floor(finished_work / self.total_work * 100)

    def report(self, finished_work: int, total_work: Optional[int] = None) -> None:
        """Report to both sinks. Without a known total nothing is emitted."""
        self.report_to_log(finished_work, total_work)
        self.report_to_notification(finished_work, total_work)

    def report_to_log(self, finished_work: int, total_work: Optional[int] = None) -> None:
        percentage = self._percentage(finished_work, total_work)
        if percentage is None or percentage == self._logged_percentage:
            return
        message = self._message(finished_work, self.total_work, percentage)
        if self.log_sink is not None:
            self.log_sink(message)
        else:
            logger.info("Transfer progress", progress=message)
        self._logged_percentage = percentage

    def report_to_notification(self, finished_work: int, total_work: Optional[int] = None) -> None:
        if self.notification_sink is None:
            return
        percentage = self._percentage(finished_work, total_work)
        if percentage is None or percentage == self._notified_percentage:
            return

        now = self._clock()
        if self._last_notified_at is not None and now - self._last_notified_at < self.update_interval:
            return

        increment = percentage - (self._notified_percentage or 0)
        self.notification_sink(self._message(finished_work, self.total_work, percentage), increment)
        self._notified_percentage = percentage
        self._last_notified_at = now
