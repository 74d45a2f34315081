"""API call budget tracking for the store's rate limit."""

import logging
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)

API_CALL_LIMIT_HEADER = "X-Shopify-Shop-Api-Call-Limit"

# Length of the store's refill window in seconds
TIMER_RESET: float = 10.0

# Throttle once fewer permits than this remain
PERMIT_LOWER_LIMIT: int = 3


@dataclass
class ApiBudget:
    """Snapshot of the API permit window."""

    used: Optional[int] = None
    """Calls used in the current window (None until first observed)"""

    total: Optional[int] = None
    """Calls allowed per window (None until first observed)"""

    window_start: Optional[float] = None
    """Clock reading when the current window was first observed"""


class BudgetTracker:
    """Tracks the API call budget reported by response headers.

    One instance is shared by every component that talks to the store.
    The tracker never raises; it only delays callers in
    :meth:`wait_if_needed` when the budget is nearly exhausted.

    Examples:
        >>> tracker = BudgetTracker()
        >>> tracker.record_response({API_CALL_LIMIT_HEADER: "38/40"})
        >>> tracker.remaining_permits()
        2
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the tracker.

        Args:
            clock: Monotonic clock returning seconds
            sleep: Function used to block for a number of seconds
        """
        self.budget = ApiBudget()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    def record_response(self, headers: Mapping[str, str]) -> None:
        """Update the budget from a response's headers.

        Args:
            headers: Response headers (looked up case-insensitively)
        """
        raw = httpx.Headers(headers).get(API_CALL_LIMIT_HEADER)
        if raw is None:
            return

        try:
            used_str, total_str = raw.split("/")
            used, total = int(used_str), int(total_str)
        except ValueError:
            logger.warning(f"Ignoring malformed {API_CALL_LIMIT_HEADER}: {raw!r}")
            return

        with self._lock:
            self.budget.used = used
            self.budget.total = total
            if self.budget.window_start is None:
                self.budget.window_start = self._clock()
        logger.debug(f"API budget: {used}/{total}")

    def remaining_permits(self) -> int:
        """Permits left in the current window (0 when never observed)."""
        return (self.budget.total or 0) - (self.budget.used or 0)

    def elapsed_since_window(self) -> float:
        """Seconds since the current window started (0 when unset)."""
        if self.budget.window_start is None:
            return 0.0
        return self._clock() - self.budget.window_start

    def should_throttle(self) -> bool:
        """Check whether the next call should wait for the window to refill.

        Never throttles before the first rate-limit header has been seen,
        nor after a reset until a new response opens the next window.
        """
        if self.budget.total is None or self.budget.window_start is None:
            return False
        return (
            self.remaining_permits() < PERMIT_LOWER_LIMIT
            and self.elapsed_since_window() <= TIMER_RESET
        )

    def wait_if_needed(self) -> float:
        """Block until the window refills if the budget is nearly spent.

        Returns:
            Seconds slept (0.0 when no throttling was necessary)
        """
        with self._lock:
            if not self.should_throttle():
                return 0.0
            delay = max(0.0, TIMER_RESET - self.elapsed_since_window())
            logger.debug(f"Throttling for {delay:.2f}s ({self.usage()})")
            self._sleep(delay)
            self.budget.window_start = None
            return delay

    def usage(self) -> str:
        """Human-readable usage, e.g. ``[API Limit: 38/40]``."""
        used = "??" if self.budget.used is None else self.budget.used
        total = "??" if self.budget.total is None else self.budget.total
        return f"[API Limit: {used}/{total}]"
