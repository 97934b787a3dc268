"""
Scraper Rate Limiter - Process-wide fixed-interval limiter for LawPhil.

Every outbound request waits until at least `1 / max_rps` seconds have
passed since the previous one was issued, across all threads and
sessions in the process. There are no tokens or bursts: the wait is
max(0, min_interval - elapsed).
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional

from .scraper_config import get_scraper_config

logger = logging.getLogger(__name__)


class ScraperRateLimiter:
    """Fixed-interval rate limiter shared by all fetchers in the process."""

    def __init__(
        self,
        max_rps: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize rate limiter.

        Args:
            max_rps: Requests per second. Defaults to fetcher.max_rps from
                     the scraper config.
            clock: Monotonic clock (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        if max_rps is None:
            max_rps = get_scraper_config()["fetcher"]["max_rps"]
        if max_rps <= 0:
            raise ValueError(f"max_rps must be positive, got {max_rps}")

        self.max_rps = float(max_rps)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request_at: Optional[float] = None

    @property
    def min_interval(self) -> float:
        """Minimum seconds between two requests."""
        return 1.0 / self.max_rps

    def wait(self) -> float:
        """
        Block until the next request may be issued, then record it.

        The lock is held while sleeping so concurrent callers are released
        one interval apart.

        Returns:
            Seconds slept
        """
        with self._lock:
            waited = 0.0
            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                waited = max(0.0, self.min_interval - elapsed)
                if waited > 0:
                    logger.debug(f"Rate limited, waiting {waited:.3f}s")
                    self._sleep(waited)
            self._last_request_at = self._clock()
            return waited

    def get_status(self) -> Dict:
        """Current limiter state."""
        with self._lock:
            last = self._last_request_at
        since_last = None if last is None else self._clock() - last
        return {
            "max_rps": self.max_rps,
            "min_interval": self.min_interval,
            "seconds_since_last_request": since_last,
            "is_allowed": since_last is None or since_last >= self.min_interval,
        }


# Global instance (lazy init)
_rate_limiter = None
_rate_limiter_lock = threading.Lock()


def get_scraper_rate_limiter() -> ScraperRateLimiter:
    """Get the global scraper rate limiter instance."""
    global _rate_limiter
    with _rate_limiter_lock:
        if _rate_limiter is None:
            _rate_limiter = ScraperRateLimiter()
    return _rate_limiter
