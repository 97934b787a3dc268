"""
LawPhil Document Fetcher - rate-limited, retrying HTTP retrieval.

Every request goes through the process-wide ScraperRateLimiter. Failed
fetches are retried with exponential backoff
(retry_delay * 2 ** (attempt - 1)); once attempts are exhausted the last
error is re-raised to the caller.

Usage:
    from scrapers.fetcher import DocumentFetcher

    fetcher = DocumentFetcher()
    result = fetcher.fetch_with_retry("https://lawphil.net/consti/cons1987.html")
    print(result.content_hash, len(result.html))
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import urlsplit, urlunsplit

import requests

from .exceptions import DisallowedURLError, FetchError, HTTPStatusError
from .rate_limiter import ScraperRateLimiter, get_scraper_rate_limiter
from .scraper_config import get_scraper_config
from .utils.hashing import compute_content_hash

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """A fetched page."""
    url: str
    html: str
    content_hash: str
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    fetch_time_ms: float = 0.0
    retry_count: int = 0


def get_canonical_url(url: str) -> str:
    """
    Canonical form of a URL used as the dedup key.

    Drops the fragment and lowercases scheme and host. Strings that do not
    parse as absolute URLs are returned unchanged.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path or "/",
        parts.query,
        "",
    ))


def should_fetch(url: str, allowed_domains: Iterable[str]) -> bool:
    """True if the URL host is one of the allowed domains or a subdomain."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    for domain in allowed_domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


class DocumentFetcher:
    """
    HTTP fetcher for LawPhil pages.

    Features:
    - Process-wide fixed-interval rate limiting
    - Retry with exponential backoff
    - SHA-256 content hashing
    - Domain allow-list in place of robots.txt
    """

    def __init__(
        self,
        rate_limiter: Optional[ScraperRateLimiter] = None,
        session: Optional[requests.Session] = None,
        config: Optional[Dict[str, Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize fetcher.

        Args:
            rate_limiter: Limiter instance. Defaults to the global one.
            session: requests.Session to use (a new one if omitted)
            config: The `fetcher` section of the scraper config
            sleep: Sleep function used between retries
        """
        config = config or get_scraper_config()["fetcher"]
        self.timeout = config.get("timeout_seconds", 30)
        self.retry_attempts = max(1, int(config.get("retry_attempts", 3)))
        self.retry_delay = float(config.get("retry_delay_seconds", 1.0))
        self.user_agent = config.get("user_agent", "LawEntryBot/1.0 (contact@example.com)")
        self.allowed_domains = list(config.get("allowed_domains", ["lawphil.net"]))

        self._rate_limiter = rate_limiter or get_scraper_rate_limiter()
        self._sleep = sleep
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        })

    def should_fetch(self, url: str) -> bool:
        """Check the URL against the allow-list."""
        return should_fetch(url, self.allowed_domains)

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single page.

        Raises:
            DisallowedURLError: URL is outside the allowed domains
            HTTPStatusError: Non-2xx response
            FetchError: Connection error or timeout
        """
        if not self.should_fetch(url):
            raise DisallowedURLError(f"URL not in allowed domains {self.allowed_domains}: {url}")

        self._rate_limiter.wait()

        logger.info(f"Fetching {url}")
        start = time.time()
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise HTTPStatusError(response.status_code, response.reason, url)

        html = response.text
        fetch_time_ms = round((time.time() - start) * 1000, 2)
        logger.info(f"Fetched {url} ({fetch_time_ms}ms, {len(html)} chars)")

        return FetchResult(
            url=url,
            html=html,
            content_hash=compute_content_hash(html),
            status_code=response.status_code,
            headers=dict(response.headers or {}),
            fetch_time_ms=fetch_time_ms,
        )

    def fetch_with_retry(self, url: str) -> FetchResult:
        """
        Fetch with bounded retries.

        Retries FetchError (including HTTP status errors). The last error is
        re-raised once all attempts fail.
        """
        last_error: Optional[FetchError] = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                result = self.fetch(url)
                result.retry_count = attempt - 1
                return result
            except FetchError as e:
                last_error = e
                if attempt < self.retry_attempts:
                    delay = self.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Fetch attempt {attempt}/{self.retry_attempts} failed for {url}: {e}. "
                        f"Retrying in {delay}s"
                    )
                    self._sleep(delay)

        logger.error(f"Fetch failed after {self.retry_attempts} attempts: {url}: {last_error}")
        raise last_error
