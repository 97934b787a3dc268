"""
Acts Year Scraper - processes every Act listed on a LawPhil year page.

Flow:
1. Validate the year-page URL (/actYYYY/actYYYY.html)
2. Fetch it and collect the Act URLs
3. Process the Acts in batches of `max_concurrency`, one thread per Act,
   sleeping `batch_delay` seconds between batches

Per-Act failures are logged and collected; they never abort the year.
Request pacing still comes from the process-wide rate limiter, so the
thread pool only overlaps parsing and persistence.

Usage:
    scraper = ActsYearScraper(process_act=lambda sid, url: ...)
    result = scraper.scrape_year(session_id, "https://lawphil.net/statutes/acts/act1930/act1930.html")
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .exceptions import NoActsFoundError
from .fetcher import DocumentFetcher, get_canonical_url
from .parsers.acts import ActsParser, is_year_page
from .scraper_config import get_scraper_config

logger = logging.getLogger(__name__)


@dataclass
class YearScrapeResult:
    """Outcome of one year page."""
    year_url: str
    act_urls: List[str] = field(default_factory=list)
    succeeded: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "year_url": self.year_url,
            "total_acts": len(self.act_urls),
            "succeeded_count": len(self.succeeded),
            "failed_count": len(self.failed),
            "act_urls": self.act_urls,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


class ActsYearScraper:
    """Batch driver for Acts year index pages."""

    def __init__(
        self,
        process_act: Callable[[str, str], Any],
        fetcher: Optional[DocumentFetcher] = None,
        parser: Optional[ActsParser] = None,
        max_concurrency: Optional[int] = None,
        batch_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            process_act: Called as process_act(session_id, act_url) for each
                         Act; the return value is recorded on success
            fetcher: Fetcher for the year page
            parser: ActsParser used to read the year page
            max_concurrency: Acts per batch (config acts.max_concurrency)
            batch_delay: Seconds between batches (config acts.batch_delay_seconds)
            sleep: Sleep function (injectable for tests)
        """
        acts_config = get_scraper_config().get("acts", {})
        self.process_act = process_act
        self._fetcher = fetcher
        self.parser = parser or ActsParser()
        self.max_concurrency = max(1, int(max_concurrency or acts_config.get("max_concurrency", 3)))
        self.batch_delay = float(
            batch_delay if batch_delay is not None else acts_config.get("batch_delay_seconds", 1.0)
        )
        self._sleep = sleep

    @property
    def fetcher(self) -> DocumentFetcher:
        if self._fetcher is None:
            self._fetcher = DocumentFetcher()
        return self._fetcher

    def collect_act_urls(self, year_url: str) -> List[str]:
        """Fetch a year page and return its Act URLs in page order."""
        canonical_url = get_canonical_url(year_url)
        if not is_year_page(canonical_url):
            raise ValueError(f"Not an Acts year page: {year_url}")

        fetched = self.fetcher.fetch_with_retry(canonical_url)
        links = self.parser.extract_act_links(canonical_url, fetched.html)

        urls = list(dict.fromkeys(link.url for link in links))
        if not urls:
            raise NoActsFoundError(f"No Acts found on {canonical_url}")
        return urls

    def scrape_year(self, session_id: str, year_url: str) -> YearScrapeResult:
        """
        Process every Act of a year page.

        Raises:
            ValueError: year_url is not a year index page
            NoActsFoundError: the page lists no Acts
        """
        act_urls = self.collect_act_urls(year_url)
        result = YearScrapeResult(year_url=get_canonical_url(year_url), act_urls=act_urls)
        logger.info(f"Processing {len(act_urls)} Acts from {result.year_url} in batches of {self.max_concurrency}")

        batches = [
            act_urls[i:i + self.max_concurrency]
            for i in range(0, len(act_urls), self.max_concurrency)
        ]
        for batch_number, batch in enumerate(batches, start=1):
            with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:
                futures = [(url, executor.submit(self.process_act, session_id, url)) for url in batch]

            for url, future in futures:
                try:
                    outcome = future.result()
                    result.succeeded.append({"url": url, "result": _summarize(outcome)})
                except Exception as e:
                    logger.error(f"Failed to process Act {url}: {e}")
                    result.failed.append({"url": url, "error": str(e)})

            logger.info(
                f"Batch {batch_number}/{len(batches)} done: "
                f"{len(result.succeeded)} succeeded, {len(result.failed)} failed so far"
            )
            if batch_number < len(batches) and self.batch_delay > 0:
                self._sleep(self.batch_delay)

        return result


def _summarize(outcome: Any) -> Any:
    to_dict = getattr(outcome, "to_dict", None)
    return to_dict() if callable(to_dict) else outcome
