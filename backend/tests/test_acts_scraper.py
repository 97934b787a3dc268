"""
Tests for the Acts year-page batch driver.

The fetcher and per-Act processing are mocked; batching runs on real threads.
"""

from unittest.mock import Mock

import pytest

from scrapers.acts_scraper import ActsYearScraper
from scrapers.exceptions import FetchError, NoActsFoundError
from scrapers.fetcher import FetchResult
from scrapers.utils.hashing import compute_content_hash

YEAR_URL = "https://lawphil.net/statutes/acts/act1930/act1930.html"
ACT_BASE = "https://lawphil.net/statutes/acts/act1930"


def year_page(*act_numbers):
    rows = "".join(
        f'<p><a href="act_{n}_1930.html">Act No. {n}</a> December 8, 1930 AN ACT NUMBER {n}</p>'
        for n in act_numbers
    )
    return f"<html><body>{rows}</body></html>"


def make_fetcher(html):
    fetcher = Mock()
    fetcher.fetch_with_retry.return_value = FetchResult(
        url=YEAR_URL, html=html, content_hash=compute_content_hash(html), status_code=200
    )
    return fetcher


@pytest.fixture
def sleep():
    return Mock()


class TestCollectActUrls:
    """Year page link collection."""

    def test_urls_in_page_order(self, sleep):
        """Act URLs are built from the year directory in page order."""
        scraper = ActsYearScraper(process_act=Mock(), fetcher=make_fetcher(year_page(3815, 3816)), sleep=sleep)

        urls = scraper.collect_act_urls(YEAR_URL)

        assert urls == [f"{ACT_BASE}/act_3815_1930.html", f"{ACT_BASE}/act_3816_1930.html"]

    def test_non_year_url_rejected(self, sleep):
        """Only /actYYYY/actYYYY.html pages are accepted."""
        fetcher = make_fetcher(year_page(3815))
        scraper = ActsYearScraper(process_act=Mock(), fetcher=fetcher, sleep=sleep)

        with pytest.raises(ValueError, match="Not an Acts year page"):
            scraper.collect_act_urls(f"{ACT_BASE}/act_3815_1930.html")
        fetcher.fetch_with_retry.assert_not_called()

    def test_empty_year_page(self, sleep):
        """A page listing no Acts raises NoActsFoundError."""
        scraper = ActsYearScraper(
            process_act=Mock(), fetcher=make_fetcher("<html><body><p>Nothing yet</p></body></html>"), sleep=sleep
        )

        with pytest.raises(NoActsFoundError):
            scraper.scrape_year("session-1", YEAR_URL)


class TestScrapeYear:
    """Batched processing."""

    def test_batches_with_delay(self, sleep):
        """Four Acts at concurrency 3 run as two batches with one delay."""
        process_act = Mock(return_value={"units_saved": 5})
        scraper = ActsYearScraper(
            process_act=process_act,
            fetcher=make_fetcher(year_page(1, 2, 3, 4)),
            max_concurrency=3,
            batch_delay=0.5,
            sleep=sleep,
        )

        result = scraper.scrape_year("session-1", YEAR_URL)

        assert process_act.call_count == 4
        assert {c.args[0] for c in process_act.call_args_list} == {"session-1"}
        sleep.assert_called_once_with(0.5)
        assert [s["url"] for s in result.succeeded] == [f"{ACT_BASE}/act_{n}_1930.html" for n in (1, 2, 3, 4)]
        assert result.succeeded[0]["result"] == {"units_saved": 5}

    def test_single_batch_no_delay(self, sleep):
        """No sleep after the last batch."""
        scraper = ActsYearScraper(
            process_act=Mock(), fetcher=make_fetcher(year_page(1, 2)), max_concurrency=3, sleep=sleep
        )

        scraper.scrape_year("session-1", YEAR_URL)

        sleep.assert_not_called()

    def test_failures_collected(self, sleep):
        """A failing Act is recorded and the rest still run."""
        def process_act(session_id, url):
            if "act_2_" in url:
                raise FetchError("HTTP 404: Not Found")
            return {"ok": True}

        scraper = ActsYearScraper(
            process_act=process_act, fetcher=make_fetcher(year_page(1, 2, 3)), max_concurrency=2, sleep=sleep
        )

        result = scraper.scrape_year("session-1", YEAR_URL).to_dict()

        assert result["total_acts"] == 3
        assert result["succeeded_count"] == 2
        assert result["failed"] == [{"url": f"{ACT_BASE}/act_2_1930.html", "error": "HTTP 404: Not Found"}]

    def test_result_objects_summarized(self, sleep):
        """Results exposing to_dict are stored as dicts."""
        outcome = Mock()
        outcome.to_dict.return_value = {"document_id": 7}
        scraper = ActsYearScraper(
            process_act=Mock(return_value=outcome), fetcher=make_fetcher(year_page(1)), sleep=sleep
        )

        result = scraper.scrape_year("session-1", YEAR_URL)

        assert result.succeeded == [{"url": f"{ACT_BASE}/act_1_1930.html", "result": {"document_id": 7}}]
