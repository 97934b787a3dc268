"""
LawPhil Scraping Package

Fetch, parse and persist Philippine legal documents from lawphil.net:
- Rate-limited, allow-listed fetcher with retries
- Structural parsers (1987 Constitution, Acts) plus a flat-text fallback
- Citation normalization and stable entry ids
- Idempotent persistence of raw pages and parsed units
"""

from .exceptions import (
    ScrapingError,
    FetchError,
    HTTPStatusError,
    DisallowedURLError,
    IncompleteHTMLError,
    NoContentParsedError,
    UnknownParserError,
    SessionNotFoundError,
    SessionStateError,
    NoActsFoundError,
    UnknownPageTypeError,
)
from .fetcher import DocumentFetcher, FetchResult, get_canonical_url
from .orchestrator import ScrapingOrchestrator, ProcessResult
from .acts_scraper import ActsYearScraper, YearScrapeResult

__all__ = [
    "ScrapingError",
    "FetchError",
    "HTTPStatusError",
    "DisallowedURLError",
    "IncompleteHTMLError",
    "NoContentParsedError",
    "UnknownParserError",
    "SessionNotFoundError",
    "SessionStateError",
    "NoActsFoundError",
    "UnknownPageTypeError",
    "DocumentFetcher",
    "FetchResult",
    "get_canonical_url",
    "ScrapingOrchestrator",
    "ProcessResult",
    "ActsYearScraper",
    "YearScrapeResult",
]
