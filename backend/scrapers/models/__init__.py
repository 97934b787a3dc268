"""Scraping SQLAlchemy Models."""

from .scraping_session import ScrapingSession, SESSION_STATUSES
from .scraped_document import ScrapedDocument, PARSE_STATUSES, FAILED_MARKER_HASH

__all__ = [
    "ScrapingSession",
    "SESSION_STATUSES",
    "ScrapedDocument",
    "PARSE_STATUSES",
    "FAILED_MARKER_HASH",
]
