"""Exceptions raised by the scraping pipeline."""


class ScrapingError(Exception):
    """Base exception for scraping pipeline errors."""
    pass


class FetchError(ScrapingError):
    """Network-level fetch failure (connection, timeout, ...)."""
    pass


class HTTPStatusError(FetchError):
    """Non-2xx HTTP response."""

    def __init__(self, status_code: int, reason: str, url: str):
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"HTTP {status_code}: {reason}")


class DisallowedURLError(ScrapingError):
    """URL is outside the allowed source domains."""
    pass


class IncompleteHTMLError(ScrapingError):
    """Fetched page is a block page, frameset or redirect stub."""
    pass


class NoContentParsedError(ScrapingError):
    """Parsing (including fallback) produced no units."""
    pass


class UnknownParserError(ScrapingError):
    """No parser registered for the requested key."""
    pass


class SessionNotFoundError(ScrapingError):
    """Scraping session does not exist."""
    pass


class SessionStateError(ScrapingError):
    """Illegal session status transition."""
    pass


class NoActsFoundError(ScrapingError):
    """A year index page listed no acts."""
    pass


class UnknownPageTypeError(ScrapingError, ValueError):
    """URL matches neither an acts year index nor an individual act page."""
    pass
