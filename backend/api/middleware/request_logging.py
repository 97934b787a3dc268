"""
Request logging middleware - one access-log line per scraping API call.

The scraping API is an operator control surface with low traffic, so every
/api/scraping request is logged. Set REQUEST_LOG_ENABLED=false to turn the
log off. Server errors (5xx) log at WARNING.
"""

import logging
import os
import time

from flask import Flask, g, request

from .request_id import get_request_id


logger = logging.getLogger("api.request")

LOGGED_PREFIX = "/api/scraping"


def setup_request_logging_middleware(app: Flask) -> None:
    """Register the timing and access-log hooks (no-op when disabled)."""
    if os.environ.get("REQUEST_LOG_ENABLED", "true").lower() != "true":
        return

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not request.path.startswith(LOGGED_PREFIX):
            return response

        duration_ms = None
        if hasattr(g, "request_start"):
            duration_ms = round((time.perf_counter() - g.request_start) * 1000, 2)

        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "api_request %s %s status=%s duration_ms=%s session_id=%s request_id=%s",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            (request.view_args or {}).get("session_id"),
            get_request_id(),
        )
        return response
