"""
Request ID middleware - X-Request-ID correlation for API calls.

A client-supplied X-Request-ID is kept when it is a plausible token
(letters, digits, '-', '_', '.', at most 128 chars); anything else is
replaced with a fresh UUID. The id is stored on g.request_id, echoed in
the response header and copied into every error envelope.
"""

import re
import uuid
from typing import Optional

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = 'X-Request-ID'
_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._-]{1,128}$')


def _incoming_request_id() -> Optional[str]:
    value = (request.headers.get(REQUEST_ID_HEADER) or '').strip()
    return value if _VALID_REQUEST_ID.match(value) else None


def setup_request_id_middleware(app: Flask) -> None:
    """Register before/after hooks that assign and echo the request id."""

    @app.before_request
    def inject_request_id():
        g.request_id = _incoming_request_id() or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        request_id = get_request_id()
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id() -> Optional[str]:
    """Current request id, or None outside a request."""
    if not has_request_context():
        return None
    return getattr(g, 'request_id', None)
