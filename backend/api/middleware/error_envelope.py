"""
Error envelope middleware - one error shape for every API failure.

{
    "error": {
        "code": "SESSION_NOT_FOUND",
        "message": "Session not found: 1b4e...",
        "requestId": "uuid",
        "field": "session_id",        # optional
        "details": {...},             # optional
        "hint": "..."                 # optional
    }
}
"""

import logging
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .request_id import REQUEST_ID_HEADER, get_request_id


logger = logging.getLogger('api.middleware.error')


# Error codes reference
ERROR_CODES = {
    # Client errors (4xx)
    "BAD_REQUEST": 400,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "CONFLICT": 409,
    "UNPROCESSABLE_ENTITY": 422,

    # Contract errors
    "INVALID_PARAMS": 400,

    # Scraping errors
    "SESSION_NOT_FOUND": 404,
    "SESSION_NOT_RUNNING": 409,
    "CONTENT_NOT_PARSED": 422,
    "PROCESSING_FAILED": 500,
    "GENERATION_FAILED": 500,

    # Server errors (5xx)
    "INTERNAL_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}


def _envelope(code: str, message: str, **extra):
    request_id = get_request_id()
    error = {"code": code, "message": message, "requestId": request_id}
    error.update({k: v for k, v in extra.items() if v})

    response = jsonify({"error": error})
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


def setup_error_handlers(app: Flask) -> None:
    """
    Register envelope handlers for HTTP exceptions and unhandled errors.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Method Not Allowed" -> "METHOD_NOT_ALLOWED"
        code = error.name.upper().replace(' ', '_')
        return _envelope(code, error.description), error.code

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": get_request_id(),
                "error_type": type(error).__name__,
            }
        )
        return _envelope("INTERNAL_ERROR", "An unexpected error occurred"), 500


def make_error_response(
    code: str,
    message: str,
    status_code: int = None,
    field: str = None,
    details: dict = None,
    hint: str = None,
):
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "SESSION_NOT_FOUND")
        message: Human-readable error message
        status_code: HTTP status code (defaults from ERROR_CODES, else 500)
        field: Optional field name that caused the error
        details: Optional additional details dict
        hint: Optional hint for fixing the error

    Returns:
        Tuple of (response, status_code)
    """
    if status_code is None:
        status_code = ERROR_CODES.get(code, 500)
    return _envelope(code, message, field=field, details=details, hint=hint), status_code
