"""
Contract package.

Request bodies and query strings are validated with the Pydantic models in
api.contracts.pydantic_models; failures become INVALID_PARAMS envelopes.
"""

from .validate import parse_params, validation_error_response

__all__ = [
    'parse_params',
    'validation_error_response',
]
