"""
API package - request validation and HTTP middleware.

This package provides:
- Pydantic request models (api.contracts.pydantic_models)
- Global middleware (request_id, request_logging, error_envelope)
"""
