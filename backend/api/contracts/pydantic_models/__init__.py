"""
Pydantic models for API param validation.

Usage:
    from api.contracts.pydantic_models.scraping import ProcessUrlParams

    params = ProcessUrlParams(**request.get_json(silent=True) or {})
    orchestrator.process_url(params.session_id, params.url, params.parser_type)
"""

from .base import BaseParamsModel
from .scraping import (
    StartSessionParams,
    ProcessUrlParams,
    ActsYearParams,
    ListSessionsParams,
    ReleaseEntriesParams,
)

__all__ = [
    'BaseParamsModel',
    'StartSessionParams',
    'ProcessUrlParams',
    'ActsYearParams',
    'ListSessionsParams',
    'ReleaseEntriesParams',
]
