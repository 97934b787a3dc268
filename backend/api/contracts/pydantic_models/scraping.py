"""
Pydantic models for /scraping/* endpoints.

Endpoints:
- scraping/start
- scraping/process
- scraping/acts-year
- scraping/sessions
- scraping/release-entries
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from .base import BaseParamsModel
from .types import CoercedInt, EntryIdList


class StartSessionParams(BaseParamsModel):
    """Body for POST /scraping/start."""

    category: str = Field(
        default="constitution_1987",
        min_length=1,
        description="Corpus category (constitution_1987, acts)"
    )
    root_url: str = Field(
        min_length=1,
        validation_alias=AliasChoices("root_url", "url"),
        description="Root URL of the scrape"
    )
    operator: str = Field(
        default="system",
        description="Who started the session"
    )


class ProcessUrlParams(BaseParamsModel):
    """Body for POST /scraping/process."""

    session_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("session_id", "sessionId"),
        description="Running session id"
    )
    url: str = Field(min_length=1, description="Page to fetch and parse")
    parser_type: str = Field(
        default="constitution_1987",
        validation_alias=AliasChoices("parser_type", "parserType"),
        description="Parser key (constitution_1987, acts)"
    )


class ActsYearParams(BaseParamsModel):
    """Body for POST /scraping/acts-year."""

    session_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("session_id", "sessionId"),
        description="Running session id"
    )
    url: str = Field(min_length=1, description="Year index page, e.g. .../act1930/act1930.html")


class ListSessionsParams(BaseParamsModel):
    """Query params for GET /scraping/sessions."""

    limit: CoercedInt = Field(
        default=50,
        description="Max sessions to return"
    )


class ReleaseEntriesParams(BaseParamsModel):
    """Body for POST /scraping/release-entries."""

    entry_ids: EntryIdList = Field(
        default=None,
        validation_alias=AliasChoices("entry_ids", "entryIds"),
        validate_default=True,
        description="Entry ids to publish"
    )

    @field_validator('entry_ids')
    @classmethod
    def require_ids(cls, v: Optional[list]):
        if not v:
            raise ValueError('entry_ids must be a non-empty list')
        return v
