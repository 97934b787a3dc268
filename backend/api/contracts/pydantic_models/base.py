"""
Base Pydantic model for all API param schemas.

Key features:
- frozen=True: Immutable after validation
- str_strip_whitespace=True: Whitespace stripped at the boundary
- populate_by_name=True: Accept both alias and field name
- extra='ignore': Ignore undeclared fields (safe)
"""

from pydantic import BaseModel, ConfigDict


class BaseParamsModel(BaseModel):
    """
    Base model for all API param schemas.

    Request bodies are validated once at the route boundary; services only
    ever see the frozen, normalized model (or its model_dump()).
    """
    model_config = ConfigDict(
        frozen=True,  # Immutable after normalization
        str_strip_whitespace=True,  # Strip whitespace from strings
        populate_by_name=True,  # Accept both alias and field name
        extra='ignore',  # Ignore undeclared fields
    )
