"""
Shared Pydantic types for scraping params.

- EntryIdList: "CONST-1987-ART3-SEC1,CONST-1987-ART3-SEC2" or a JSON list -> list of ids
- CoercedInt: query-string "50" -> 50
"""

from typing import Annotated, Any, List, Optional

from pydantic import BeforeValidator


def split_entry_ids(v: Any) -> Optional[List[str]]:
    """
    Accept entry ids as a JSON list or a comma-separated string.

    Blank items are dropped; an empty result is None so a required-ids
    validator can reject it.
    """
    if v is None:
        return None
    raw = v.split(',') if isinstance(v, str) else v if isinstance(v, (list, tuple)) else [v]
    ids = [str(item).strip() for item in raw if item is not None and str(item).strip()]
    return ids or None


def coerce_int(v: Any) -> Any:
    """Query-string ints; anything unparseable is left for Pydantic to reject."""
    if v is None or v == '':
        return None
    if isinstance(v, str) and v.strip().lstrip('-').isdigit():
        return int(v)
    return v


EntryIdList = Annotated[Optional[List[str]], BeforeValidator(split_entry_ids)]
CoercedInt = Annotated[Optional[int], BeforeValidator(coerce_int)]
