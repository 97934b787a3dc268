"""
Canonical citations, unit URL fragments and KB entry ids.

Everything here is a pure function of unit metadata, so re-parsing
byte-identical HTML always yields the same citations and ids.

Constitution:
    1987 Constitution, PREAMBLE
    1987 Constitution, ORDINANCE
    1987 Constitution, Article III, Bill of Rights
    1987 Constitution, Article III, Bill of Rights, Section 1
    1987 Constitution, Article IX-B, Constitutional Commissions, Section 1

Acts:
    Act No. 3815, BOOK ONE, Section 2
    Act No. 3815
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .utils.numerals import heading_number, roman_to_int, to_roman

CONSTITUTION_PREFIX = "1987 Constitution"
ACT_PAGE_TYPES = ("act_content", "act_link")
STRUCTURAL_CONTEXT_TYPES = ("book", "title", "chapter")
CONTEXT_FRAGMENT_PREFIXES = {"book": "book", "title": "title", "chapter": "chap"}

__all__ = [
    "NormalizedUnit",
    "normalize_unit",
    "unit_fragment",
    "generate_entry_id",
    "entry_type",
    "is_act_unit",
    "to_roman",
    "roman_to_int",
]


@dataclass
class NormalizedUnit:
    """Citation title, body and the persisted "title\\nbody" text."""
    title: str
    body: str
    header_plus_body: str


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _has_section(section_number: Any) -> bool:
    return section_number not in (None, "", 0, "0")


def is_act_unit(metadata: Dict[str, Any]) -> bool:
    return metadata.get("page_type") in ACT_PAGE_TYPES


def is_ordinance(metadata: Dict[str, Any]) -> bool:
    topics = [str(t).lower() for t in metadata.get("topics") or []]
    if "ordinance" in topics or metadata.get("ordinance"):
        return True
    if metadata.get("article_number"):
        return False
    return bool(re.search(r"\bordinance\b", metadata.get("title") or "", re.IGNORECASE))


def _article_title(metadata: Dict[str, Any]) -> str:
    """Article title, falling back to metadata.title ("<ARTICLE TITLE> - Section N")."""
    if "article_title" in metadata:
        return (metadata.get("article_title") or "").strip()
    title = metadata.get("title")
    if not isinstance(title, str) or not title:
        return ""
    match = re.match(r"^(.+?)\s*-\s*Section\s+\d+", title, re.IGNORECASE)
    if match:
        return match.group(1).strip()
    if re.match(r"^\s*-\s*Section\s+\d+", title, re.IGNORECASE):
        return ""
    return title.strip()


def _strip_leading_heading(body: str, label: str, number: Any) -> str:
    pattern = rf"^\s*[\"“']?{label}\s+{re.escape(str(number))}[A-Za-z]?\.?\s*"
    return re.sub(pattern, "", body, count=1, flags=re.IGNORECASE)


def _normalized(title: str, body: str) -> NormalizedUnit:
    return NormalizedUnit(title=title, body=body, header_plus_body=f"{title}\n{body}")


def _structural_context(metadata: Dict[str, Any]) -> List[Dict[str, str]]:
    return [
        c for c in metadata.get("full_context") or []
        if c.get("type") in STRUCTURAL_CONTEXT_TYPES and c.get("name")
    ]


def _act_context(metadata: Dict[str, Any]) -> str:
    return " - ".join(c["name"] for c in _structural_context(metadata))


def _context_fragment(metadata: Dict[str, Any]) -> str:
    """
    BOOK / TITLE / CHAPTER path as a fragment prefix ("book1-title2-chap3").

    Heading numbers in words or Roman numerals are decoded; anything else
    is kept as lowercase alphanumerics.
    """
    parts = []
    for context in _structural_context(metadata):
        _, _, identifier = context["name"].strip().partition(" ")
        number = heading_number(identifier)
        label = str(number) if number is not None else re.sub(r"[^a-z0-9]", "", identifier.lower())
        parts.append(f"{CONTEXT_FRAGMENT_PREFIXES[context['type']]}{label}")
    return "-".join(parts)


def _act_unit_fragment(metadata: Dict[str, Any]) -> str:
    prefix = "art" if metadata.get("section_type") == "article" else "sec"
    fragment = f"{prefix}{metadata.get('section_number')}"
    context = _context_fragment(metadata)
    return f"{context}-{fragment}" if context else fragment


def _normalize_act(metadata: Dict[str, Any], body: str) -> Optional[NormalizedUnit]:
    act_number = metadata.get("act_number")
    if not act_number:
        return None

    base = f"Act No. {act_number}"
    if metadata.get("page_type") == "act_link":
        return _normalized(base, body)

    number = metadata.get("section_number")
    if not _has_section(number):
        return _normalized(base, body)

    label = "Article" if metadata.get("section_type") == "article" else "Section"
    context = _act_context(metadata)
    title = f"{base}, {context}, {label} {number}" if context else f"{base}, {label} {number}"
    return _normalized(title, _strip_leading_heading(body, label, number).strip() or body)


def normalize_unit(unit) -> Optional[NormalizedUnit]:
    """
    Canonical citation for a parsed unit.

    Args:
        unit: LegalUnit (or anything with extracted_text and metadata)

    Returns:
        NormalizedUnit, or None when the body is empty or the unit has no
        article/section address.
    """
    metadata = unit.metadata or {}
    body = (unit.extracted_text or "").strip()
    if not body:
        return None

    if is_act_unit(metadata):
        return _normalize_act(metadata, body)

    if metadata.get("preamble"):
        return _normalized(f"{CONSTITUTION_PREFIX}, PREAMBLE", body)

    if is_ordinance(metadata):
        return _normalized(f"{CONSTITUTION_PREFIX}, ORDINANCE", body)

    article_number = _as_int(metadata.get("article_number"))
    section_number = metadata.get("section_number")
    if not article_number:
        return None

    roman = to_roman(article_number)
    if metadata.get("subpart"):
        roman = f"{roman}-{metadata['subpart']}"
    article_title = _article_title(metadata)
    heading = f"{CONSTITUTION_PREFIX}, Article {roman}"
    if article_title:
        heading = f"{heading}, {article_title}"

    if not _has_section(section_number):
        return _normalized(heading, body)

    stripped = _strip_leading_heading(body, "Section", section_number).strip()
    return _normalized(f"{heading}, Section {section_number}", stripped or body)


def unit_fragment(metadata: Dict[str, Any]) -> str:
    """URL fragment (without '#') for a persisted unit."""
    if is_act_unit(metadata):
        number = metadata.get("section_number")
        if metadata.get("page_type") == "act_content" and _has_section(number):
            return _act_unit_fragment(metadata)
        return f"act{metadata.get('act_number')}"

    article_number = _as_int(metadata.get("article_number"))
    section_number = metadata.get("section_number")
    if article_number and _has_section(section_number):
        subpart = str(metadata.get("subpart") or "").lower()
        return f"art{article_number}{subpart}-sec{section_number}"
    if metadata.get("preamble"):
        return "preamble"
    if is_ordinance(metadata):
        return "ordinance"
    return f"art{article_number or 'unknown'}"


def generate_entry_id(metadata: Dict[str, Any]) -> str:
    """Stable KB entry id, e.g. CONST-1987-ART3-SEC1 or ACT-3815-1930-CHAP2-SEC1."""
    if is_act_unit(metadata):
        base = f"ACT-{metadata.get('act_number')}-{metadata.get('year', 'unknown')}"
        number = metadata.get("section_number")
        if metadata.get("page_type") == "act_content" and _has_section(number):
            return f"{base}-{_act_unit_fragment(metadata).upper()}"
        return base

    if metadata.get("preamble"):
        return "CONST-1987-PREAMBLE"
    if is_ordinance(metadata):
        return "CONST-1987-ORDINANCE"

    article_number = metadata.get("article_number")
    section_number = metadata.get("section_number")
    if not _has_section(section_number):
        return f"CONST-1987-ART{article_number}"
    subpart = metadata.get("subpart") or ""
    return f"CONST-1987-ART{article_number}{subpart}-SEC{section_number}"


def entry_type(metadata: Dict[str, Any]) -> Tuple[str, str]:
    """(type, subtype) of the KB entry generated from a unit."""
    if is_act_unit(metadata):
        return "statute_section", "act"
    if metadata.get("preamble"):
        return "constitution_provision", "preamble"
    if is_ordinance(metadata):
        return "constitution_provision", "ordinance"
    if _has_section(metadata.get("section_number")):
        return "constitution_provision", "section"
    return "constitution_provision", "article"
