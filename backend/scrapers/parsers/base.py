"""
Base Parser - shared contract for structural parsers.

A parser turns one fetched page into an ordered list of LegalUnit records:

    units = parser.parse(canonical_url, html)

Parsers keep no per-call state on the instance. The sequence counter is
created at the start of each parse() and passed explicitly to helpers, so
one parser instance can be reused across threads.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class LegalUnit:
    """One atomic, citable unit of legal text produced by a parser."""
    extracted_text: str
    metadata: Dict[str, Any]
    sequence_index: int
    canonical_url: str
    children: List["LegalUnit"] = field(default_factory=list)

    @property
    def article_number(self) -> Optional[int]:
        return self.metadata.get("article_number")

    @property
    def section_number(self) -> Optional[str]:
        return self.metadata.get("section_number")

    def unit_key(self) -> Tuple[Any, str]:
        """(article, section) key used to merge fallback results; subpart is ignored."""
        return self.metadata.get("article_number"), str(self.metadata.get("section_number") or "").upper()

    def source_position(self) -> Tuple[float, int, str]:
        """Sort key for document order: preamble, articles by section, then unaddressed units."""
        if self.metadata.get("preamble"):
            return (0, 0, "")
        article = self.metadata.get("article_number")
        if article is None:
            return (float("inf"), 0, "")
        match = re.match(r"(\d+)(\w*)", str(self.metadata.get("section_number") or ""))
        if not match:
            return (article, 0, "")
        return (article, int(match.group(1)), match.group(2).upper())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "extracted_text": self.extracted_text,
            "metadata": self.metadata,
            "sequence_index": self.sequence_index,
            "canonical_url": self.canonical_url,
            "children": [c.to_dict() for c in self.children],
        }


class SequenceCounter:
    """Monotonic source-order counter for a single parse call."""

    def __init__(self, start: int = 0):
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    @property
    def issued(self) -> int:
        return self._next


class BaseParser(ABC):
    """
    Abstract base class for structural parsers.

    Subclasses set PARSER_KEY (the name used by the orchestrator registry)
    and implement parse().
    """

    PARSER_KEY: str = "base"

    @abstractmethod
    def parse(self, canonical_url: str, html: str) -> List[LegalUnit]:
        """
        Parse a page into legal units.

        Args:
            canonical_url: Fragment-free URL of the page
            html: Raw HTML

        Returns:
            Units in source order (empty if nothing plausible was found)
        """
        pass

    @staticmethod
    def fragment_url(canonical_url: str, fragment: str) -> str:
        return f"{canonical_url}#{fragment}"
