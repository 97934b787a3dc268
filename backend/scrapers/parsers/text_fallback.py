"""
Text Fallback Parser

Flat-text recovery for pages whose markup hides the structure the primary
parser relies on. Tags are stripped, whitespace is normalized and the text
is cut into ARTICLE <roman> blocks, each split at "Section N." markers.

Used by the orchestrator only to fill (article, section) keys the primary
parser missed. Article titles are not recovered here; the orchestrator
copies them from the primary units of the same article.
"""
import re
from typing import List

from .base import BaseParser, LegalUnit, SequenceCounter
from ..utils.numerals import roman_to_int

ARTICLE_BLOCK_RE = re.compile(
    r"(ARTICLE\s+([IVXLCDM]+)\b)(.*?)(?=ARTICLE\s+[IVXLCDM]+\b|$)",
    re.IGNORECASE | re.DOTALL,
)
SECTION_MARKER_RE = re.compile(r"Section\s+(\d+[A-Za-z]?)\.\s*", re.IGNORECASE)


def flatten_html(html: str) -> str:
    """Strip scripts, styles and tags; collapse blank lines and spaces."""
    text = re.sub(r"<script[\s\S]*?</script>", " ", html or "", flags=re.IGNORECASE)
    text = re.sub(r"<style[\s\S]*?</style>", " ", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "\n", text)
    text = text.replace("&nbsp;", " ").replace("\xa0", " ")
    text = text.replace("\r", "\n").replace("\t", " ")
    text = re.sub(r"\n+", "\n", text)
    text = re.sub(r" +", " ", text)
    return text.strip()


class TextFallbackParser(BaseParser):
    """Article/section splitter over flattened page text."""

    PARSER_KEY = "text_fallback"

    def parse(self, canonical_url: str, html: str) -> List[LegalUnit]:
        counter = SequenceCounter()
        units: List[LegalUnit] = []

        for article in ARTICLE_BLOCK_RE.finditer(flatten_html(html)):
            article_number = roman_to_int(article.group(2))
            if not article_number:
                continue

            content = article.group(0)
            markers = list(SECTION_MARKER_RE.finditer(content))
            for idx, marker in enumerate(markers):
                end = markers[idx + 1].start() if idx + 1 < len(markers) else len(content)
                segment = content[marker.end():end].strip()
                if not segment:
                    continue
                section_number = marker.group(1)
                units.append(LegalUnit(
                    extracted_text=segment,
                    metadata={
                        "title": f"Section {section_number}",
                        "article_title": "",
                        "article_number": article_number,
                        "section_number": section_number,
                        "preamble": False,
                        "topics": [],
                    },
                    sequence_index=counter.next(),
                    canonical_url=self.fragment_url(
                        canonical_url, f"article-{article_number}-section-{section_number}"
                    ),
                ))

        return units
