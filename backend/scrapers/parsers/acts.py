"""
Acts Parser - LawPhil year index pages and individual Act pages.

Page shape is decided by URL:

    /act1930/act1930.html       -> year index (one act_link unit per Act)
    /act1930/act_3817_1930.html -> individual Act (one unit per article/section)

Individual Acts go through two passes:

1. tokenize_headings() finds BOOK / TITLE / CHAPTER / Article / Section
   headings anchored at line starts.
2. A single reduction threads the BOOK > TITLE > CHAPTER context stack
   through the token stream and cuts each article/section block at the
   next heading of any kind.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString

from .base import BaseParser, LegalUnit, SequenceCounter
from ..citation import unit_fragment
from ..exceptions import UnknownPageTypeError
from ..utils.text import html_to_text

logger = logging.getLogger(__name__)


YEAR_PAGE_RE = re.compile(r"/act\d{4}/act\d{4}\.html$")
ACT_PAGE_RE = re.compile(r"/act_?\d+_\d{4}\.html$")
ACT_URL_PARTS_RE = re.compile(r"act_?(\d+)_(\d{4})")
YEAR_DIR_RE = re.compile(r"/act(\d{4})/")

ACT_LINK_TEXT_RE = re.compile(r"Act No\.\s*(\d+)", re.IGNORECASE)
ACT_LINK_HREF_RE = re.compile(r"act_?(\d+)_")
LINK_DATE_RE = re.compile(r"([A-Za-z]+\s+\d{1,2},?\s+\d{4})")
LINK_DATE_TITLE_RE = re.compile(r"([A-Za-z]+\s+\d{1,2},?\s+\d{4})([\s\S]*?)(?=Act No\.|\Z)")
YEAR_TEXT_ENTRY_RE = re.compile(
    r"\[Act No\.\s*(\d+)\]\([^)]+\)([A-Za-z]+\s+\d{1,2},?\s+\d{4})([\s\S]*?)(?=\[Act No\.|\Z)",
    re.IGNORECASE,
)
SIBLING_TEXT_LIMIT = 200

MONTH_NAMES = (
    r"(?:January|February|March|April|May|June|July|August|September|October|November|December"
    r"|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)"
)
DATE_RE = re.compile(rf"({MONTH_NAMES}\.?\s+\d{{1,2}},?\s+\d{{4}})")
EFFECTIVE_DATE_RE = re.compile(rf"(?:Effective|Approved),?\s*({MONTH_NAMES}\.?\s+\d{{1,2}},?\s+\d{{4}})", re.IGNORECASE)
ACT_TITLE_RE = re.compile(r"AN ACT[\s\S]*?(?=Be it enacted|\Z)", re.IGNORECASE)

MONTH_ABBREVIATIONS = {
    "Jan": "January",
    "Feb": "February",
    "Mar": "March",
    "Apr": "April",
    "Jun": "June",
    "Jul": "July",
    "Aug": "August",
    "Sept": "September",
    "Sep": "September",
    "Oct": "October",
    "Nov": "November",
    "Dec": "December",
}
MONTH_ABBREVIATION_RE = re.compile(r"\b(Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)\.")

HEADING_KEYWORDS = r"(?:BOOK|TITLE|CHAPTER|Article|ARTICLE|Section|SECTION)"

BOILERPLATE_PATTERNS = [
    re.compile(r"\b(?:lawphil|1awphi1|1aшphi1)\b", re.IGNORECASE),
    re.compile(r"\d+[a-zа-я]phi\d+", re.IGNORECASE),
    re.compile(r"The Lawphil Project[\s\S]*?Foundation", re.IGNORECASE),
    re.compile(r"Arellano Law Foundation", re.IGNORECASE),
    re.compile(r"The LAWPHIL Project", re.IGNORECASE),
    re.compile(r"Today is[\s\S]*?2025", re.IGNORECASE),
    re.compile(r"Enhanced by Google", re.IGNORECASE),
    re.compile(r"Back to top", re.IGNORECASE),
    re.compile(r"▲ TOP", re.IGNORECASE),
    re.compile(r"◄ BACK", re.IGNORECASE),
]

STRUCTURAL_HEADING_RES = {
    "book": re.compile(r"^[ \t]*BOOK\s+([A-Z0-9][A-Z0-9 ]*?)[ \t]*$", re.MULTILINE),
    "title": re.compile(r"^[ \t]*TITLE\s+([A-Z0-9][A-Z0-9 ]*?)[ \t]*$", re.MULTILINE),
    "chapter": re.compile(r"^[ \t]*CHAPTER\s+([A-Z0-9][A-Z0-9 ]*?)[ \t]*$", re.MULTILINE),
}
UNIT_HEADING_RES = {
    "article": re.compile(r"^[ \t]*[\"“']?(?:Article|ARTICLE)\s+(\d+[A-Za-z]?)\b[ \t.:\-]*([^\n]*)", re.MULTILINE),
    "section": re.compile(r"^[ \t]*[\"“']?(?:Section|SECTION)\s+(\d+[A-Za-z]?)\b[ \t.:\-]*([^\n]*)", re.MULTILINE),
}

AMENDMENT_LEAD_IN_RE = re.compile(
    r"is\s+hereby\s+amended\s+to\s+read\s+as\s+follows:\s*[\"“']?\s*$", re.IGNORECASE
)
CITATION_LINE_RE = re.compile(r"^(?:Article\s+\d+|Act\s+No\.\s+\d+).*Section\s+\d+", re.IGNORECASE)
PROJECT_ARTIFACT_RE = re.compile(r"^The Project\s*-?\s*$", re.IGNORECASE)
WEAK_START_RE = re.compile(r"^(?:one\.?|one\s+fall\b|six\s+hundred\b|provided\b|whenever\b|and\b|or\b)", re.IGNORECASE)
HEADING_PREFIX_RE = re.compile(r"^[\"“']?(?:Section|Article)\s+\d+[A-Za-z]*[.:\-]?\s*", re.IGNORECASE)
HEADING_TITLE_RE = re.compile(r"^([^\n.:\-]+)[.:\-]")

MIN_UNIT_LENGTH = 10


@dataclass
class ActLink:
    """One Act listed on a year index page."""
    act_number: str
    title: str
    approval_date: str
    url: str


@dataclass
class HeadingToken:
    """A structural heading found at a line start."""
    kind: str  # book | title | chapter | article | section
    identifier: str
    offset: int
    line: str


def is_year_page(url: str) -> bool:
    return bool(YEAR_PAGE_RE.search(url))


def is_act_page(url: str) -> bool:
    return bool(ACT_PAGE_RE.search(url))


def normalize_month(date_string: str) -> str:
    """Expand month abbreviations (Jan. -> January, Sept./Sep. -> September)."""
    if not date_string:
        return date_string
    return MONTH_ABBREVIATION_RE.sub(lambda m: MONTH_ABBREVIATIONS[m.group(1)], date_string)


def clean_title(title: str) -> str:
    """Trim and normalize the "An Act"/"A Act" prefix to "AN ACT"."""
    title = re.sub(r"\s+", " ", title or "").strip()
    return re.sub(r"^An?\s+Act\s+", "AN ACT ", title, flags=re.IGNORECASE)


def clean_act_text(text: str) -> str:
    """
    Normalize the text of an Act page.

    Rejoins hyphenated wraps, collapses soft-wrapped lines that do not start
    a heading, trims blank-line runs, strips LawPhil boilerplate and
    collapses spaces while keeping line breaks.
    """
    text = (text or "").replace("\r\n", "\n")
    text = re.sub(r"-[ \t]*\n\s*", "-", text)
    text = re.sub(rf"([^\n])\n(?![ \t]*[\"“']?{HEADING_KEYWORDS}\b)", r"\1 ", text)
    text = re.sub(r"\n\s*\n\s*\n", "\n\n", text)
    for pattern in BOILERPLATE_PATTERNS:
        text = pattern.sub("", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


def join_weak_start(lines: List[str]) -> List[str]:
    """
    Reattach a continuation fragment to the heading line it was cut from.

    Paragraph breaks survive clean_act_text, so a sentence split across two
    paragraphs ("... a fine of not more than" / "six hundred pesos") leaves
    the second half on its own line. When the line after the heading opens
    with such a fragment, the heading line's trailing words are joined to it.
    """
    if len(lines) < 2 or not WEAK_START_RE.match(lines[1]):
        return lines
    trailing = HEADING_PREFIX_RE.sub("", lines[0]).strip()
    if trailing and lines[1].startswith(trailing):
        return lines
    return [f"{lines[0]} {lines[1]}"] + lines[2:]


def tokenize_headings(text: str) -> List[HeadingToken]:
    """Line-anchored headings of every kind, sorted by offset."""
    tokens: List[HeadingToken] = []

    for kind, pattern in STRUCTURAL_HEADING_RES.items():
        for m in pattern.finditer(text):
            tokens.append(HeadingToken(kind, m.group(1).strip(), m.start(), m.group(0).strip()))

    for kind, pattern in UNIT_HEADING_RES.items():
        for m in pattern.finditer(text):
            tokens.append(HeadingToken(kind, m.group(1).strip(), m.start(), m.group(0).strip()))

    tokens.sort(key=lambda t: t.offset)
    return tokens


def _act_url(year_page_url: str, act_number: str) -> str:
    year_match = YEAR_DIR_RE.search(year_page_url)
    year = year_match.group(1) if year_match else "unknown"
    return re.sub(r"/[^/]+\.html$", f"/act_{act_number}_{year}.html", year_page_url)


class ActsParser(BaseParser):
    """Parser for LawPhil Acts pages (year indexes and individual Acts)."""

    PARSER_KEY = "acts"

    def parse(self, canonical_url: str, html: str) -> List[LegalUnit]:
        counter = SequenceCounter()

        if is_year_page(canonical_url):
            return self._parse_year_page(canonical_url, html, counter)
        if is_act_page(canonical_url):
            return self._parse_act_page(canonical_url, html, counter)
        raise UnknownPageTypeError(f"Unknown page type for URL: {canonical_url}")

    # =========================================================================
    # Year index pages
    # =========================================================================

    def extract_act_links(self, canonical_url: str, html: str) -> List[ActLink]:
        """
        Acts listed on a year index page.

        Anchors are tried first; the aggregate text pattern is used only
        when no anchor yields an Act.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        links = self._links_from_anchors(soup, canonical_url)
        if links:
            logger.info(f"Found {len(links)} Acts from links on {canonical_url}")
            return links

        links = self._links_from_text(soup.get_text(), canonical_url)
        logger.info(f"Found {len(links)} Acts from text on {canonical_url}")
        return links

    def _links_from_anchors(self, soup: BeautifulSoup, canonical_url: str) -> List[ActLink]:
        links: List[ActLink] = []
        seen = set()

        for anchor in soup.select('a[href*="act"]'):
            href = anchor.get("href") or ""
            text = anchor.get_text().strip()
            match = ACT_LINK_TEXT_RE.search(text) or ACT_LINK_HREF_RE.search(href)
            if not match:
                continue
            act_number = match.group(1)
            if act_number in seen:
                continue
            seen.add(act_number)

            following = ""
            for sibling in anchor.next_siblings:
                if len(following) >= SIBLING_TEXT_LIMIT:
                    break
                if isinstance(sibling, NavigableString):
                    following += str(sibling)
                else:
                    following += sibling.get_text()

            date_match = LINK_DATE_RE.search(following)
            title_match = LINK_DATE_TITLE_RE.search(following)
            links.append(ActLink(
                act_number=act_number,
                title=clean_title(title_match.group(2)) if title_match else "Unknown title",
                approval_date=date_match.group(1) if date_match else "Unknown date",
                url=_act_url(canonical_url, act_number),
            ))

        return links

    def _links_from_text(self, body_text: str, canonical_url: str) -> List[ActLink]:
        return [
            ActLink(
                act_number=m.group(1),
                title=clean_title(m.group(3)),
                approval_date=m.group(2).strip(),
                url=_act_url(canonical_url, m.group(1)),
            )
            for m in YEAR_TEXT_ENTRY_RE.finditer(body_text)
        ]

    def _parse_year_page(self, canonical_url: str, html: str, counter: SequenceCounter) -> List[LegalUnit]:
        return [
            LegalUnit(
                extracted_text=f"Act No. {link.act_number} - {link.title}",
                metadata={
                    "act_number": link.act_number,
                    "title": link.title,
                    "approval_date": link.approval_date,
                    "canonical_url": link.url,
                    "page_type": "act_link",
                },
                sequence_index=counter.next(),
                canonical_url=link.url,
            )
            for link in self.extract_act_links(canonical_url, html)
        ]

    # =========================================================================
    # Individual Act pages
    # =========================================================================

    def extract_act_metadata(self, text: str, canonical_url: str) -> Dict[str, str]:
        """Act number and year from the URL; title and dates from the text."""
        url_match = ACT_URL_PARTS_RE.search(canonical_url)
        act_number = url_match.group(1) if url_match else "unknown"
        year = url_match.group(2) if url_match else "unknown"

        title_match = ACT_TITLE_RE.search(text)
        title = clean_title(title_match.group(0)) if title_match else "Unknown title"

        date_match = DATE_RE.search(text)
        approval_date = normalize_month(date_match.group(1)) if date_match else "Unknown date"

        effective_match = EFFECTIVE_DATE_RE.search(text)
        effective_date = normalize_month(effective_match.group(1)) if effective_match else approval_date

        return {
            "act_number": act_number,
            "year": year,
            "title": title,
            "approval_date": approval_date,
            "effective_date": effective_date,
            "canonical_url": canonical_url,
        }

    def _parse_act_page(self, canonical_url: str, html: str, counter: SequenceCounter) -> List[LegalUnit]:
        text = clean_act_text(html_to_text(html))
        act_metadata = self.extract_act_metadata(text, canonical_url)

        units = []
        for block in self._reduce(text, tokenize_headings(text)):
            entry = self._build_entry(block)
            if entry is None:
                continue
            metadata = {
                **act_metadata,
                "section_number": block["identifier"],
                "section_title": entry["title"],
                "section_type": block["kind"],
                "context_path": " - ".join(c["name"] for c in block["context"]),
                "full_context": block["context"],
                "page_type": "act_content",
            }
            units.append(LegalUnit(
                extracted_text=entry["text"],
                metadata=metadata,
                sequence_index=counter.next(),
                canonical_url=self.fragment_url(canonical_url, unit_fragment(metadata)),
            ))

        logger.info(f"Act No. {act_metadata['act_number']}: {len(units)} content units")
        return units

    def _reduce(self, text: str, tokens: List[HeadingToken]) -> List[dict]:
        """
        Thread the context stack through the tokens and cut unit blocks.

        BOOK resets the stack, TITLE keeps BOOK, CHAPTER keeps BOOK and
        TITLE. A block that ends on an amendment lead-in absorbs the quoted
        section that follows it.
        """
        blocks = []
        stack: List[Dict[str, str]] = []
        i = 0

        while i < len(tokens):
            token = tokens[i]

            if token.kind in STRUCTURAL_HEADING_RES:
                keep = {"book": (), "title": ("book",), "chapter": ("book", "title")}[token.kind]
                stack = [c for c in stack if c["type"] in keep]
                stack.append({"type": token.kind, "name": token.line})
                i += 1
                continue

            end_index = i + 1
            end = tokens[end_index].offset if end_index < len(tokens) else len(text)
            while (
                end_index < len(tokens)
                and tokens[end_index].kind == "section"
                and AMENDMENT_LEAD_IN_RE.search(text[token.offset:end])
            ):
                end_index += 1
                end = tokens[end_index].offset if end_index < len(tokens) else len(text)

            blocks.append({
                "kind": token.kind,
                "identifier": token.identifier,
                "heading": token.line,
                "text": text[token.offset:end].strip(),
                "context": stack + [{"type": token.kind, "name": f"{token.kind.capitalize()} {token.identifier}"}],
            })
            i = end_index

        return blocks

    def _build_entry(self, block: dict) -> Optional[Dict[str, str]]:
        """Filter, normalize and title one article/section block."""
        kind, identifier = block["kind"], block["identifier"]
        label = "Section" if kind == "section" else "Article"

        heading_rest = HEADING_PREFIX_RE.sub("", block["heading"]).strip()
        title_match = HEADING_TITLE_RE.match(heading_rest)
        title = title_match.group(1).strip() if title_match else ""

        lines = []
        for idx, line in enumerate(block["text"].split("\n")):
            stripped = line.strip()
            if not stripped:
                continue
            if idx > 0 and CITATION_LINE_RE.match(stripped):
                continue
            if PROJECT_ARTIFACT_RE.match(stripped):
                continue
            lines.append(stripped)

        if not lines:
            return None

        if not re.match(rf"^[\"“']?{label}\s+\d+", lines[0], re.IGNORECASE):
            lines[0] = f"{label} {identifier}. {lines[0]}"

        if kind == "section":
            lines = join_weak_start(lines)

        content = "\n".join(lines)
        content = re.sub(r"\n{3,}", "\n\n", content)
        content = re.sub(r"[ \t]+", " ", content).strip()

        if len(content) <= MIN_UNIT_LENGTH:
            return None
        return {"text": content, "title": title}
