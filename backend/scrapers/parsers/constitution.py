"""
1987 Constitution Parser

Line-oriented state machine over the plain-text rendering of the LawPhil
constitution page:

    SEEKING_PREAMBLE --ARTICLE line--> INSIDE_ARTICLE
    INSIDE_ARTICLE   --ARTICLE line--> INSIDE_ARTICLE (previous article flushed)
    INSIDE_ARTICLE   --ORDINANCE line--> SEEKING_ORDINANCE (article flushed)

Each flushed article is split on "Section N." lines into one unit per
section (or kept whole when it has no sections). The preamble and the
trailing ordinance are found by independent regex scans of the full text.

Output order: preamble, articles/sections, ordinance.
"""
import logging
import re
from enum import Enum
from typing import List, Optional, Tuple

from .base import BaseParser, LegalUnit, SequenceCounter
from ..utils.numerals import roman_to_int
from ..utils.text import html_to_text

logger = logging.getLogger(__name__)


ARTICLE_TOPICS = {
    1: ["national_territory", "territory"],
    2: ["declaration_of_principles", "state_policies"],
    3: ["bill_of_rights", "civil_rights", "human_rights"],
    4: ["citizenship"],
    5: ["suffrage", "voting"],
    6: ["legislative_department", "congress"],
    7: ["executive_department", "president"],
    8: ["judicial_department", "courts"],
    9: ["constitutional_commissions"],
    10: ["local_government"],
    11: ["accountability_of_public_officers"],
    12: ["national_economy", "patrimony"],
    13: ["social_justice", "human_rights"],
    14: ["education", "science", "technology"],
    15: ["family"],
    16: ["general_provisions"],
    17: ["amendments", "revisions"],
    18: ["transitory_provisions"],
}

# Article III (Bill of Rights) section-level topics
BILL_OF_RIGHTS_TOPICS = {
    1: ["due_process", "equal_protection"],
    2: ["search_warrant", "privacy"],
    3: ["privacy", "communication"],
    4: ["freedom_of_speech", "expression"],
    5: ["freedom_of_religion"],
    6: ["liberty_of_abode", "travel"],
    7: ["right_to_information"],
    8: ["freedom_of_association"],
    9: ["private_property"],
    10: ["non_impairment_clause"],
    11: ["free_access_to_courts"],
    12: ["rights_of_accused"],
    13: ["habeas_corpus"],
    14: ["right_to_speedy_trial"],
    15: ["writ_of_habeas_data"],
    16: ["right_to_speedy_disposition"],
    17: ["self_incrimination"],
    18: ["right_to_counsel"],
    19: ["ex_post_facto"],
    20: ["double_jeopardy"],
    21: ["excessive_fines"],
    22: ["ex_post_facto"],
}

GENERIC_TOPIC = "constitutional_provision"
PREAMBLE_TOPICS = ["preamble", "constitutional_principles"]
ORDINANCE_TOPICS = ["ordinance", "local_government"]

BILL_OF_RIGHTS_ARTICLE = 3
COMMISSIONS_ARTICLE = 9
COMMISSION_SUBPARTS = ("A", "B", "C", "D")

# Article XVIII Section 27 ends where the appended ordinance text starts
ORDINANCE_SPLIT_ARTICLE = 18
ORDINANCE_SPLIT_SECTION = "27"
ORDINANCE_DELIMITER = "Adopted:"
ORDINANCE_DELIMITER_RE = re.compile(r"\bAdopted:", re.IGNORECASE)

ARTICLE_HEADING_RE = re.compile(r"^ARTICLE\s+([IVXLC]+|\d+)\b\s*[-–.:]?\s*(.*)$")
SECTION_LINE_RE = re.compile(r"^Section\s+(\d+[A-Za-z]?)\.\s*(.*)$", re.IGNORECASE)
SECTION_MARKER_RE = re.compile(r"Section\s+\d+[A-Za-z]?\.")
SUBPART_LINE_RE = re.compile(r"^([A-Z])\.\s")
ORDINANCE_HEADING_RE = re.compile(r"^ORDINANCE\b")

PREAMBLE_PATTERNS = [
    re.compile(r"PREAMBLE\s*([\s\S]*?)(?=ARTICLE\s+[IVX]+\b|\Z)"),
    re.compile(r"We, the sovereign Filipino people[\s\S]*?(?=ARTICLE\s+[IVX]+\b|\Z)"),
]

ORDINANCE_PATTERNS = [
    re.compile(r"^[ \t]*ORDINANCE\b[ \t]*([\s\S]*?)(?=^[ \t]*ARTICLE\s+[IVX]+\b|\Z)", re.MULTILINE),
    re.compile(r"City Ordinance[\s\S]*?(?=ARTICLE\s+[IVX]+\b|\Z)"),
    re.compile(r"Municipal Ordinance[\s\S]*?(?=ARTICLE\s+[IVX]+\b|\Z)"),
]

ARTIFACT_PATTERNS = [
    re.compile(r"LawPhil.*?\.net"),
    re.compile(r"Back to.*?Home"),
    re.compile(r"The Lawphil Project.*?Foundation"),
    re.compile(r"javascript:history\.back\(\)"),
    re.compile(r"\[#top\]"),
]

MIN_PREAMBLE_LENGTH = 50
MIN_ORDINANCE_LENGTH = 50
MIN_ARTICLE_LENGTH = 20
MIN_SECTION_LENGTH = 10


class ScanState(Enum):
    """Line-scan states."""
    SEEKING_PREAMBLE = "seeking_preamble"
    INSIDE_ARTICLE = "inside_article"
    SEEKING_ORDINANCE = "seeking_ordinance"


def clean_text(text: str) -> str:
    """
    Normalize constitution text.

    Collapses spaces and tabs (line breaks are kept), strips LawPhil
    navigation and footer artifacts, and normalizes a leading section
    marker to "Section N. ".
    """
    if not text:
        return ""
    text = re.sub(r"[ \t]+", " ", text).strip()
    for pattern in ARTIFACT_PATTERNS:
        text = pattern.sub("", text)
    text = re.sub(r"^Section\s+(\d+[A-Za-z]?)\.?\s*", r"Section \1. ", text, flags=re.IGNORECASE)
    return text.strip()


def infer_topics(article_number: Optional[int], section_number: Optional[str]) -> List[str]:
    """
    Topic tags for a constitutional unit.

    Article-level tags plus the generic tag; Article III sections also get
    bill-of-rights tags. Duplicates are removed, first occurrence wins.
    """
    topics = list(ARTICLE_TOPICS.get(article_number, []))
    topics.append(GENERIC_TOPIC)

    if article_number == BILL_OF_RIGHTS_ARTICLE and section_number and str(section_number).isdigit():
        topics.extend(BILL_OF_RIGHTS_TOPICS.get(int(section_number), []))

    return list(dict.fromkeys(topics))


class ConstitutionParser(BaseParser):
    """Parser for the 1987 Philippine Constitution page."""

    PARSER_KEY = "constitution_1987"

    def parse(self, canonical_url: str, html: str) -> List[LegalUnit]:
        body_text = html_to_text(html)
        counter = SequenceCounter()

        units: List[LegalUnit] = []

        preamble = self._identify_preamble(body_text, canonical_url, counter)
        if preamble:
            units.append(preamble)

        article_units, split_ordinance_text = self._identify_articles(body_text, canonical_url, counter)
        units.extend(article_units)

        ordinance = self._identify_ordinance(body_text, canonical_url, counter, split_ordinance_text)
        if ordinance:
            units.append(ordinance)

        logger.info(f"Constitution parse of {canonical_url}: {len(units)} units")
        return units

    # =========================================================================
    # Preamble / Ordinance (regex scans)
    # =========================================================================

    def _identify_preamble(
        self, body_text: str, canonical_url: str, counter: SequenceCounter
    ) -> Optional[LegalUnit]:
        for pattern in PREAMBLE_PATTERNS:
            match = pattern.search(body_text)
            if not match:
                continue
            raw = match.group(1) if match.groups() else match.group(0)
            text = clean_text(raw)
            if len(text) > MIN_PREAMBLE_LENGTH:
                return LegalUnit(
                    extracted_text=text,
                    metadata={
                        "title": "Preamble",
                        "article_number": 0,
                        "section_number": 0,
                        "preamble": True,
                        "topics": list(PREAMBLE_TOPICS),
                    },
                    sequence_index=counter.next(),
                    canonical_url=self.fragment_url(canonical_url, "preamble"),
                )
        return None

    def _identify_ordinance(
        self,
        body_text: str,
        canonical_url: str,
        counter: SequenceCounter,
        split_text: str = "",
    ) -> Optional[LegalUnit]:
        """
        Ordinance unit from the Article XVIII split and/or the ORDINANCE block.

        Both sources describe the same trailing text, so they are combined
        into a single unit.
        """
        block_text = ""
        for pattern in ORDINANCE_PATTERNS:
            match = pattern.search(body_text)
            if not match:
                continue
            raw = match.group(1) if match.groups() else match.group(0)
            candidate = clean_text(raw)
            if len(candidate) > MIN_ORDINANCE_LENGTH:
                block_text = candidate
                break

        parts = [p for p in (split_text, block_text) if p]
        if not parts:
            return None

        return LegalUnit(
            extracted_text="\n".join(parts),
            metadata={
                "title": "Ordinance",
                "article_number": None,
                "section_number": None,
                "preamble": False,
                "ordinance": True,
                "topics": list(ORDINANCE_TOPICS),
            },
            sequence_index=counter.next(),
            canonical_url=self.fragment_url(canonical_url, "ordinance"),
        )

    # =========================================================================
    # Articles (line scan)
    # =========================================================================

    def _identify_articles(
        self, body_text: str, canonical_url: str, counter: SequenceCounter
    ) -> Tuple[List[LegalUnit], str]:
        """
        Scan lines, flushing each article when the next heading starts.

        Returns:
            (units, ordinance text split off Article XVIII Section 27)
        """
        units: List[LegalUnit] = []
        ordinance_text = ""

        state = ScanState.SEEKING_PREAMBLE
        article_number: Optional[int] = None
        article_title = ""
        content: List[str] = []
        awaiting_title = False

        def flush():
            nonlocal ordinance_text
            if article_number is None:
                return
            article_units, split_text = self._process_article(
                article_number, article_title, "\n".join(content), canonical_url, counter
            )
            units.extend(article_units)
            if split_text:
                ordinance_text = split_text

        for raw_line in body_text.split("\n"):
            line = raw_line.strip()

            heading = ARTICLE_HEADING_RE.match(line)
            if heading:
                if state == ScanState.INSIDE_ARTICLE:
                    flush()
                numeral = heading.group(1)
                article_number = int(numeral) if numeral.isdigit() else roman_to_int(numeral)
                article_title = re.sub(r"\s+", " ", heading.group(2)).strip()
                awaiting_title = not article_title
                content = []
                state = ScanState.INSIDE_ARTICLE
                logger.debug(f"Found Article {article_number}: {article_title}")
                continue

            if state != ScanState.INSIDE_ARTICLE:
                continue

            if ORDINANCE_HEADING_RE.match(line):
                flush()
                article_number = None
                state = ScanState.SEEKING_ORDINANCE
                continue

            if awaiting_title and line:
                awaiting_title = False
                if not SECTION_LINE_RE.match(line):
                    article_title = re.sub(r"\s+", " ", line)
                    continue

            content.append(line)

        if state == ScanState.INSIDE_ARTICLE:
            flush()

        return units, ordinance_text

    def _process_article(
        self,
        article_number: int,
        article_title: str,
        article_content: str,
        canonical_url: str,
        counter: SequenceCounter,
    ) -> Tuple[List[LegalUnit], str]:
        """Split one article into section units (or a single article unit)."""
        units: List[LegalUnit] = []
        ordinance_text = ""

        content = clean_text(article_content)
        if len(content) < MIN_ARTICLE_LENGTH:
            return units, ordinance_text

        if not SECTION_MARKER_RE.search(content):
            units.append(LegalUnit(
                extracted_text=content,
                metadata={
                    "title": article_title,
                    "article_number": article_number,
                    "article_title": article_title,
                    "section_number": None,
                    "preamble": False,
                    "topics": infer_topics(article_number, None),
                },
                sequence_index=counter.next(),
                canonical_url=self.fragment_url(canonical_url, f"article-{article_number}"),
            ))
            return units, ordinance_text

        for number, subpart, text in self._parse_sections(content, article_number):
            if (
                article_number == ORDINANCE_SPLIT_ARTICLE
                and re.sub(r"\D", "", number) == ORDINANCE_SPLIT_SECTION
            ):
                parts = ORDINANCE_DELIMITER_RE.split(text, maxsplit=1)
                if len(parts) > 1:
                    text = parts[0].strip()
                    ordinance_text = f"{ORDINANCE_DELIMITER} {parts[1].strip()}".strip()
                if len(text) <= MIN_SECTION_LENGTH:
                    continue

            units.append(LegalUnit(
                extracted_text=text,
                metadata={
                    "title": f"{article_title} - Section {number}",
                    "article_number": article_number,
                    "article_title": article_title,
                    "section_number": number,
                    "subpart": subpart,
                    "preamble": False,
                    "topics": infer_topics(article_number, number),
                },
                sequence_index=counter.next(),
                canonical_url=self.fragment_url(
                    canonical_url, f"article-{article_number}{(subpart or '').lower()}-section-{number}"
                ),
            ))

        return units, ordinance_text

    def _parse_sections(self, article_content: str, article_number: int) -> List[Tuple[str, Optional[str], str]]:
        """
        Split article text on "Section N." lines.

        Returns:
            List of (section number, subpart letter, cleaned text); sections
            with 10 chars or fewer are dropped.
        """
        sections: List[Tuple[str, Optional[str], str]] = []
        current_number: Optional[str] = None
        current_subpart: Optional[str] = None
        section_subpart: Optional[str] = None
        current_lines: List[str] = []

        def flush():
            if current_number is None:
                return
            text = "\n".join(current_lines).strip()
            if len(text) > MIN_SECTION_LENGTH:
                sections.append((current_number, section_subpart, clean_text(text)))

        for raw_line in article_content.split("\n"):
            line = raw_line.strip()

            subpart = SUBPART_LINE_RE.match(line)
            if (
                subpart
                and article_number == COMMISSIONS_ARTICLE
                and subpart.group(1) in COMMISSION_SUBPARTS
            ):
                current_subpart = subpart.group(1)
                continue

            section = SECTION_LINE_RE.match(line)
            if section:
                flush()
                current_number = section.group(1)
                section_subpart = current_subpart
                current_lines = [section.group(2).strip()]
            elif current_number is not None and line:
                current_lines.append(line)

        flush()
        logger.debug(f"Article {article_number}: {len(sections)} sections")
        return sections
