"""
Tests for citation normalization, unit fragments and entry ids.
"""

import pytest

from scrapers.citation import (
    entry_type,
    generate_entry_id,
    normalize_unit,
    unit_fragment,
)
from scrapers.parsers.base import LegalUnit
from scrapers.utils.numerals import heading_number

URL = "https://lawphil.net/consti/cons1987.html"


def unit(text, **metadata):
    return LegalUnit(extracted_text=text, metadata=metadata, sequence_index=0, canonical_url=URL)


ACT_METADATA = {
    "act_number": "3815",
    "year": "1930",
    "page_type": "act_content",
    "section_type": "article",
    "section_number": "2",
    "full_context": [
        {"type": "book", "name": "BOOK ONE"},
        {"type": "chapter", "name": "CHAPTER ONE"},
        {"type": "article", "name": "Article 2"},
    ],
}


class TestConstitutionCitations:
    """1987 Constitution citation titles."""

    def test_section_citation(self):
        """Section units cite article numeral, title and section."""
        normalized = normalize_unit(unit(
            "Section 1. No person shall be deprived of life.",
            title="BILL OF RIGHTS - Section 1", article_number=3, section_number="1",
        ))

        assert normalized.title == "1987 Constitution, Article III, BILL OF RIGHTS, Section 1"
        assert normalized.body == "No person shall be deprived of life."
        assert normalized.header_plus_body == f"{normalized.title}\n{normalized.body}"

    def test_article_citation(self):
        """Article units without sections cite the article only."""
        normalized = normalize_unit(unit(
            "The national territory comprises the Philippine archipelago.",
            title="NATIONAL TERRITORY", article_number=1, section_number=None,
        ))
        assert normalized.title == "1987 Constitution, Article I, NATIONAL TERRITORY"

    def test_article_title_field_preferred(self):
        """An explicit article_title wins over the title string, even when empty."""
        normalized = normalize_unit(unit(
            "The Philippines renounces war.",
            title="Section 2", article_title="", article_number=2, section_number="2",
        ))
        assert normalized.title == "1987 Constitution, Article II, Section 2"

    def test_preamble_citation(self):
        """Preamble has a fixed citation."""
        normalized = normalize_unit(unit("We, the sovereign Filipino people...", preamble=True, article_number=0))
        assert normalized.title == "1987 Constitution, PREAMBLE"

    def test_ordinance_citation(self):
        """Ordinance has a fixed citation."""
        normalized = normalize_unit(unit("Adopted: October 15, 1986", ordinance=True, title="Ordinance"))
        assert normalized.title == "1987 Constitution, ORDINANCE"

    def test_subpart_in_citation(self):
        """Article IX subparts appear after the numeral."""
        normalized = normalize_unit(unit(
            "The civil service shall be administered by the Commission.",
            title="CONSTITUTIONAL COMMISSIONS - Section 1", article_number=9, section_number="1", subpart="B",
        ))
        assert normalized.title.startswith("1987 Constitution, Article IX-B, CONSTITUTIONAL COMMISSIONS")

    def test_empty_body_skipped(self):
        """Blank text normalizes to None."""
        assert normalize_unit(unit("   ", article_number=3, section_number="1")) is None

    def test_missing_article_skipped(self):
        """Units with no article address normalize to None."""
        assert normalize_unit(unit("Some stray text here.", title="Stray")) is None


class TestActCitations:
    """Act citation titles."""

    def test_act_article_citation(self):
        """Act units cite structural context and strip the heading."""
        normalized = normalize_unit(unit("Article 2. Application of its provisions.", **ACT_METADATA))

        assert normalized.title == "Act No. 3815, BOOK ONE - CHAPTER ONE, Article 2"
        assert normalized.body == "Application of its provisions."

    def test_act_link_citation(self):
        """Year-page links cite the Act number only."""
        normalized = normalize_unit(unit("Act No. 3815 - AN ACT REVISING THE PENAL CODE",
                                         act_number="3815", page_type="act_link"))
        assert normalized.title == "Act No. 3815"


class TestFragmentsAndIds:
    """Unit URL fragments and KB entry ids."""

    @pytest.mark.parametrize("metadata, fragment, entry_id", [
        ({"article_number": 3, "section_number": "1"}, "art3-sec1", "CONST-1987-ART3-SEC1"),
        ({"article_number": 9, "section_number": "1", "subpart": "B"}, "art9b-sec1", "CONST-1987-ART9B-SEC1"),
        ({"article_number": 1, "section_number": None}, "art1", "CONST-1987-ART1"),
        ({"preamble": True, "article_number": 0, "section_number": 0}, "preamble", "CONST-1987-PREAMBLE"),
        ({"ordinance": True, "article_number": None}, "ordinance", "CONST-1987-ORDINANCE"),
        (ACT_METADATA, "book1-chap1-art2", "ACT-3815-1930-BOOK1-CHAP1-ART2"),
        ({**ACT_METADATA, "section_type": "section", "section_number": "4a"},
         "book1-chap1-sec4a", "ACT-3815-1930-BOOK1-CHAP1-SEC4A"),
        ({**ACT_METADATA, "full_context": [], "section_type": "section"}, "sec2", "ACT-3815-1930-SEC2"),
        ({**ACT_METADATA, "full_context": [{"type": "title", "name": "TITLE IV"}, {"type": "chapter", "name": "CHAPTER PRELIMINARY"}]},
         "title4-chappreliminary-art2", "ACT-3815-1930-TITLE4-CHAPPRELIMINARY-ART2"),
        ({"act_number": "3815", "page_type": "act_link"}, "act3815", "ACT-3815-unknown"),
    ])
    def test_fragment_and_id(self, metadata, fragment, entry_id):
        """Fragments and ids are pure functions of metadata."""
        assert unit_fragment(metadata) == fragment
        assert generate_entry_id(metadata) == entry_id

    def test_entry_types(self):
        """Entry type and subtype follow the unit kind."""
        assert entry_type({"preamble": True}) == ("constitution_provision", "preamble")
        assert entry_type({"article_number": 3, "section_number": "1"}) == ("constitution_provision", "section")
        assert entry_type({"article_number": 1}) == ("constitution_provision", "article")
        assert entry_type(ACT_METADATA) == ("statute_section", "act")


class TestHeadingNumbers:
    """BOOK / TITLE / CHAPTER number decoding."""

    @pytest.mark.parametrize("identifier, expected", [
        ("3", 3),
        ("TWO", 2),
        ("TWENTY-ONE", 21),
        ("FIRST", 1),
        ("IV", 4),
        ("PRELIMINARY", None),
    ])
    def test_heading_number(self, identifier, expected):
        assert heading_number(identifier) == expected
