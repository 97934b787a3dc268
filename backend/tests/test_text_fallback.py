"""Tests for the flat-text fallback parser."""

from scrapers.citation import normalize_unit
from scrapers.parsers.text_fallback import TextFallbackParser, flatten_html

URL = "https://lawphil.net/consti/cons1987.html"


class TestFlattenHtml:
    """Tag stripping and whitespace normalization."""

    def test_scripts_and_tags_removed(self):
        """Script bodies and tags disappear; text survives."""
        text = flatten_html("<script>var x = 1;</script><p>ARTICLE II</p><b>bold</b>")
        assert "var x" not in text
        assert "ARTICLE II" in text
        assert "<" not in text

    def test_blank_lines_collapsed(self):
        """Runs of newlines and spaces collapse."""
        assert flatten_html("<p>a</p>\n\n<p>b   c</p>") == "a\nb c"


class TestTextFallbackParser:
    """ARTICLE blocks split at Section markers."""

    def test_inline_sections_split(self):
        """Sections on one line are separated."""
        html = (
            "<div>ARTICLE II<br>Section 1. The Philippines is a democratic and republican State. "
            "Section 2. The Philippines renounces war as an instrument of national policy.</div>"
        )
        units = TextFallbackParser().parse(URL, html)

        assert [(u.metadata["article_number"], u.metadata["section_number"]) for u in units] == [(2, "1"), (2, "2")]
        assert units[0].extracted_text == "The Philippines is a democratic and republican State."
        assert units[1].metadata["title"] == "Section 2"
        assert units[1].metadata["article_title"] == ""
        assert units[1].metadata["topics"] == []

    def test_multiple_articles(self):
        """Each ARTICLE block is processed in order."""
        html = (
            "<p>ARTICLE IV</p><p>Section 1. The following are citizens of the Philippines.</p>"
            "<p>ARTICLE V</p><p>Section 1. Suffrage may be exercised by all citizens.</p>"
        )
        units = TextFallbackParser().parse(URL, html)

        assert [u.metadata["article_number"] for u in units] == [4, 5]
        assert [u.sequence_index for u in units] == [0, 1]
        assert units[1].canonical_url == f"{URL}#article-5-section-1"

    def test_no_articles(self):
        """Pages without ARTICLE headings yield nothing."""
        assert TextFallbackParser().parse(URL, "<p>Section 1. Orphan section text.</p>") == []

    def test_citation_has_no_article_title(self):
        """Fallback units cite the article numeral and section only."""
        html = "<div>ARTICLE II<br>Section 2. The Philippines renounces war as an instrument of national policy.</div>"
        units = TextFallbackParser().parse(URL, html)

        assert normalize_unit(units[0]).title == "1987 Constitution, Article II, Section 2"
