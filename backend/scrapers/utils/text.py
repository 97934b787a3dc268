"""
HTML-to-text rendering shared by the parsers and metadata extraction.

Block-level elements and <br> become line breaks so that headings such as
"ARTICLE III" or "Section 1." land at the start of a line; inline markup
(<b>, <i>, <a>, ...) is flattened in place.
"""
import re

from bs4 import BeautifulSoup

BLOCK_TAGS = [
    "p", "div", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "ul", "ol", "tr", "table", "blockquote", "pre",
    "center", "section", "article", "hr", "dd", "dt",
]

_SPACES_RE = re.compile(r"[ \t]+")


def html_to_text(html: str) -> str:
    """
    Render HTML as newline-separated plain text.

    Scripts, styles and noscript blocks are dropped. Non-breaking spaces
    become plain spaces and line endings are normalized to "\\n".
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before("\n")
        tag.insert_after("\n")

    root = soup.body or soup
    text = root.get_text()
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")


def collapse_spaces(text: str) -> str:
    """Collapse runs of spaces and tabs, keeping line breaks."""
    return _SPACES_RE.sub(" ", text or "")
