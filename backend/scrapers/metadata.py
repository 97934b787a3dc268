"""
Structural metadata extraction for fetched pages.

Best effort: extract_metadata() never raises. Any failure is logged as a
warning and the result degrades to empty structures.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from .utils.text import html_to_text

logger = logging.getLogger(__name__)


ARTICLE_PATTERN = re.compile(r"ARTICLE\s+([IVX]+|\d+)\b\s*[-–]?\s*([^\n\r]*)", re.IGNORECASE)
SECTION_PATTERN = re.compile(r"Section\s+(\d+[A-Za-z]?)\.?\s*([^\n\r]+)", re.IGNORECASE)
ORDINANCE_PATTERN = re.compile(
    r"(City|Municipal|Barangay)\s+Ordinance[\s\S]*?(?=ARTICLE|Section|\Z)", re.IGNORECASE
)
PREAMBLE_PATTERN = re.compile(r"PREAMBLE[\s\S]*?(?=ARTICLE|\Z)", re.IGNORECASE)


def _class_name(tag) -> Optional[str]:
    classes = tag.get("class") or []
    return " ".join(classes) or None


def _text(tag) -> str:
    return tag.get_text().strip()


def extract_legal_patterns(text: str) -> Dict[str, List[Dict[str, Any]]]:
    """Positions of article, section, ordinance and preamble markers in text."""
    return {
        "articles": [
            {"number": m.group(1), "title": m.group(2).strip(), "position": m.start()}
            for m in ARTICLE_PATTERN.finditer(text)
        ],
        "sections": [
            {"number": m.group(1), "title": m.group(2).strip(), "position": m.start()}
            for m in SECTION_PATTERN.finditer(text)
        ],
        "ordinances": [
            {"type": m.group(1), "content": m.group(0).strip(), "position": m.start()}
            for m in ORDINANCE_PATTERN.finditer(text)
        ],
        "preambles": [
            {"content": m.group(0).strip(), "position": m.start()}
            for m in PREAMBLE_PATTERN.finditer(text)
        ],
    }


def extract_structured_data(soup: BeautifulSoup, full_text: str) -> Dict[str, Any]:
    """Headings, paragraphs, lists, tables, links, emphasis and text stats."""
    data: Dict[str, Any] = {}

    data["headings"] = [
        {
            "level": int(h.name[1]),
            "text": _text(h),
            "id": h.get("id"),
            "class_name": _class_name(h),
            "parent_tag": h.parent.name if h.parent else None,
        }
        for h in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
    ]

    data["paragraphs"] = [
        {
            "text": _text(p),
            "class_name": _class_name(p),
            "parent_tag": p.parent.name if p.parent else None,
        }
        for p in soup.find_all("p")
    ]

    data["lists"] = [
        {
            "type": lst.name,
            "class_name": _class_name(lst),
            "items": [
                {
                    "text": _text(li),
                    "class_name": _class_name(li),
                    "sublists": [
                        {"type": sub.name, "items": [_text(x) for x in sub.find_all("li")]}
                        for sub in li.find_all(["ul", "ol"])
                    ],
                }
                for li in lst.find_all("li")
            ],
        }
        for lst in soup.find_all(["ul", "ol"])
    ]

    data["tables"] = [
        {
            "class_name": _class_name(table),
            "headers": [_text(th) for th in table.find_all("th")],
            "rows": [[_text(cell) for cell in tr.find_all(["td", "th"])] for tr in table.find_all("tr")],
        }
        for table in soup.find_all("table")
    ]

    data["links"] = [
        {
            "text": _text(a),
            "href": a.get("href"),
            "title": a.get("title"),
            "class_name": _class_name(a),
        }
        for a in soup.find_all("a")
    ]

    data["emphasis"] = [
        {"tag": el.name, "text": _text(el), "class_name": _class_name(el)}
        for el in soup.find_all(["b", "i", "em", "strong", "u"])
    ]

    data["divs"] = [
        {"text": _text(div), "class_name": _class_name(div), "id": div.get("id")}
        for div in soup.find_all("div")
        if len(_text(div)) > 20
    ]

    data["spans"] = [
        {"text": _text(span), "class_name": _class_name(span), "id": span.get("id")}
        for span in soup.find_all("span")
        if len(_text(span)) > 10
    ]

    data["full_text"] = {
        "content": full_text,
        "length": len(full_text),
        "word_count": len(full_text.split()),
        "line_count": len(full_text.split("\n")),
    }

    data["legal_patterns"] = extract_legal_patterns(full_text)
    return data


def extract_metadata(html: str, url: str) -> Dict[str, Any]:
    """
    Extract page title, description and structured data.

    Args:
        html: Raw HTML
        url: Page URL

    Returns:
        {title, description, url, extracted_at, structured_data}
    """
    extracted_at = datetime.now(timezone.utc).isoformat()
    try:
        soup = BeautifulSoup(html, "html.parser")
        title = soup.title.get_text().strip() if soup.title else ""
        description_tag = soup.find("meta", attrs={"name": "description"})
        description = description_tag.get("content", "") if description_tag else ""

        return {
            "title": title,
            "description": description,
            "url": url,
            "extracted_at": extracted_at,
            "structured_data": extract_structured_data(soup, html_to_text(html)),
        }
    except Exception as e:
        logger.warning(f"Failed to extract metadata from {url}: {e}")
        return {
            "title": "",
            "description": "",
            "url": url,
            "extracted_at": extracted_at,
            "structured_data": {},
        }
