"""Scraper utility functions."""

from .hashing import compute_content_hash, compute_unit_hash
from .numerals import roman_to_int, to_roman
from .text import collapse_spaces, html_to_text

__all__ = [
    "compute_content_hash",
    "compute_unit_hash",
    "roman_to_int",
    "to_roman",
    "collapse_spaces",
    "html_to_text",
]
