"""
Structural parsers for LawPhil pages.

PARSER_REGISTRY maps the parser key accepted by the orchestrator (and the
/api/scraping/process endpoint) to the parser class.
"""
from .base import BaseParser, LegalUnit, SequenceCounter
from .constitution import ConstitutionParser
from .acts import ActsParser, ActLink, HeadingToken, tokenize_headings
from .text_fallback import TextFallbackParser

PARSER_REGISTRY = {
    ConstitutionParser.PARSER_KEY: ConstitutionParser,
    ActsParser.PARSER_KEY: ActsParser,
}

__all__ = [
    'BaseParser',
    'LegalUnit',
    'SequenceCounter',
    'ConstitutionParser',
    'ActsParser',
    'ActLink',
    'HeadingToken',
    'tokenize_headings',
    'TextFallbackParser',
    'PARSER_REGISTRY',
]
