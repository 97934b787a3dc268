"""
Enrichment Client - Claude-backed semantic enrichment of KB entry drafts.

Takes a draft {title, text, canonical_citation, type, subtype} and returns
EnrichedFields: summary, tags, topics, jurisprudence, related laws and
the type-specific analysis fields.

The model is asked for JSON only. The response is parsed, sanitized
(no braces or quotes inside values, no ART/SEC abbreviations, "NA" for
missing strings) and validated with pydantic.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from config import Config

logger = logging.getLogger(__name__)


class EnrichmentError(Exception):
    """Enrichment could not be produced for an entry."""
    pass


NA = "NA"
MAX_PROMPT_TEXT_CHARS = 3000

SYSTEM_PROMPT = (
    "You are a legal expert specializing in Philippine law. Provide accurate, "
    "specific and comprehensive analysis of legal provisions in JSON format only."
)

TYPE_INSTRUCTIONS = {
    "constitution_provision": """CONSTITUTION PROVISION ANALYSIS:
- Focus on constitutional principles, rights, and governmental structure
- Identify fundamental rights, state policies, and institutional frameworks
- Note any procedural requirements for constitutional amendments
- Identify any transitional or temporary provisions""",
    "statute_section": """STATUTE SECTION ANALYSIS:
- Focus on specific legal requirements, procedures, and obligations
- Identify who is subject to the law and what is required or prohibited
- Look for penalties, enforcement mechanisms, and compliance requirements
- Note any deadlines, time limits, exemptions, or defenses""",
}

STRING_FIELDS = [
    "summary", "jurisdiction", "law_family", "applicability", "penalties",
    "defenses", "time_limits", "required_forms", "elements", "triggers",
    "rights_callouts", "rights_scope", "advice_points", "jurisprudence",
    "legal_bases",
]
LIST_FIELDS = ["topics", "tags", "key_concepts", "related_sections", "related_laws"]


def sanitize_string(value: Any) -> str:
    """Strip braces/quotes, expand ART/SEC abbreviations, NA when empty."""
    if value is None or isinstance(value, (dict, list)):
        return NA
    s = re.sub(r'[{}"]+', "", str(value)).strip()
    s = re.sub(r"\bART\.?\s*(\d+)\b", r"Article \1", s, flags=re.IGNORECASE)
    s = re.sub(r"\bSEC\.?\s*(\d+)\b", r"Section \1", s, flags=re.IGNORECASE)
    return s or NA


def sanitize_list(value: Any) -> List[Any]:
    """Sanitize string items and drop NA/empty ones."""
    if not isinstance(value, list):
        return []
    items = [sanitize_string(v) if isinstance(v, str) else v for v in value]
    return [v for v in items if v is not None and v != NA and str(v).strip() != ""]


class EnrichedFields(BaseModel):
    """Validated enrichment payload."""
    model_config = ConfigDict(extra="ignore")

    summary: str = NA
    topics: List[str] = []
    tags: List[str] = []
    jurisdiction: str = "Philippines"
    law_family: str = NA
    key_concepts: List[str] = []
    applicability: str = NA
    penalties: str = NA
    defenses: str = NA
    time_limits: str = NA
    required_forms: str = NA
    related_sections: List[str] = []
    related_laws: List[str] = []
    elements: str = NA
    triggers: str = NA
    rights_callouts: str = NA
    rights_scope: str = NA
    advice_points: str = NA
    jurisprudence: str = NA
    legal_bases: str = NA

    @field_validator(*STRING_FIELDS, mode="before")
    @classmethod
    def _clean_string(cls, v):
        return sanitize_string(v)

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _clean_list(cls, v):
        return [str(item) for item in sanitize_list(v)]


def build_prompt(draft: Dict[str, Any]) -> str:
    """User prompt for one draft entry."""
    text = draft.get("text") or ""
    if len(text) > MAX_PROMPT_TEXT_CHARS:
        text = text[:MAX_PROMPT_TEXT_CHARS] + "..."
    instructions = TYPE_INSTRUCTIONS.get(draft.get("type"), TYPE_INSTRUCTIONS["constitution_provision"])
    fields = ", ".join(STRING_FIELDS + LIST_FIELDS)

    return f"""Analyze this Philippine legal provision and return enriched metadata.

ENTRY DETAILS:
- Title: {draft.get('title')}
- Type: {draft.get('type')}
- Subtype: {draft.get('subtype')}
- Citation: {draft.get('canonical_citation')}
- Content: {text}

{instructions}

Return ONLY a JSON object with these keys: {fields}.
{', '.join(LIST_FIELDS)} are arrays of strings; every other key is a string.

RULES:
- No quotation marks or curly braces inside string values
- Do not abbreviate: write "Article 1", "Section 3"
- Use the literal string "NA" for string fields that do not apply; arrays may be empty
- Cite real, verifiable Philippine laws and cases only"""


def _extract_json(raw: str) -> Dict[str, Any]:
    """Parse the model reply, tolerating a fenced ```json block."""
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", raw)
    payload = fenced.group(1) if fenced else raw
    start, end = payload.find("{"), payload.rfind("}")
    if start == -1 or end == -1:
        raise EnrichmentError("Enrichment response contained no JSON object")
    try:
        return json.loads(payload[start:end + 1])
    except json.JSONDecodeError as e:
        raise EnrichmentError(f"Enrichment response was not valid JSON: {e}") from e


class EnrichmentClient:
    """
    Callable enrichment collaborator for EntryGenerator.

    Uses the Anthropic Claude API (Config.AI_MODEL).
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self._api_key = api_key or Config.ANTHROPIC_API_KEY
        self.model = model or Config.AI_MODEL
        self._client = client

    @property
    def client(self):
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise EnrichmentError("ANTHROPIC_API_KEY not configured")

            try:
                import anthropic
                self._client = anthropic.Anthropic(api_key=self._api_key)
            except ImportError:
                raise ImportError("anthropic package not installed. Run: pip install anthropic>=0.49.0")
        return self._client

    def enrich(self, draft: Dict[str, Any]) -> Dict[str, Any]:
        """
        Enrich one draft entry.

        Returns:
            EnrichedFields as a plain dict

        Raises:
            EnrichmentError: Missing key, API failure, or unusable response
        """
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=Config.AI_MAX_TOKENS,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_prompt(draft)}],
            )
        except EnrichmentError:
            raise
        except Exception as e:
            logger.error(f"Enrichment API error for {draft.get('canonical_citation')}: {e}")
            raise EnrichmentError(f"Enrichment failed: {e}") from e

        data = _extract_json(response.content[0].text)
        try:
            return EnrichedFields(**data).model_dump()
        except ValidationError as e:
            raise EnrichmentError(f"Enrichment response failed validation: {e}") from e

    __call__ = enrich


# Module-level singleton
_enrichment_client: Optional[EnrichmentClient] = None


def get_enrichment_client() -> EnrichmentClient:
    """Get the singleton EnrichmentClient instance."""
    global _enrichment_client
    if _enrichment_client is None:
        _enrichment_client = EnrichmentClient()
    return _enrichment_client
