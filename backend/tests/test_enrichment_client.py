"""
Tests for the enrichment and embedding clients.

API clients are injected as mocks; no network calls are made.
"""

import json
from unittest.mock import MagicMock

import pytest

from config import Config
from services.embedding_client import EmbeddingClient, EmbeddingError
from services.enrichment_client import (
    NA,
    EnrichedFields,
    EnrichmentClient,
    EnrichmentError,
    _extract_json,
    build_prompt,
    sanitize_list,
    sanitize_string,
)

DRAFT = {
    "title": "1987 Constitution, Article III, BILL OF RIGHTS, Section 1",
    "text": "No person shall be deprived of life, liberty, or property without due process of law.",
    "canonical_citation": "1987 Constitution, Article III, BILL OF RIGHTS, Section 1",
    "type": "constitution_provision",
    "subtype": "section",
}


def anthropic_reply(text):
    client = MagicMock()
    client.messages.create.return_value.content = [MagicMock(text=text)]
    return client


# =============================================================================
# Sanitization
# =============================================================================

class TestSanitize:
    """Value cleanup applied to every enriched field."""

    def test_braces_and_quotes_stripped(self):
        assert sanitize_string('{"due process"}') == "due process"

    def test_abbreviations_expanded(self):
        """ART/SEC abbreviations become full words."""
        assert sanitize_string("See ART. 3 SEC 1") == "See Article 3 Section 1"

    def test_empty_becomes_na(self):
        assert sanitize_string("") == NA
        assert sanitize_string(None) == NA
        assert sanitize_string({"nested": True}) == NA

    def test_list_drops_na_items(self):
        """NA and blank items are removed from lists."""
        assert sanitize_list(["due process", "", "NA", '"privacy"']) == ["due process", "privacy"]
        assert sanitize_list("not a list") == []

    def test_enriched_fields_defaults(self):
        """Missing fields default to NA / empty lists; unknown keys are ignored."""
        fields = EnrichedFields(summary="Due process clause", tags=["rights"], bogus="x")

        assert fields.summary == "Due process clause"
        assert fields.penalties == NA
        assert fields.jurisdiction == "Philippines"
        assert fields.related_laws == []
        assert "bogus" not in fields.model_dump()


# =============================================================================
# Prompt / response parsing
# =============================================================================

class TestPromptAndParsing:
    def test_prompt_includes_draft(self):
        """The prompt names the citation and type-specific instructions."""
        prompt = build_prompt(DRAFT)
        assert DRAFT["canonical_citation"] in prompt
        assert "CONSTITUTION PROVISION ANALYSIS" in prompt

    def test_prompt_truncates_long_text(self):
        prompt = build_prompt({**DRAFT, "text": "x" * 5000, "type": "statute_section"})
        assert "x" * 3000 + "..." in prompt
        assert "x" * 3001 not in prompt
        assert "STATUTE SECTION ANALYSIS" in prompt

    def test_fenced_json(self):
        """A ```json fenced reply is unwrapped."""
        raw = 'Here you go:\n```json\n{"summary": "ok"}\n```'
        assert _extract_json(raw) == {"summary": "ok"}

    def test_bare_json_with_prose(self):
        assert _extract_json('Result: {"tags": ["a"]} done') == {"tags": ["a"]}

    def test_no_json(self):
        with pytest.raises(EnrichmentError, match="no JSON"):
            _extract_json("I cannot help with that.")

    def test_invalid_json(self):
        with pytest.raises(EnrichmentError, match="not valid JSON"):
            _extract_json("{summary: ok}")


# =============================================================================
# Clients
# =============================================================================

class TestEnrichmentClient:
    """Anthropic-backed enrichment."""

    def test_enrich(self):
        """The reply is parsed and sanitized into a full field dict."""
        reply = json.dumps({"summary": "Guarantees {due} process.", "tags": ["due process", "NA"]})
        api = anthropic_reply(reply)

        result = EnrichmentClient(api_key="test", model="test-model", client=api)(DRAFT)

        assert result["summary"] == "Guarantees due process."
        assert result["tags"] == ["due process"]
        assert result["advice_points"] == NA
        kwargs = api.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][0]["role"] == "user"

    def test_api_error_wrapped(self):
        """API failures surface as EnrichmentError."""
        api = MagicMock()
        api.messages.create.side_effect = RuntimeError("overloaded")

        with pytest.raises(EnrichmentError, match="overloaded"):
            EnrichmentClient(api_key="test", client=api).enrich(DRAFT)

    def test_missing_key(self, monkeypatch):
        """No key configured means no client."""
        monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", None)

        with pytest.raises(EnrichmentError, match="ANTHROPIC_API_KEY"):
            EnrichmentClient().enrich(DRAFT)


class TestEmbeddingClient:
    """OpenAI-backed embeddings."""

    def test_embed(self):
        api = MagicMock()
        api.embeddings.create.return_value.data = [MagicMock(embedding=[0.5, 0.25])]

        vector = EmbeddingClient(api_key="test", model="embed-model", client=api)("Section body")

        assert vector == [0.5, 0.25]
        api.embeddings.create.assert_called_once_with(model="embed-model", input="Section body")

    def test_list_input_joined(self):
        """Lists are joined with blank lines before embedding."""
        api = MagicMock()
        api.embeddings.create.return_value.data = [MagicMock(embedding=[1.0])]

        EmbeddingClient(api_key="test", client=api).embed(["first", "second"])

        assert api.embeddings.create.call_args.kwargs["input"] == "first\n\nsecond"

    def test_api_error_wrapped(self):
        api = MagicMock()
        api.embeddings.create.side_effect = RuntimeError("quota")

        with pytest.raises(EmbeddingError, match="quota"):
            EmbeddingClient(api_key="test", client=api).embed("text")

    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr(Config, "OPENAI_API_KEY", None)

        with pytest.raises(EmbeddingError, match="OPENAI_API_KEY"):
            EmbeddingClient().embed("text")
