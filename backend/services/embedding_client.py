"""
Embedding Client - OpenAI text embeddings for KB entries.

embed(text) -> List[float] using Config.OPENAI_EMBEDDING_MODEL
(text-embedding-3-small by default).
"""

import logging
from typing import List, Optional, Sequence, Union

from config import Config

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Embedding could not be produced."""
    pass


class EmbeddingClient:
    """Callable embedding collaborator for EntryGenerator."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self._api_key = api_key or Config.OPENAI_API_KEY
        self.model = model or Config.OPENAI_EMBEDDING_MODEL
        self._client = client

    @property
    def client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise EmbeddingError("OPENAI_API_KEY not configured")

            try:
                from openai import OpenAI
                self._client = OpenAI(api_key=self._api_key)
            except ImportError:
                raise ImportError("openai package not installed. Run: pip install openai>=1.0")
        return self._client

    def embed(self, text: Union[str, Sequence[str]]) -> List[float]:
        """
        Embed text (a list of strings is joined with blank lines).

        Raises:
            EmbeddingError: Missing key or API failure
        """
        if isinstance(text, (list, tuple)):
            text = "\n\n".join(str(t) for t in text)
        text = str(text or "")

        try:
            response = self.client.embeddings.create(model=self.model, input=text)
        except EmbeddingError:
            raise
        except Exception as e:
            logger.error(f"Embedding API error: {e}")
            raise EmbeddingError(f"Embedding failed: {e}") from e

        return list(response.data[0].embedding)

    __call__ = embed


# Module-level singleton
_embedding_client: Optional[EmbeddingClient] = None


def get_embedding_client() -> EmbeddingClient:
    """Get the singleton EmbeddingClient instance."""
    global _embedding_client
    if _embedding_client is None:
        _embedding_client = EmbeddingClient()
    return _embedding_client
