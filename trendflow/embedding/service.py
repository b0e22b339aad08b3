"""
Embedding API client.

Wraps an OpenAI-compatible embeddings endpoint. The SDK is imported and
the client constructed on first use, so importing this module never
requires credentials.
"""

import logging
from typing import Any

from trendflow.core.errors import MalformedResponseError
from trendflow.embedding.config import EmbeddingConfig

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    One ``embeddings.create`` call per batch of texts.

    Usage:
        service = EmbeddingService(EmbeddingConfig())
        vectors = await service.embed_batch(["first passage", "second passage"])
    """

    def __init__(self, config: EmbeddingConfig | None = None, client: Any = None) -> None:
        self._config = config or EmbeddingConfig()
        self._client = client

    @property
    def model(self) -> str:
        return self._config.model

    def _get_client(self) -> Any:
        """Lazy-initialize the OpenAI async client."""
        if self._client is None:
            import openai

            api_key = self._config.api_key
            self._client = openai.AsyncOpenAI(
                api_key=api_key.get_secret_value() if api_key else "not-needed",
                base_url=self._config.api_url,
                timeout=self._config.timeout,
                max_retries=self._config.max_retries,
            )
        return self._client

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts in one request.

        Returns:
            One vector per input text, in input order

        Raises:
            MalformedResponseError: If the response does not carry one
                vector per input
        """
        if not texts:
            return []

        response = await self._get_client().embeddings.create(
            model=self._config.model,
            input=texts,
        )
        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts):
            raise MalformedResponseError(
                f"Expected {len(texts)} embeddings, got {len(data)}"
            )
        return [list(item.embedding) for item in data]
