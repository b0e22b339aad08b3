"""Chat-completion client for direction analysis.

Calls an OpenAI-compatible endpoint (DeepSeek by default) through a
circuit breaker. The SDK import is deferred to first use so that the
package imports without credentials.
"""

import logging
import re
from typing import Any

from trendflow.core.circuit_breaker import GenericCircuitBreaker
from trendflow.core.errors import ConfigurationMissingError
from trendflow.topics.config import DirectionConfig
from trendflow.topics.parsing import parse_directions
from trendflow.topics.prompts import SYSTEM_PROMPT, build_analysis_prompt
from trendflow.topics.schemas import Direction

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class DirectionClient:
    """Turns a handful of cluster passages into structured directions.

    Args:
        config: Direction configuration with endpoint, key and limits.
        client: Optional pre-built ``AsyncOpenAI``-compatible client.
    """

    def __init__(self, config: DirectionConfig | None = None, client: Any = None) -> None:
        self._config = config or DirectionConfig()
        self._client = client
        self._breaker = GenericCircuitBreaker(
            failure_threshold=self._config.circuit_failure_threshold,
            recovery_timeout=self._config.circuit_recovery_timeout,
            name="direction_llm",
        )

    @property
    def breaker(self) -> GenericCircuitBreaker:
        return self._breaker

    def _get_client(self) -> Any:
        """Lazy-initialize the OpenAI async client."""
        if self._client is None:
            api_key = self._config.api_key
            if api_key is None or not api_key.get_secret_value():
                raise ConfigurationMissingError("DIRECTION_API_KEY is not set")

            import openai

            self._client = openai.AsyncOpenAI(
                api_key=api_key.get_secret_value(),
                base_url=self._config.api_url,
                timeout=self._config.timeout,
            )
        return self._client

    def prepare_passages(self, passages: list[str]) -> list[str]:
        """Collapse whitespace, drop blanks, keep the first N and truncate each."""
        limit = self._config.passage_char_limit
        cleaned = [_WHITESPACE_RE.sub(" ", text or "").strip() for text in passages]
        kept = [text for text in cleaned if text][: self._config.passage_limit]
        return [f"{text[:limit]}..." if len(text) > limit else text for text in kept]

    async def analyze_directions(
        self,
        passages: list[str],
        cluster_info: dict[str, Any] | None = None,
    ) -> list[Direction]:
        """Ask the model for directions over these passages.

        Args:
            passages: Raw example passage texts.
            cluster_info: Optional stats (``count``, ``cluster_id``) for the prompt.

        Returns:
            Normalized directions (possibly empty when every entry lacked a title).

        Raises:
            ConfigurationMissingError: If no API key is configured.
            MalformedResponseError: If the response cannot be recovered.
            CircuitOpenError: If recent calls kept failing.
        """
        prompt = build_analysis_prompt(self.prepare_passages(passages), cluster_info)
        client = self._get_client()

        async def _call() -> str:
            response = await client.chat.completions.create(
                model=self._config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
            )
            if not response.choices:
                return ""
            return response.choices[0].message.content or ""

        content = await self._breaker.call(_call)
        return parse_directions(content)

    async def close(self) -> None:
        """Clean up the SDK client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
