"""
Embedding generator: vectors for passages that do not have one yet.

Work is re-derived from persisted state on every run, so a run that
ingested nothing still picks up passages left over from earlier runs.
"""

import asyncio
import time
from dataclasses import dataclass

import structlog

from trendflow.embedding.config import EmbeddingConfig
from trendflow.embedding.repository import EmbeddingRepository, PendingPassage
from trendflow.embedding.service import EmbeddingService
from trendflow.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


@dataclass
class EmbeddingResult:
    candidates: int = 0
    generated: int = 0
    failed_batches: int = 0
    elapsed_seconds: float = 0.0


class EmbeddingGenerator:
    """
    Embeds one page of unembedded passages in fixed-size batches.

    A failed batch is logged and skipped; batches already persisted stay
    persisted.

    Usage:
        generator = EmbeddingGenerator(EmbeddingRepository(db), EmbeddingService())
        result = await generator.run()
    """

    def __init__(
        self,
        repository: EmbeddingRepository,
        service: EmbeddingService | None = None,
        config: EmbeddingConfig | None = None,
        sleep=asyncio.sleep,
    ):
        self._repo = repository
        self._config = config or EmbeddingConfig()
        self._service = service or EmbeddingService(self._config)
        self._sleep = sleep
        self._metrics = get_metrics()

    @property
    def model(self) -> str:
        return self._config.model

    def _batches(self, passages: list[PendingPassage]) -> list[list[PendingPassage]]:
        size = self._config.batch_size
        return [passages[i:i + size] for i in range(0, len(passages), size)]

    async def run(self) -> EmbeddingResult:
        start = time.monotonic()
        result = EmbeddingResult()

        passages = await self._repo.get_unembedded_passages(self.model, self._config.page_size)
        result.candidates = len(passages)
        if not passages:
            logger.info("No passages awaiting embeddings", model=self.model)
            return result

        batches = self._batches(passages)
        for number, batch in enumerate(batches, start=1):
            try:
                vectors = await self._service.embed_batch([p.text for p in batch])
                saved = await self._repo.save_embeddings(
                    self.model,
                    [(p.id, vector) for p, vector in zip(batch, vectors)],
                )
            except Exception as e:
                logger.error(
                    "Embedding batch failed, skipping",
                    batch=number,
                    batches=len(batches),
                    size=len(batch),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                result.failed_batches += 1
                self._metrics.embedding_batch_failures.inc()
            else:
                result.generated += saved
                self._metrics.embeddings_generated.labels(model=self.model).inc(saved)
                logger.debug("Embedding batch stored", batch=number, size=saved)

            if number < len(batches) and self._config.batch_delay > 0:
                await self._sleep(self._config.batch_delay)

        result.elapsed_seconds = time.monotonic() - start
        logger.info(
            "Embedding complete",
            model=self.model,
            candidates=result.candidates,
            generated=result.generated,
            failed_batches=result.failed_batches,
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result
