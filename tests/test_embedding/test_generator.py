"""Tests for the embedding service, repository and generator."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from trendflow.core.errors import MalformedResponseError
from trendflow.embedding.config import EmbeddingConfig
from trendflow.embedding.generator import EmbeddingGenerator
from trendflow.embedding.repository import EmbeddingRepository, PendingPassage
from trendflow.embedding.service import EmbeddingService


def _response(vectors, order=None):
    indices = order or list(range(len(vectors)))
    return SimpleNamespace(
        data=[SimpleNamespace(index=i, embedding=vectors[i]) for i in indices]
    )


def _fake_openai(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.embeddings.create = create
    return client


class TestEmbeddingService:
    """Tests for EmbeddingService."""

    @pytest.mark.asyncio
    async def test_vectors_follow_input_order(self):
        create = AsyncMock(return_value=_response([[1.0], [2.0], [3.0]], order=[2, 0, 1]))
        service = EmbeddingService(EmbeddingConfig(model="m"), client=_fake_openai(create))

        vectors = await service.embed_batch(["a", "b", "c"])

        assert vectors == [[1.0], [2.0], [3.0]]
        create.assert_awaited_once_with(model="m", input=["a", "b", "c"])

    @pytest.mark.asyncio
    async def test_count_mismatch_is_malformed(self):
        create = AsyncMock(return_value=_response([[1.0]]))
        service = EmbeddingService(client=_fake_openai(create))

        with pytest.raises(MalformedResponseError):
            await service.embed_batch(["a", "b"])

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self):
        create = AsyncMock()
        service = EmbeddingService(client=_fake_openai(create))

        assert await service.embed_batch([]) == []
        create.assert_not_awaited()


class TestEmbeddingRepository:
    """Tests for EmbeddingRepository."""

    @pytest.mark.asyncio
    async def test_unembedded_passages(self, mock_database):
        mock_database.fetch.return_value = [{"id": 1, "text": "a"}, {"id": 2, "text": "b"}]

        passages = await EmbeddingRepository(mock_database).get_unembedded_passages("m", 100)

        assert passages == [PendingPassage(1, "a"), PendingPassage(2, "b")]
        assert mock_database.fetch.await_args.args[1:] == ("m", 100)

    @pytest.mark.asyncio
    async def test_save_embeddings_is_conflict_tolerant(self, mock_database):
        saved = await EmbeddingRepository(mock_database).save_embeddings(
            "m", [(1, [0.1, 0.2]), (2, [0.3, 0.4])]
        )

        assert saved == 2
        sql, rows = mock_database.conn.executemany.await_args.args
        assert "ON CONFLICT" in sql
        assert rows == [(1, "m", [0.1, 0.2]), (2, "m", [0.3, 0.4])]

    @pytest.mark.asyncio
    async def test_get_all_embeddings_matrix(self, mock_database):
        mock_database.fetch.return_value = [
            {"passage_id": 4, "vector": [1.0, 0.0]},
            {"passage_id": 7, "vector": [0.0, 1.0]},
        ]

        ids, vectors = await EmbeddingRepository(mock_database).get_all_embeddings("m")

        assert ids == [4, 7]
        assert vectors.shape == (2, 2)
        assert vectors.dtype == np.float64

    @pytest.mark.asyncio
    async def test_get_all_embeddings_empty(self, mock_database):
        ids, vectors = await EmbeddingRepository(mock_database).get_all_embeddings("m")

        assert ids == []
        assert vectors.size == 0


class TestEmbeddingGenerator:
    """Tests for EmbeddingGenerator batching and failure isolation."""

    def _passages(self, n: int) -> list[PendingPassage]:
        return [PendingPassage(id=i, text=f"passage {i}") for i in range(1, n + 1)]

    def _generator(self, repo, service, batch_size: int = 2, sleep=None) -> EmbeddingGenerator:
        config = EmbeddingConfig(model="m", batch_size=batch_size, page_size=100, batch_delay=1.0)
        return EmbeddingGenerator(repo, service, config=config, sleep=sleep or AsyncMock())

    @pytest.mark.asyncio
    async def test_nothing_to_do(self):
        repo = MagicMock()
        repo.get_unembedded_passages = AsyncMock(return_value=[])
        service = MagicMock()
        service.embed_batch = AsyncMock()

        result = await self._generator(repo, service).run()

        assert result.candidates == 0
        assert result.generated == 0
        service.embed_batch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_batches_and_delays(self):
        repo = MagicMock()
        repo.get_unembedded_passages = AsyncMock(return_value=self._passages(5))
        repo.save_embeddings = AsyncMock(side_effect=lambda model, items: len(items))
        service = MagicMock()
        service.embed_batch = AsyncMock(side_effect=lambda texts: [[0.0]] * len(texts))
        sleep = AsyncMock()

        result = await self._generator(repo, service, sleep=sleep).run()

        assert result.candidates == 5
        assert result.generated == 5
        assert service.embed_batch.await_count == 3
        assert sleep.await_count == 2
        repo.get_unembedded_passages.assert_awaited_once_with("m", 100)

    @pytest.mark.asyncio
    async def test_failed_batch_keeps_earlier_batches(self):
        repo = MagicMock()
        repo.get_unembedded_passages = AsyncMock(return_value=self._passages(6))
        repo.save_embeddings = AsyncMock(side_effect=lambda model, items: len(items))
        service = MagicMock()
        service.embed_batch = AsyncMock(
            side_effect=[[[0.1], [0.2]], RuntimeError("model offline"), [[0.5], [0.6]]]
        )

        result = await self._generator(repo, service).run()

        assert result.generated == 4
        assert result.failed_batches == 1
        saved_ids = [
            [pid for pid, _ in call.args[1]] for call in repo.save_embeddings.await_args_list
        ]
        assert saved_ids == [[1, 2], [5, 6]]
