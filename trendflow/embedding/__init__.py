"""Passage chunking and embedding generation."""

from trendflow.embedding.chunking import split_into_passages, split_sentences
from trendflow.embedding.config import EmbeddingConfig
from trendflow.embedding.generator import EmbeddingGenerator, EmbeddingResult
from trendflow.embedding.repository import EmbeddingRepository, PendingPassage
from trendflow.embedding.service import EmbeddingService

__all__ = [
    "EmbeddingConfig",
    "EmbeddingGenerator",
    "EmbeddingRepository",
    "EmbeddingResult",
    "EmbeddingService",
    "PendingPassage",
    "split_into_passages",
    "split_sentences",
]
