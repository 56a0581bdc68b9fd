"""In-memory vector store with exact cosine similarity search."""

import logging
import math
from typing import Optional, Sequence

from .document import Chunk, SearchResult

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Calculate cosine similarity between two vectors.

    Returns 0.0 for vectors of different length or with zero norm, so one bad
    vector lowers a chunk's rank instead of failing the whole query.
    """
    if len(a) != len(b):
        return 0.0

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Clamp floating point drift
    return max(-1.0, min(1.0, dot_product / (norm_a * norm_b)))


class MemoryVectorStore:
    """In-memory store holding chunks and their embeddings.

    The store is filled once and then only read, so concurrent searches need
    no locking.
    """

    def __init__(self, chunks: Optional[list[Chunk]] = None) -> None:
        """Initialize the memory vector store.

        Args:
            chunks: Chunks to hold, in original order
        """
        self._chunks: list[Chunk] = []
        if chunks:
            self.add(chunks)

    def add(self, chunks: list[Chunk]) -> list[str]:
        """Add chunks (with or without embeddings) to the store."""
        self._chunks.extend(chunks)
        logger.debug(f"Added {len(chunks)} chunks to memory store")
        return [chunk.id for chunk in chunks]

    async def search(
        self,
        query_embedding: list[float],
        k: int = 5,
    ) -> list[SearchResult]:
        """Search embedded chunks by cosine similarity, best first."""
        if k <= 0 or not query_embedding:
            return []

        similarities = [
            SearchResult(chunk=chunk, score=cosine_similarity(query_embedding, chunk.embedding))
            for chunk in self._chunks
            if chunk.has_embedding
        ]
        similarities.sort(key=lambda result: result.score, reverse=True)
        return similarities[:k]

    @property
    def chunks(self) -> list[Chunk]:
        return list(self._chunks)

    def count(self) -> int:
        """Return the number of chunks."""
        return len(self._chunks)

    def count_embedded(self) -> int:
        """Return the number of chunks carrying an embedding."""
        return sum(1 for chunk in self._chunks if chunk.has_embedding)

    def has_embeddings(self) -> bool:
        return any(chunk.has_embedding for chunk in self._chunks)

    def is_fully_embedded(self) -> bool:
        return bool(self._chunks) and all(chunk.has_embedding for chunk in self._chunks)
