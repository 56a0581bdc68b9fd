"""Retriever implementations."""

import logging
from typing import Optional

from .base import BaseEmbedding, BaseRetriever
from .document import SearchResult
from .index import ChunkIndex, build_index, score_by_keywords
from .vectorstore import MemoryVectorStore

logger = logging.getLogger(__name__)


class VectorRetriever(BaseRetriever):
    """Vector similarity retriever.

    Retrieves chunks based on embedding similarity.
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        vectorstore: MemoryVectorStore,
    ):
        """Initialize the vector retriever.

        Args:
            embedding: Embedding model for queries
            vectorstore: Vector store to search
        """
        self.embedding = embedding
        self.vectorstore = vectorstore

    async def retrieve(self, query: str, k: int = 5) -> list[SearchResult]:
        """Retrieve chunks using cosine similarity."""
        if k <= 0:
            return []

        query_embedding = await self.embedding.embed_query(query)
        return await self.vectorstore.search(query_embedding, k)


class KeywordRetriever(BaseRetriever):
    """Keyword retriever over a ChunkIndex.

    Scores chunks by the number of distinct query keywords they contain.
    Chunks without any match are never returned.
    """

    def __init__(self, index: ChunkIndex):
        """Initialize the keyword retriever.

        Args:
            index: Chunk index to search
        """
        self.index = index

    async def retrieve(self, query: str, k: int = 5) -> list[SearchResult]:
        """Retrieve chunks by keyword overlap."""
        if k <= 0:
            return []
        return score_by_keywords(self.index, query)[:k]


class FallbackRetriever(BaseRetriever):
    """Embedding retriever with keyword fallback.

    Uses vector search when an embedding model is available and at least one
    chunk is embedded, otherwise keyword search. When only part of the chunk
    set is embedded (a failed embedding batch), open slots are filled with
    keyword matches among the chunks that have no embedding.
    """

    def __init__(
        self,
        index: ChunkIndex,
        vectorstore: MemoryVectorStore,
        embedding: Optional[BaseEmbedding] = None,
    ):
        """Initialize the fallback retriever.

        Args:
            index: Chunk index used for keyword search
            vectorstore: Vector store holding the same chunks
            embedding: Embedding model for queries (None for keyword only)
        """
        self.keyword_retriever = KeywordRetriever(index)
        self.vector_retriever = (
            VectorRetriever(embedding, vectorstore) if embedding is not None else None
        )
        self.vectorstore = vectorstore

        self._unembedded: Optional[KeywordRetriever] = None
        if self.uses_embeddings and not vectorstore.is_fully_embedded():
            self._unembedded = KeywordRetriever(
                build_index([chunk for chunk in vectorstore.chunks if not chunk.has_embedding])
            )

    @property
    def uses_embeddings(self) -> bool:
        return self.vector_retriever is not None and self.vectorstore.has_embeddings()

    async def retrieve(self, query: str, k: int = 5) -> list[SearchResult]:
        """Retrieve chunks, preferring embedding similarity."""
        if k <= 0:
            return []

        if not self.uses_embeddings:
            logger.debug("Using keyword search")
            return await self.keyword_retriever.retrieve(query, k)

        logger.debug("Using embedding search")
        results = await self.vector_retriever.retrieve(query, k)
        if len(results) < k and self._unembedded is not None:
            results.extend(await self._unembedded.retrieve(query, k - len(results)))
        return results
