"""Lease RAG system: chunking, indexing, embedding and retrieval in one place."""

from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from leasewise.utils.config import RAGConfig
from leasewise.utils.logging import get_logger, set_log_level

from .base import BaseChunker, BaseEmbedding
from .chunking import PageChunker
from .document import (
    Chunk,
    ChunkView,
    PageText,
    PersistedChunk,
    RAGStats,
    SearchResult,
    SourceAttribution,
)
from .embeddings import create_embedding, embed_chunks
from .exceptions import (
    ConfigurationError,
    EmbeddingBatchError,
    MalformedRebuildInputError,
    NotInitializedError,
)
from .index import ChunkIndex, build_index
from .retriever import FallbackRetriever
from .vectorstore import MemoryVectorStore

logger = get_logger(__name__)

PageInput = Union[PageText, Mapping[str, Any]]
RecordInput = Union[PersistedChunk, Mapping[str, Any]]


class LeaseRAGSystem:
    """RAG system over a single lease document.

    Turns extracted page text into page-aware chunks, optionally embeds them,
    and answers retrieval queries so callers can cite exact lease text and
    page numbers.

    The system is built exactly once, either by ``initialize`` or by
    ``from_persisted_chunks``, and is read-only afterwards. Query methods
    never mutate state and may be awaited concurrently.

    Example:
        ```python
        rag = LeaseRAGSystem(embedding=OpenAIEmbedding())
        await rag.initialize(pages)

        context = await rag.build_context("security deposit refund", max_chunks=3)
        source = await rag.find_source("monthly rent $1,500")
        ```
    """

    def __init__(
        self,
        embedding: Optional[BaseEmbedding] = None,
        config: Optional[RAGConfig] = None,
        use_embeddings: Optional[bool] = None,
        chunker: Optional[BaseChunker] = None,
    ):
        """Initialize an empty RAG system.

        Args:
            embedding: Embedding provider for chunks and queries
            config: RAG configuration (defaults to RAGConfig())
            use_embeddings: Embedding mode. None means "config.use_embeddings
                if an embedding provider was given"
            chunker: Page chunker (default: PageChunker built from config)
        """
        self.config = config or RAGConfig()

        if use_embeddings is None:
            use_embeddings = self.config.use_embeddings and embedding is not None
        if use_embeddings and embedding is None:
            raise ConfigurationError("use_embeddings=True requires an embedding provider")

        self.embedding = embedding
        self.use_embeddings = use_embeddings
        self.chunker = chunker or PageChunker(
            chunk_size=self.config.chunk_size,
            overlap=self.config.overlap,
            min_chunk_length=self.config.min_chunk_length,
            sentence_window=self.config.sentence_window,
        )

        self._chunks: list[Chunk] = []
        self._index: ChunkIndex = ChunkIndex()
        self._retriever: Optional[FallbackRetriever] = None
        self._embedding_errors: list[EmbeddingBatchError] = []
        self._initializing = False

    @property
    def is_initialized(self) -> bool:
        return self._retriever is not None

    @property
    def embedding_errors(self) -> list[EmbeddingBatchError]:
        """Embedding batches that failed during initialize."""
        return list(self._embedding_errors)

    async def initialize(self, pages: Iterable[PageInput]) -> None:
        """Chunk, index and (if enabled) embed the lease pages.

        Args:
            pages: Pages in reading order, as PageText or dicts

        Raises:
            ConfigurationError: If the system was already built
        """
        if self.is_initialized or self._initializing:
            raise ConfigurationError("RAG system is already initialized")

        self._initializing = True
        try:
            page_list = [
                page if isinstance(page, PageText) else PageText.model_validate(page)
                for page in pages
            ]

            logger.info(f"Creating chunks from {len(page_list)} pages")
            chunks = self.chunker.chunk_pages(page_list)
            index = build_index(chunks)
            logger.info(f"Created {len(chunks)} chunks")

            errors: list[EmbeddingBatchError] = []
            if self.use_embeddings and chunks:
                await embed_chunks(
                    chunks,
                    self.embedding,
                    batch_size=self.config.batch_size,
                    batch_delay=self.config.batch_delay,
                    on_error=errors.append,
                )
                embedded = sum(1 for chunk in chunks if chunk.has_embedding)
                logger.info(f"Embedded {embedded}/{len(chunks)} chunks")

            self._embedding_errors = errors
            self._install(chunks, index)
        finally:
            self._initializing = False

    @classmethod
    def from_persisted_chunks(
        cls,
        records: list[RecordInput],
        embedding: Optional[BaseEmbedding] = None,
        config: Optional[RAGConfig] = None,
    ) -> "LeaseRAGSystem":
        """Rebuild a RAG system from stored chunk records.

        Skips chunking and embedding. Missing ``chunk_index``, ``start_index``
        and ``end_index`` default to the record position, 0 and the text
        length.

        Args:
            records: Persisted chunk records (PersistedChunk or dicts)
            embedding: Embedding provider for queries
            config: RAG configuration

        Raises:
            MalformedRebuildInputError: If records are empty or malformed
        """
        validated = validate_chunks(records)

        chunks = []
        for position, record in enumerate(validated):
            chunk_index = record.chunk_index if record.chunk_index is not None else position
            chunks.append(Chunk(
                id=f"chunk_{chunk_index}_page_{record.page_number}",
                text=record.text,
                page_number=record.page_number,
                chunk_index=chunk_index,
                start_index=record.start_index if record.start_index is not None else 0,
                end_index=record.end_index if record.end_index is not None else len(record.text),
                embedding=list(record.embedding) if record.embedding else None,
            ))

        system = cls(embedding=embedding, config=config)
        system._install(chunks, build_index(chunks))
        logger.info(f"Rebuilt RAG system from {len(chunks)} stored chunks")
        return system

    def _install(self, chunks: list[Chunk], index: ChunkIndex) -> None:
        vectorstore = MemoryVectorStore(chunks)
        self._chunks = chunks
        self._index = index
        self._retriever = FallbackRetriever(
            index,
            vectorstore,
            self.embedding if self.use_embeddings else None,
        )

    def _require_retriever(self) -> FallbackRetriever:
        if self._retriever is None:
            raise NotInitializedError("Call initialize() or from_persisted_chunks() first")
        return self._retriever

    async def search(self, query: str, top_k: Optional[int] = None) -> list[SearchResult]:
        """Retrieve scored chunks for a query, best first.

        Results hold copies, so callers cannot change the indexed chunks.
        """
        retriever = self._require_retriever()
        if top_k is None:
            top_k = self.config.default_top_k
        results = await retriever.retrieve(query, top_k)
        return [result.model_copy(deep=True) for result in results]

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> list[ChunkView]:
        """Retrieve the most relevant chunks for a query.

        Args:
            query: Natural-language query
            top_k: Maximum number of chunks (default: config.default_top_k)

        Returns:
            Up to ``top_k`` chunks, best first; empty when nothing matches
        """
        results = await self.search(query, top_k)
        return [result.chunk.view() for result in results]

    async def build_context(self, query: str, max_chunks: Optional[int] = None) -> str:
        """Format the chunks retrieved for ``query`` as a prompt context block."""
        chunks = await self.retrieve(query, max_chunks)
        return "\n\n".join(
            f"[CHUNK {rank} - Page {chunk.page_number}]\n{chunk.text}"
            for rank, chunk in enumerate(chunks, start=1)
        )

    async def find_source(
        self,
        data_point: str,
        context: str = "",
    ) -> Optional[SourceAttribution]:
        """Find the lease text and page a data point was taken from.

        Args:
            data_point: Extracted value, e.g. "monthly rent $1,500"
            context: Extra words to steer the search

        Returns:
            The best-matching chunk's text and page, or None
        """
        query = f"{data_point} {context}".strip()
        chunks = await self.retrieve(query, 1)
        if not chunks:
            return None
        return SourceAttribution(text=chunks[0].text, page_number=chunks[0].page_number)

    def get_chunks_for_page(self, page_number: int) -> list[ChunkView]:
        """Return the chunks of one page, in order."""
        self._require_retriever()
        return [chunk.view() for chunk in self._index.chunks_for_page(page_number)]

    def get_all_chunks(self) -> list[ChunkView]:
        """Return all chunks in creation order."""
        self._require_retriever()
        return [chunk.view() for chunk in self._chunks]

    def export_chunks(self) -> list[PersistedChunk]:
        """Return storage records accepted by ``from_persisted_chunks``."""
        self._require_retriever()
        return [chunk.to_record() for chunk in self._chunks]

    def get_stats(self) -> RAGStats:
        """Return a diagnostic snapshot.

        Raises:
            NotInitializedError: If the system has not been built yet
        """
        self._require_retriever()
        total = len(self._chunks)
        average = round(sum(len(chunk.text) for chunk in self._chunks) / total) if total else 0
        return RAGStats(
            total_chunks=total,
            chunks_with_embeddings=sum(1 for chunk in self._chunks if chunk.has_embedding),
            pages_indexed=self._index.pages_indexed,
            average_chunk_length=average,
        )


# Shorter name used by callers that don't care about the lease domain
RAGSystem = LeaseRAGSystem


def validate_chunks(records: list[RecordInput]) -> list[PersistedChunk]:
    """Validate persisted chunk records before a rebuild.

    Raises:
        MalformedRebuildInputError: If there are no records, or a record has
            no usable ``text`` or ``page_number``
    """
    if not records:
        raise MalformedRebuildInputError("No chunks found")

    validated = []
    for position, record in enumerate(records):
        if isinstance(record, PersistedChunk):
            validated.append(record)
            continue
        try:
            validated.append(PersistedChunk.model_validate(record))
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            raise MalformedRebuildInputError(f"Invalid chunk format ({details})", position) from exc

    dimensions = {len(record.embedding) for record in validated if record.embedding}
    if not dimensions:
        logger.warning("No embeddings found in chunks; retrieval will use keyword search")
    elif len(dimensions) > 1:
        logger.warning(f"Stored embeddings have mixed dimensions {sorted(dimensions)}")

    return validated


def rebuild_rag_from_chunks(
    records: list[RecordInput],
    embedding: Optional[BaseEmbedding] = None,
    config: Optional[RAGConfig] = None,
) -> LeaseRAGSystem:
    """Rebuild a RAG system from stored chunks, skipping parsing and embedding."""
    return LeaseRAGSystem.from_persisted_chunks(records, embedding=embedding, config=config)


async def create_lease_rag(
    pages: Iterable[PageInput],
    embedding: Optional[BaseEmbedding] = None,
    config: Optional[RAGConfig] = None,
) -> LeaseRAGSystem:
    """Create and initialize a RAG system for a lease.

    When ``config`` is given without an ``embedding``, the provider named by
    ``config.embedding_provider`` is created.
    """
    if config is not None:
        set_log_level(config.log_level)
        if embedding is None:
            embedding = create_embedding(config)

    rag = LeaseRAGSystem(embedding=embedding, config=config)
    await rag.initialize(pages)
    return rag
