"""Page, chunk and result data structures for lease RAG."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PageText(BaseModel):
    """Text extracted from one physical page of a lease.

    Attributes:
        page_number: 1-based page number in reading order
        text: The extracted page text
    """

    model_config = ConfigDict(populate_by_name=True)

    page_number: int = Field(alias="pageNumber", ge=1)
    text: str


class Chunk(BaseModel):
    """A page-attributed slice of lease text.

    Chunks are created by the chunker (or rebuilt from storage) and are the
    unit of retrieval. Only ``embedding`` is filled in after creation.

    Attributes:
        id: Unique identifier, e.g. ``chunk_3_page_2``
        text: Trimmed chunk text, verbatim from the page
        page_number: Page the chunk came from
        start_index: Start offset in the page text
        end_index: End offset in the page text (exclusive)
        chunk_index: Global creation order across all pages
        embedding: Optional embedding vector
    """

    id: str
    text: str
    page_number: int
    start_index: int = 0
    end_index: int = 0
    chunk_index: int = 0
    embedding: Optional[list[float]] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    def view(self) -> "ChunkView":
        """Return the public view of this chunk (without the embedding)."""
        return ChunkView(
            id=self.id,
            text=self.text,
            page_number=self.page_number,
            chunk_index=self.chunk_index,
            start_index=self.start_index,
            end_index=self.end_index,
        )

    def to_record(self) -> "PersistedChunk":
        """Return the storage record for this chunk."""
        return PersistedChunk(
            text=self.text,
            page_number=self.page_number,
            chunk_index=self.chunk_index,
            start_index=self.start_index,
            end_index=self.end_index,
            embedding=list(self.embedding) if self.embedding else None,
        )

    def __repr__(self) -> str:
        content_preview = self.text[:30] + "..." if len(self.text) > 30 else self.text
        return f"Chunk(id={self.id!r}, page={self.page_number}, text={content_preview!r})"


class ChunkView(BaseModel):
    """Chunk as exposed to prompt builders and citation features."""

    id: str
    text: str
    page_number: int
    chunk_index: int
    start_index: int
    end_index: int


class SearchResult(BaseModel):
    """A scored retrieval hit.

    Attributes:
        chunk: The matching chunk
        score: Cosine similarity (embedding mode) or keyword match count
    """

    chunk: Chunk
    score: float

    def __repr__(self) -> str:
        return f"SearchResult(chunk_id={self.chunk.id!r}, score={self.score:.4f})"


class PersistedChunk(BaseModel):
    """A chunk record loaded from storage.

    Accepts the camelCase names used by the lease database
    (``pageNumber``, ``chunkIndex``...) as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1)
    page_number: int = Field(alias="pageNumber", ge=1)
    chunk_index: Optional[int] = Field(default=None, alias="chunkIndex")
    start_index: Optional[int] = Field(default=None, alias="startIndex")
    end_index: Optional[int] = Field(default=None, alias="endIndex")
    embedding: Optional[list[float]] = None


class SourceAttribution(BaseModel):
    """Verbatim lease text and page backing an extracted data point."""

    text: str
    page_number: int


class RAGStats(BaseModel):
    """Diagnostic snapshot of a RAG system."""

    total_chunks: int
    chunks_with_embeddings: int
    pages_indexed: int
    average_chunk_length: int


class EmbeddingCostEstimate(BaseModel):
    """Rough token count and USD cost for embedding a chunk set."""

    tokens: int
    cost: float
