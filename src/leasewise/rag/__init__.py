"""Retrieval-augmented generation core for lease documents.

This module turns extracted lease pages into page-aware chunks and retrieves
the chunks most relevant to a query, so language-model callers can cite the
exact lease text and page number:
- Page, chunk and result data structures
- Sentence-aligned page chunking with overlap
- Page map and keyword index for lexical fallback search
- Embedding providers (OpenAI, local, fake) and batch chunk embedding
- Cosine-similarity vector search with keyword fallback
- The LeaseRAGSystem orchestrator and its rebuild-from-storage path

Example:
    ```python
    from leasewise.rag import LeaseRAGSystem, OpenAIEmbedding, PageText

    rag = LeaseRAGSystem(embedding=OpenAIEmbedding())
    await rag.initialize([PageText(page_number=1, text=page_one_text)])

    chunks = await rag.retrieve("security deposit", top_k=3)
    source = await rag.find_source("monthly rent $1,500")
    ```

Rebuilding from stored chunks:
    ```python
    from leasewise.rag import LeaseRAGSystem

    rag = LeaseRAGSystem.from_persisted_chunks(rows, embedding=OpenAIEmbedding())
    ```
"""

# Data structures
from .document import (
    PageText,
    Chunk,
    ChunkView,
    SearchResult,
    PersistedChunk,
    SourceAttribution,
    RAGStats,
    EmbeddingCostEstimate,
)

# Base classes
from .base import BaseEmbedding, BaseChunker, BaseRetriever

# Errors
from .exceptions import (
    RAGError,
    ConfigurationError,
    NotInitializedError,
    EmbeddingBatchError,
    MalformedRebuildInputError,
)

# Chunking and indexing
from .chunking import PageChunker
from .index import ChunkIndex, build_index, search_by_keywords, tokenize

# Embedding providers
from .embeddings import (
    OpenAIEmbedding,
    LocalEmbedding,
    FakeEmbedding,
    embed_chunks,
    estimate_embedding_cost,
    create_embedding,
)

# Vector store and retrievers
from .vectorstore import MemoryVectorStore, cosine_similarity
from .retriever import VectorRetriever, KeywordRetriever, FallbackRetriever

# Orchestration
from .pipeline import (
    LeaseRAGSystem,
    RAGSystem,
    create_lease_rag,
    rebuild_rag_from_chunks,
    validate_chunks,
)

__all__ = [
    # Data structures
    "PageText",
    "Chunk",
    "ChunkView",
    "SearchResult",
    "PersistedChunk",
    "SourceAttribution",
    "RAGStats",
    "EmbeddingCostEstimate",
    # Base classes
    "BaseEmbedding",
    "BaseChunker",
    "BaseRetriever",
    # Errors
    "RAGError",
    "ConfigurationError",
    "NotInitializedError",
    "EmbeddingBatchError",
    "MalformedRebuildInputError",
    # Chunking and indexing
    "PageChunker",
    "ChunkIndex",
    "build_index",
    "search_by_keywords",
    "tokenize",
    # Embeddings
    "OpenAIEmbedding",
    "LocalEmbedding",
    "FakeEmbedding",
    "embed_chunks",
    "estimate_embedding_cost",
    "create_embedding",
    # Vector store and retrievers
    "MemoryVectorStore",
    "cosine_similarity",
    "VectorRetriever",
    "KeywordRetriever",
    "FallbackRetriever",
    # Orchestration
    "LeaseRAGSystem",
    "RAGSystem",
    "create_lease_rag",
    "rebuild_rag_from_chunks",
    "validate_chunks",
]
