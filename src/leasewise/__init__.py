"""
LeaseWise - page-aware retrieval over lease documents for cited LLM answers.
"""

from leasewise.rag import (
    PageText,
    Chunk,
    ChunkView,
    SearchResult,
    SourceAttribution,
    RAGStats,
    LeaseRAGSystem,
    RAGSystem,
    create_lease_rag,
    rebuild_rag_from_chunks,
    OpenAIEmbedding,
    LocalEmbedding,
    FakeEmbedding,
)
from leasewise.utils.config import RAGConfig, load_config

__version__ = "0.1.0"
__all__ = [
    "PageText",
    "Chunk",
    "ChunkView",
    "SearchResult",
    "SourceAttribution",
    "RAGStats",
    "LeaseRAGSystem",
    "RAGSystem",
    "create_lease_rag",
    "rebuild_rag_from_chunks",
    "OpenAIEmbedding",
    "LocalEmbedding",
    "FakeEmbedding",
    "RAGConfig",
    "load_config",
]
