"""Base classes and abstract interfaces for RAG components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .document import Chunk, PageText, SearchResult


class BaseEmbedding(ABC):
    """Abstract base class for embedding models.

    Embedding models convert text into dense vector representations.
    The retrieval core only talks to this interface, never to a vendor SDK.
    """

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents.

        Args:
            texts: List of text strings to embed

        Returns:
            One embedding vector per text, in input order
        """
        pass

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query.

        Args:
            text: Query text to embed

        Returns:
            Embedding vector
        """
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        pass


class BaseChunker(ABC):
    """Abstract base class for page chunkers."""

    @abstractmethod
    def chunk_pages(self, pages: list["PageText"]) -> list["Chunk"]:
        """Split ordered pages into chunks.

        Args:
            pages: Pages in reading order

        Returns:
            Chunks in global creation order
        """
        pass


class BaseRetriever(ABC):
    """Abstract base class for retrievers.

    Retrievers find relevant chunks for a given query.
    """

    @abstractmethod
    async def retrieve(self, query: str, k: int = 5) -> list["SearchResult"]:
        """Retrieve relevant chunks for a query.

        Args:
            query: Query string
            k: Maximum number of results to return

        Returns:
            List of search results, best first
        """
        pass
