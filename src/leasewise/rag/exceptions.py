"""
RAG-specific exceptions.
"""

from typing import Optional


class RAGError(Exception):
    """Base exception for lease RAG errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(RAGError, ValueError):
    """Raised when the RAG system is configured or used incorrectly."""


class NotInitializedError(ConfigurationError):
    """Raised when querying a RAG system before it holds any chunks."""

    def __init__(self, message: str = "RAG system is not initialized"):
        super().__init__(message)


class EmbeddingBatchError(RAGError):
    """Raised when one batch of the embedding step fails."""

    def __init__(
        self,
        batch_number: int,
        start: int,
        size: int,
        cause: Optional[BaseException] = None,
    ):
        self.batch_number = batch_number
        self.start = start
        self.size = size
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Embedding batch {batch_number} (chunks {start}-{start + size - 1}) failed{detail}"
        )


class MalformedRebuildInputError(RAGError, ValueError):
    """Raised when persisted chunk records cannot be rebuilt."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.position = position
        if position is not None:
            message = f"Record {position}: {message}"
        super().__init__(message)
