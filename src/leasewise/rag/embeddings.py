"""Embedding model implementations and batch chunk embedding."""

import asyncio
import hashlib
import logging
import math
import re
from typing import TYPE_CHECKING, Callable, Optional

from .base import BaseEmbedding
from .document import Chunk, EmbeddingCostEstimate
from .exceptions import ConfigurationError, EmbeddingBatchError

if TYPE_CHECKING:
    from leasewise.utils.config import RAGConfig

logger = logging.getLogger(__name__)


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model.

    Uses OpenAI's embedding API (text-embedding-3-small/large).

    Note: Requires the 'openai' extra to be installed.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    # Hard limit on inputs per request
    MAX_BATCH_SIZE = 2048

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
    ):
        """Initialize the OpenAI embedding model.

        Args:
            model: Model name (text-embedding-3-small, text-embedding-3-large)
            api_key: OpenAI API key (optional, uses OPENAI_API_KEY if not provided)
            base_url: Optional base URL for API
            dimensions: Optional reduced output dimension (text-embedding-3 only)
        """
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.dimensions = dimensions
        self._client = None

    @property
    def dimension(self) -> int:
        if self.dimensions:
            return self.dimensions
        return self.MODEL_DIMENSIONS.get(self.model, 1536)

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as exc:
                raise ImportError(
                    "OpenAI embedding requires the 'openai' package. "
                    "Install it with: pip install 'leasewise[openai]'"
                ) from exc

            kwargs = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url

            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def _create(self, inputs: list[str]) -> list[list[float]]:
        client = self._get_client()
        kwargs = {"model": self.model, "input": inputs}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions

        response = await client.embeddings.create(**kwargs)
        return [item.embedding for item in response.data]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents using OpenAI API."""
        all_embeddings = []
        for i in range(0, len(texts), self.MAX_BATCH_SIZE):
            all_embeddings.extend(await self._create(texts[i : i + self.MAX_BATCH_SIZE]))
        return all_embeddings

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query using OpenAI API."""
        embeddings = await self._create([text])
        return embeddings[0]


class LocalEmbedding(BaseEmbedding):
    """Local embedding model using sentence-transformers.

    Runs entirely on the local machine, no API calls required.

    Note: Requires the 'local' extra to be installed.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "all-MiniLM-L6-v2": 384,
        "all-mpnet-base-v2": 768,
        "multi-qa-mpnet-base-dot-v1": 768,
    }

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: Optional[str] = None,
        normalize: bool = True,
    ):
        """Initialize the local embedding model.

        Args:
            model_name: Name of the sentence-transformers model
            device: Device to run on (cuda, cpu, mps). Auto-detected if None.
            normalize: Whether to normalize embeddings
        """
        self.model_name = model_name
        self.device = device
        self.normalize = normalize
        self._model = None

    @property
    def dimension(self) -> int:
        if self._model is not None:
            return int(self._model.get_sentence_embedding_dimension())
        return self.MODEL_DIMENSIONS.get(self.model_name, 384)

    def _get_model(self):
        """Get or load the sentence-transformers model."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as exc:
                raise ImportError(
                    "Local embedding requires 'sentence-transformers'. "
                    "Install it with: pip install 'leasewise[local]'"
                ) from exc

            self._model = SentenceTransformer(self.model_name, device=self.device)
            logger.info(f"Loaded embedding model: {self.model_name}")
        return self._model

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents using local model."""
        model = self._get_model()

        # Run in thread pool to avoid blocking the event loop
        loop = asyncio.get_running_loop()
        embeddings = await loop.run_in_executor(
            None,
            lambda: model.encode(
                texts,
                normalize_embeddings=self.normalize,
                convert_to_numpy=True,
                show_progress_bar=False,
            ),
        )

        return embeddings.tolist()

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query using local model."""
        embeddings = await self.embed_documents([text])
        return embeddings[0]


class FakeEmbedding(BaseEmbedding):
    """Deterministic hashed bag-of-words embedding.

    Each word is hashed into one of ``dimension`` buckets with a +/-1 sign,
    so texts sharing words get similar vectors and identical texts get
    identical vectors. Useful for tests and offline development.
    """

    _WORD_RE = re.compile(r"\w+")

    def __init__(self, dimension: int = 64, seed: int = 42):
        """Initialize the fake embedding.

        Args:
            dimension: Dimension of the embedding vectors
            seed: Seed mixed into the word hash
        """
        if dimension <= 0:
            raise ValueError("dimension must be a positive integer")
        self._dimension = dimension
        self.seed = seed

    @property
    def dimension(self) -> int:
        return self._dimension

    def _hash_text(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for word in self._WORD_RE.findall(text.lower()):
            digest = hashlib.sha256(f"{self.seed}:{word}".encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimension
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0
        return vector

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._hash_text(text) for text in texts]

    async def embed_query(self, text: str) -> list[float]:
        return self._hash_text(text)


async def embed_chunks(
    chunks: list[Chunk],
    embedding: BaseEmbedding,
    batch_size: int = 100,
    batch_delay: float = 0.1,
    on_error: Optional[Callable[[EmbeddingBatchError], None]] = None,
) -> list[Chunk]:
    """Fill in ``chunk.embedding`` for chunks, one provider call per batch.

    A failed batch is logged and reported through ``on_error``; its chunks
    stay without embeddings and the remaining batches still run. Batches are
    issued one after another with ``batch_delay`` seconds between them to
    stay under provider rate limits.

    Args:
        chunks: Chunks to embed (updated in place)
        embedding: Embedding provider
        batch_size: Chunks per provider call
        batch_delay: Seconds to wait between batches
        on_error: Called with an EmbeddingBatchError for each failed batch

    Returns:
        The same chunk list
    """
    if batch_size <= 0:
        raise ConfigurationError("batch_size must be a positive integer")

    dimension = next((len(chunk.embedding) for chunk in chunks if chunk.has_embedding), None)
    total_batches = math.ceil(len(chunks) / batch_size)

    for batch_number, start in enumerate(range(0, len(chunks), batch_size), start=1):
        batch = chunks[start : start + batch_size]
        logger.debug(f"Creating embeddings for batch {batch_number}/{total_batches}")

        try:
            vectors = await embedding.embed_documents([chunk.text for chunk in batch])
            _check_vectors(vectors, len(batch), dimension)
        except Exception as e:
            error = EmbeddingBatchError(batch_number, start, len(batch), cause=e)
            logger.warning(f"{error}; continuing with remaining batches")
            if on_error is not None:
                on_error(error)
        else:
            for chunk, vector in zip(batch, vectors):
                chunk.embedding = [float(value) for value in vector]
            if dimension is None:
                dimension = len(vectors[0])

        if start + batch_size < len(chunks) and batch_delay > 0:
            await asyncio.sleep(batch_delay)

    return chunks


def _check_vectors(
    vectors: list[list[float]],
    expected_count: int,
    dimension: Optional[int],
) -> None:
    if len(vectors) != expected_count:
        raise ValueError(f"Provider returned {len(vectors)} vectors for {expected_count} texts")

    lengths = {len(vector) for vector in vectors}
    if 0 in lengths:
        raise ValueError("Provider returned an empty vector")
    if len(lengths) > 1:
        raise ValueError(f"Provider returned vectors of mixed dimension {sorted(lengths)}")
    if dimension is not None and lengths != {dimension}:
        raise ValueError(f"Expected dimension {dimension}, got {lengths.pop()}")


def estimate_embedding_cost(
    num_chunks: int,
    tokens_per_chunk: int = 125,
    cost_per_million_tokens: float = 0.02,
) -> EmbeddingCostEstimate:
    """Estimate tokens and USD cost of embedding ``num_chunks`` chunks.

    Defaults match text-embedding-3-small pricing and ~500-character chunks.
    """
    tokens = num_chunks * tokens_per_chunk
    cost = tokens / 1_000_000 * cost_per_million_tokens
    return EmbeddingCostEstimate(tokens=tokens, cost=round(cost, 4))


def create_embedding(config: "RAGConfig") -> Optional[BaseEmbedding]:
    """Build the embedding provider named by ``config.embedding_provider``."""
    provider = config.embedding_provider
    if provider == "none":
        return None
    if provider == "openai":
        return OpenAIEmbedding(model=config.embedding_model, dimensions=config.embedding_dimension)
    if provider == "local":
        return LocalEmbedding(model_name=config.embedding_model)
    if provider == "fake":
        return FakeEmbedding(dimension=config.embedding_dimension or 64)
    raise ConfigurationError(f"Unsupported embedding provider: {provider!r}")
