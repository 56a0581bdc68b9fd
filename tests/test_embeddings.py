"""Tests for embedding providers and batch embedding."""

import logging
from types import SimpleNamespace

import pytest

from leasewise.rag import (
    Chunk,
    ConfigurationError,
    EmbeddingBatchError,
    FakeEmbedding,
    LocalEmbedding,
    OpenAIEmbedding,
    create_embedding,
    embed_chunks,
    estimate_embedding_cost,
)
from leasewise.utils.config import RAGConfig


def make_chunks(count: int) -> list[Chunk]:
    return [
        Chunk(id=f"chunk_{i}_page_1", text=f"clause {i} of the lease agreement", page_number=1, chunk_index=i)
        for i in range(count)
    ]


class WrongCountEmbedding(FakeEmbedding):
    """Returns one vector too few."""

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        vectors = await super().embed_documents(texts)
        return vectors[:-1]


class GrowingEmbedding(FakeEmbedding):
    """Returns longer vectors on every call."""

    def __init__(self):
        super().__init__(dimension=8)
        self.calls = 0

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        return [[1.0] * (8 + self.calls - 1) for _ in texts]


class FakeEmbeddingsAPI:
    """Stands in for ``AsyncOpenAI().embeddings``."""

    def __init__(self, dimension: int = 3):
        self.dimension = dimension
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(
            data=[SimpleNamespace(embedding=[0.5] * self.dimension) for _ in kwargs["input"]]
        )


class TestFakeEmbedding:
    """Tests for FakeEmbedding."""

    @pytest.mark.asyncio
    async def test_dimension(self):
        """Test vectors have the configured dimension."""
        embedding = FakeEmbedding(dimension=16)
        vectors = await embedding.embed_documents(["rent is due", "pets allowed"])

        assert embedding.dimension == 16
        assert [len(v) for v in vectors] == [16, 16]

    @pytest.mark.asyncio
    async def test_deterministic(self):
        """Test identical text gives identical vectors."""
        embedding = FakeEmbedding()
        query = await embedding.embed_query("Security deposit refund")
        docs = await embedding.embed_documents(["security deposit refund"])

        assert query == docs[0]
        assert query == await FakeEmbedding().embed_query("security deposit refund")

    @pytest.mark.asyncio
    async def test_empty_text_is_zero_vector(self):
        """Test text without words embeds to zeros."""
        vector = await FakeEmbedding(dimension=4).embed_query("")
        assert vector == [0.0, 0.0, 0.0, 0.0]

    def test_invalid_dimension(self):
        """Test non-positive dimension is rejected."""
        with pytest.raises(ValueError):
            FakeEmbedding(dimension=0)


class TestOpenAIEmbedding:
    """Tests for OpenAIEmbedding with a stubbed client."""

    def test_dimension(self):
        """Test known model dimensions and overrides."""
        assert OpenAIEmbedding().dimension == 1536
        assert OpenAIEmbedding(model="text-embedding-3-large").dimension == 3072
        assert OpenAIEmbedding(dimensions=256).dimension == 256

    @pytest.mark.asyncio
    async def test_embed_documents(self):
        """Test documents are sent in one request with the model name."""
        embedding = OpenAIEmbedding(dimensions=3)
        api = FakeEmbeddingsAPI()
        embedding._client = SimpleNamespace(embeddings=api)

        vectors = await embedding.embed_documents(["one", "two"])

        assert vectors == [[0.5, 0.5, 0.5], [0.5, 0.5, 0.5]]
        assert api.requests == [
            {"model": "text-embedding-3-small", "input": ["one", "two"], "dimensions": 3}
        ]

    @pytest.mark.asyncio
    async def test_large_input_is_split(self):
        """Test inputs above the request limit are split."""
        embedding = OpenAIEmbedding()
        api = FakeEmbeddingsAPI()
        embedding._client = SimpleNamespace(embeddings=api)

        vectors = await embedding.embed_documents(["text"] * (OpenAIEmbedding.MAX_BATCH_SIZE + 1))

        assert len(vectors) == OpenAIEmbedding.MAX_BATCH_SIZE + 1
        assert [len(r["input"]) for r in api.requests] == [OpenAIEmbedding.MAX_BATCH_SIZE, 1]
        assert "dimensions" not in api.requests[0]

    @pytest.mark.asyncio
    async def test_embed_query(self):
        """Test a query is embedded as a single input."""
        embedding = OpenAIEmbedding()
        api = FakeEmbeddingsAPI(dimension=2)
        embedding._client = SimpleNamespace(embeddings=api)

        assert await embedding.embed_query("monthly rent") == [0.5, 0.5]
        assert api.requests[0]["input"] == ["monthly rent"]


class TestEmbedChunks:
    """Tests for embed_chunks."""

    @pytest.mark.asyncio
    async def test_batches(self, recording_embedding):
        """Test 250 chunks are embedded in batches of 100, 100 and 50."""
        chunks = make_chunks(250)
        await embed_chunks(chunks, recording_embedding, batch_size=100, batch_delay=0)

        assert [len(b) for b in recording_embedding.document_batches] == [100, 100, 50]
        assert all(len(c.embedding) == recording_embedding.dimension for c in chunks)

    @pytest.mark.asyncio
    async def test_delay_between_batches(self, recording_embedding, monkeypatch):
        """Test the delay is awaited between batches only."""
        delays = []

        async def fake_sleep(seconds):
            delays.append(seconds)

        monkeypatch.setattr("leasewise.rag.embeddings.asyncio.sleep", fake_sleep)
        await embed_chunks(make_chunks(5), recording_embedding, batch_size=2, batch_delay=0.1)

        assert delays == [0.1, 0.1]

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, make_flaky_embedding, caplog):
        """Test a failing batch leaves its chunks unembedded."""
        chunks = make_chunks(250)
        errors = []

        with caplog.at_level(logging.WARNING, logger="leasewise"):
            await embed_chunks(
                chunks,
                make_flaky_embedding({2}),
                batch_size=100,
                batch_delay=0,
                on_error=errors.append,
            )

        assert all(c.embedding for c in chunks[:100])
        assert all(c.embedding is None for c in chunks[100:200])
        assert all(c.embedding for c in chunks[200:])

        assert len(errors) == 1
        assert isinstance(errors[0], EmbeddingBatchError)
        assert (errors[0].batch_number, errors[0].start, errors[0].size) == (2, 100, 100)
        assert isinstance(errors[0].cause, RuntimeError)
        assert "Embedding batch 2" in caplog.text

    @pytest.mark.asyncio
    async def test_wrong_vector_count_fails_batch(self):
        """Test a short response counts as a failed batch."""
        chunks = make_chunks(3)
        errors = []
        await embed_chunks(chunks, WrongCountEmbedding(), batch_delay=0, on_error=errors.append)

        assert all(c.embedding is None for c in chunks)
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_dimension_change_fails_batch(self):
        """Test a later batch with another dimension is rejected."""
        chunks = make_chunks(4)
        errors = []
        await embed_chunks(chunks, GrowingEmbedding(), batch_size=2, batch_delay=0, on_error=errors.append)

        assert [len(c.embedding) for c in chunks[:2]] == [8, 8]
        assert chunks[2].embedding is None and chunks[3].embedding is None
        assert errors[0].batch_number == 2

    @pytest.mark.asyncio
    async def test_invalid_batch_size(self, recording_embedding):
        """Test a non-positive batch size is rejected."""
        with pytest.raises(ConfigurationError):
            await embed_chunks(make_chunks(2), recording_embedding, batch_size=0)

    @pytest.mark.asyncio
    async def test_no_chunks(self, recording_embedding):
        """Test embedding nothing makes no provider calls."""
        assert await embed_chunks([], recording_embedding) == []
        assert recording_embedding.call_count == 0


class TestEmbeddingHelpers:
    """Tests for cost estimation and provider creation."""

    def test_estimate_cost(self):
        """Test token and cost estimate for 1000 chunks."""
        estimate = estimate_embedding_cost(1000)
        assert estimate.tokens == 125_000
        assert estimate.cost == pytest.approx(0.0025)

    def test_estimate_cost_zero(self):
        """Test no chunks cost nothing."""
        estimate = estimate_embedding_cost(0)
        assert (estimate.tokens, estimate.cost) == (0, 0.0)

    def test_create_embedding(self):
        """Test providers are built from config."""
        assert create_embedding(RAGConfig(embedding_provider="none")) is None

        fake = create_embedding(RAGConfig(embedding_provider="fake", embedding_dimension=12))
        assert isinstance(fake, FakeEmbedding)
        assert fake.dimension == 12

        openai = create_embedding(RAGConfig(embedding_provider="openai", embedding_dimension=512))
        assert isinstance(openai, OpenAIEmbedding)
        assert openai.dimension == 512

        local = create_embedding(
            RAGConfig(embedding_provider="local", embedding_model="all-mpnet-base-v2")
        )
        assert isinstance(local, LocalEmbedding)
        assert local.dimension == 768

    def test_create_embedding_unknown_provider(self):
        """Test an unknown provider is rejected."""
        config = RAGConfig.model_construct(embedding_provider="cohere", embedding_model="x")
        with pytest.raises(ConfigurationError):
            create_embedding(config)
