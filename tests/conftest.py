"""
Test configuration and fixtures.
"""

import pytest

from leasewise.rag import FakeEmbedding, PageText

LEASE_SENTENCES = [
    "The tenant agrees to keep the premises clean and in good condition.",
    "The landlord will repair the heating system within three business days.",
    "Guests may stay no longer than fourteen consecutive nights per year.",
    "Parking is limited to one vehicle in the assigned space behind the building.",
    "Quiet hours run from ten in the evening until seven in the morning.",
    "The tenant must give written notice sixty days before moving out.",
    "Smoking is not permitted anywhere inside the unit or common areas.",
    "Trash must be placed in the bins provided on collection days only.",
]


def build_page_text(length: int, offset: int = 0) -> str:
    """Build lease-like text of exactly ``length`` characters."""
    parts = []
    total = 0
    i = offset
    while total < length:
        sentence = LEASE_SENTENCES[i % len(LEASE_SENTENCES)]
        parts.append(sentence)
        total += len(sentence) + 1
        i += 1
    return " ".join(parts)[:length]


class RecordingEmbedding(FakeEmbedding):
    """Fake embedding that records every call."""

    def __init__(self, dimension: int = 32):
        super().__init__(dimension=dimension)
        self.document_batches: list[list[str]] = []
        self.queries: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.document_batches) + len(self.queries)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_batches.append(list(texts))
        return await super().embed_documents(texts)

    async def embed_query(self, text: str) -> list[float]:
        self.queries.append(text)
        return await super().embed_query(text)


class FlakyEmbedding(RecordingEmbedding):
    """Fake embedding whose listed document calls (1-based) fail."""

    def __init__(self, fail_on_calls: set[int], dimension: int = 32):
        super().__init__(dimension=dimension)
        self.fail_on_calls = fail_on_calls

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        vectors = await super().embed_documents(texts)
        if len(self.document_batches) in self.fail_on_calls:
            raise RuntimeError("provider unavailable")
        return vectors


@pytest.fixture
def lease_pages():
    """Two pages: 1000 and 400 characters."""
    return [
        PageText(page_number=1, text=build_page_text(1000)),
        PageText(page_number=2, text=build_page_text(400, offset=3)),
    ]


@pytest.fixture
def short_pages():
    """Six single-chunk pages."""
    return [
        PageText(page_number=i + 1, text=build_page_text(200, offset=i))
        for i in range(6)
    ]


@pytest.fixture
def deposit_pages():
    """Pages where only page 3 mentions both 'security' and 'deposit'."""
    return [
        PageText(page_number=1, text=build_page_text(300)),
        PageText(
            page_number=2,
            text="Security cameras record the lobby at all hours and footage is kept for thirty days.",
        ),
        PageText(
            page_number=3,
            text="The security deposit of two thousand dollars is returned within thirty days after move out.",
        ),
    ]


@pytest.fixture
def recording_embedding():
    return RecordingEmbedding()


@pytest.fixture
def make_flaky_embedding():
    def factory(fail_on_calls: set[int]) -> FlakyEmbedding:
        return FlakyEmbedding(fail_on_calls)

    return factory


@pytest.fixture
def make_page_text():
    """Factory for lease-like page text of an exact length."""
    return build_page_text
