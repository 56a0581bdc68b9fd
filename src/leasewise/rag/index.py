"""Page map and keyword index over chunks, used for lexical fallback search."""

from collections import Counter
from dataclasses import dataclass, field

from .document import Chunk, SearchResult

MIN_KEYWORD_LENGTH = 4


def tokenize(text: str) -> list[str]:
    """Lowercase, split on whitespace and keep significant words (length > 3)."""
    return [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]


@dataclass
class ChunkIndex:
    """Derived lookup structures over an ordered chunk list.

    Attributes:
        chunks: Chunks in original order
        page_map: Page number -> chunks on that page, in order
        keyword_index: Lowercase keyword -> chunks containing it (each once)
    """

    chunks: list[Chunk] = field(default_factory=list)
    page_map: dict[int, list[Chunk]] = field(default_factory=dict)
    keyword_index: dict[str, list[Chunk]] = field(default_factory=dict)

    @property
    def pages_indexed(self) -> int:
        return len(self.page_map)

    def chunks_for_page(self, page_number: int) -> list[Chunk]:
        return list(self.page_map.get(page_number, []))


def build_index(chunks: list[Chunk]) -> ChunkIndex:
    """Build the page map and keyword index for a chunk list."""
    index = ChunkIndex(chunks=list(chunks))

    for chunk in index.chunks:
        index.page_map.setdefault(chunk.page_number, []).append(chunk)

        # dict.fromkeys keeps first-seen order while dropping repeats
        for word in dict.fromkeys(tokenize(chunk.text)):
            index.keyword_index.setdefault(word, []).append(chunk)

    return index


def score_by_keywords(index: ChunkIndex, query: str) -> list[SearchResult]:
    """Score every chunk sharing at least one distinct query keyword.

    Results are ordered by match count, descending; ties keep chunk order.
    """
    scores: Counter[int] = Counter()
    for word in dict.fromkeys(tokenize(query)):
        for chunk in index.keyword_index.get(word, []):
            scores[id(chunk)] += 1

    matches = [
        SearchResult(chunk=chunk, score=float(scores[id(chunk)]))
        for chunk in index.chunks
        if scores[id(chunk)] > 0
    ]
    # list.sort is stable, so equal scores stay in chunk order
    matches.sort(key=lambda result: result.score, reverse=True)
    return matches


def search_by_keywords(index: ChunkIndex, query: str, top_k: int = 3) -> list[Chunk]:
    """Return up to ``top_k`` chunks ranked by distinct keyword overlap."""
    if top_k <= 0:
        return []
    return [result.chunk for result in score_by_keywords(index, query)[:top_k]]
