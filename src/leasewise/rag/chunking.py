"""Page-aware chunking with sentence-boundary snapping."""

import logging
from typing import Iterable, Iterator, Optional

from .base import BaseChunker
from .document import Chunk, PageText
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SENTENCE_ENDINGS = (".", "?", "!")


class PageChunker(BaseChunker):
    """Chunk lease pages into overlapping, sentence-aligned pieces.

    Each page is chunked independently so every chunk belongs to exactly one
    page, while chunk numbering continues across pages. Offsets always refer
    to the original page text.
    """

    def __init__(
        self,
        chunk_size: int = 800,
        overlap: int = 150,
        min_chunk_length: int = 50,
        sentence_window: int = 100,
    ):
        """Initialize the page chunker.

        Args:
            chunk_size: Maximum characters per chunk before snapping
            overlap: Characters shared by consecutive chunks on a page
            min_chunk_length: Chunks whose trimmed text is not longer than
                this are dropped
            sentence_window: How many characters before the tentative end to
                search for a sentence ending
        """
        if chunk_size <= 0:
            raise ConfigurationError("chunk_size must be a positive integer")
        if overlap < 0:
            raise ConfigurationError("overlap must be a non-negative integer")
        if overlap >= chunk_size:
            raise ConfigurationError("Overlap must be less than chunk_size")

        self.chunk_size = chunk_size
        self.overlap = overlap
        self.min_chunk_length = min_chunk_length
        self.sentence_window = sentence_window

    def chunk_pages(self, pages: Iterable[PageText]) -> list[Chunk]:
        """Split pages into chunks with globally increasing chunk indices."""
        chunks: list[Chunk] = []
        chunk_index = 0

        for page in pages:
            for start, end, text in self._split_page(page.text):
                chunks.append(Chunk(
                    id=f"chunk_{chunk_index}_page_{page.page_number}",
                    text=text,
                    page_number=page.page_number,
                    start_index=start,
                    end_index=end,
                    chunk_index=chunk_index,
                ))
                chunk_index += 1

        logger.debug(f"Chunked {len(chunks)} chunks")
        return chunks

    def _split_page(self, text: str) -> Iterator[tuple[int, int, str]]:
        """Yield ``(start, end, trimmed_text)`` for each kept chunk of a page."""
        text_length = len(text)
        start = 0

        while start < text_length:
            end = min(start + self.chunk_size, text_length)
            if end < text_length:
                sentence_end = self._find_sentence_end(text, start, end)
                if sentence_end is not None:
                    end = sentence_end

            chunk_text = text[start:end].strip()
            if len(chunk_text) > self.min_chunk_length:
                yield start, end, chunk_text

            next_start = end - self.overlap
            stop_at = text_length - self.overlap
            if next_start <= start:
                # Snap landed too close to start; advance without overlap
                # and keep going until the tail of the page is covered
                next_start = end
                stop_at = text_length
            start = next_start

            if start >= stop_at:
                break

    def _find_sentence_end(self, text: str, start: int, end: int) -> Optional[int]:
        """Return the offset just after the last sentence ending in the window."""
        search_start = max(start, end - self.sentence_window)
        window = text[search_start:end]
        last = max(window.rfind(mark) for mark in SENTENCE_ENDINGS)
        if last < 0:
            return None
        return search_start + last + 1
