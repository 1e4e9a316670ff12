"""
Batch processing module for cutting a collection's pages into overlapping chunks.
"""

import logging
from typing import List, Sequence

from . import config
from .data_models import Chunk, Page

logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Creates chunks of pages for segmentation.

    Adjacent chunks share ``overlap`` pages so that a unit straddling a chunk
    boundary is seen whole by at least one chunk.
    """

    def __init__(
        self,
        chunk_size: int = config.DEFAULT_CHUNK_SIZE,
        overlap: int = config.CHUNK_OVERLAP,
        min_page_chars: int = config.MIN_PAGE_CHARS,
    ):
        """
        Initialize the batch processor.

        Args:
            chunk_size: Number of pages per chunk (default: 50)
            overlap: Pages repeated at the start of the next chunk (default: 2)
            min_page_chars: Pages with less trimmed text are front matter
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(f"overlap must be in [0, {chunk_size}), got {overlap}")
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.min_page_chars = min_page_chars

    def filter_front_matter(self, pages: Sequence[Page]) -> List[Page]:
        """Drop volume-0 pages (title, introduction) and near-empty pages."""
        kept = [
            page for page in pages
            if page.volume_number != 0 and len(page.content_plain.strip()) >= self.min_page_chars
        ]
        if len(kept) < len(pages):
            logger.info(f"Filtered {len(pages) - len(kept)} front-matter pages")
        return kept

    def create_chunks(self, pages: Sequence[Page]) -> List[Chunk]:
        """
        Split pages into overlapping chunks.

        Args:
            pages: Pages in reading order

        Returns:
            Chunks numbered from 1
        """
        pages = self.filter_front_matter(pages)
        chunks: List[Chunk] = []
        start = 0

        while start < len(pages):
            window = tuple(pages[start:start + self.chunk_size])
            chunks.append(Chunk(
                chunk_id=len(chunks) + 1,
                pages_from=window[0].page_number,
                pages_to=window[-1].page_number,
                pages=window,
            ))
            if start + self.chunk_size >= len(pages):
                break
            start += self.chunk_size - self.overlap

        return chunks
