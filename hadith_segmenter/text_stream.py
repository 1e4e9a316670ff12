"""
Assembly of a chunk's pages into one text buffer with page provenance.
"""

import bisect
from dataclasses import dataclass, field
from typing import List, Sequence

from .data_models import Page
from .utils.arabic import strip_footnote_markers


@dataclass(frozen=True)
class PageBreak:
    """Offset at which a page's content begins in the assembled text."""

    offset: int
    page: Page


@dataclass
class TextStream:
    """Assembled text of one chunk."""

    text: str = ""
    breaks: List[PageBreak] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.text)

    def page_at_offset(self, pos: int) -> Page:
        """
        Find the page containing a text offset.

        Args:
            pos: Offset into the assembled text

        Returns:
            The page whose start offset is the greatest value <= pos
        """
        if not self.breaks:
            raise ValueError("Cannot map an offset in an empty text stream")
        offsets = [b.offset for b in self.breaks]
        idx = bisect.bisect_right(offsets, max(pos, 0)) - 1
        return self.breaks[max(idx, 0)].page

    def page_number_at(self, pos: int) -> int:
        return self.page_at_offset(pos).page_number


class TextStreamAssembler:
    """
    Concatenates a chunk's ordered pages into one text stream.

    Footnote reference markers are removed per page before joining so that
    recorded page offsets stay valid for the joined text.
    """

    def __init__(self, separator: str = "\n", strip_markers: bool = True):
        self.separator = separator
        self.strip_markers = strip_markers

    def assemble(self, pages: Sequence[Page]) -> TextStream:
        parts: List[str] = []
        breaks: List[PageBreak] = []
        length = 0

        for page in pages:
            content = page.content_plain
            if self.strip_markers:
                content = strip_footnote_markers(content)
            if parts:
                parts.append(self.separator)
                length += len(self.separator)
            breaks.append(PageBreak(offset=length, page=page))
            parts.append(content)
            length += len(content)

        return TextStream(text="".join(parts), breaks=breaks)
