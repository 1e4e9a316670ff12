"""
Boundary scanning strategies, one per collection family.

Every scanner locates all markers of a chunk in a single pass and returns them
sorted by position; slicing bodies between consecutive markers happens later,
so the classification of one marker never depends on another marker's body.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Pattern

from ..collection_configs import (
    GRAMMAR_ITEM,
    GRAMMAR_NUMBERED,
    GRAMMAR_ORDINAL,
    CollectionConfig,
    SegmentationThresholds,
)
from ..data_models import Boundary, BoundaryKind
from ..text_stream import TextStream
from ..utils.arabic import normalize_alef, parse_arabic_int, strip_diacritics, strip_with_index_map

logger = logging.getLogger(__name__)

# "N - " at the start of a line
SINGLE_MARKER_RE = re.compile(r"^[ \t]*([٠-٩]+)[ \t]*-\s*", re.MULTILINE)
# "N / M - " at the start of a line
DUAL_MARKER_RE = re.compile(r"^[ \t]*([٠-٩]+)[ \t]*/[ \t]*[٠-٩]+[ \t]*-\s*", re.MULTILINE)

# A numbered marker followed by one of these is a heading, not a hadith
HEADING_KEYWORD_PATTERNS = [
    re.compile(r"^كتاب(?:\s|$)"),
    re.compile(r"^\[كتاب"),
    re.compile(r"^باب(?:\s|$)"),
    re.compile(r"^أبواب(?:\s|$)"),
    re.compile(r"^ذكر\s"),
]

# Transmission phrases (alef-normalized) that open a narration
CHAIN_START_PATTERNS = [
    re.compile(p) for p in (
        r"^اخبرنا", r"^حدثنا", r"^حدثني", r"^انبانا", r"^انا ",
        r"^اخبرني", r"^قال:?\s", r"^عن ", r"^سمعت ",
        r"^بمثله", r"^نحوه", r"^مثله",
    )
]

_QUOTE_GLYPHS = ("«", "﴿", '"')


class BoundaryScanner(ABC):
    """
    Abstract base class for boundary scanners.

    Concrete scanners implement ``scan`` for one boundary grammar.
    """

    @classmethod
    def create(cls, config: CollectionConfig) -> "BoundaryScanner":
        """
        Factory method selecting the scanner for a collection's grammar.

        Args:
            config: Collection configuration

        Returns:
            BoundaryScanner instance
        """
        if config.grammar == GRAMMAR_NUMBERED:
            return NumberedMarkerScanner(
                dual=config.numbering_style == "dual",
                require_chain_start=config.require_chain_start,
                thresholds=config.thresholds,
            )
        if config.grammar == GRAMMAR_ORDINAL:
            return OrdinalHeadingScanner(
                keyword=config.ordinal_keyword,
                thresholds=config.thresholds,
            )
        if config.grammar == GRAMMAR_ITEM:
            return ItemMarkerScanner(thresholds=config.thresholds)
        raise ValueError(f"Unsupported boundary grammar: {config.grammar}")

    @abstractmethod
    def scan(self, stream: TextStream) -> List[Boundary]:
        """
        Locate every boundary in an assembled chunk.

        Args:
            stream: Assembled chunk text

        Returns:
            Boundaries sorted by position
        """
        pass


class NumberedMarkerScanner(BoundaryScanner):
    """
    Scanner for "N - " numbered hadith markers.

    Markers that introduce a kitab/bab heading become heading boundaries so
    that the preceding hadith body stops at them.
    """

    def __init__(
        self,
        dual: bool = False,
        require_chain_start: bool = False,
        thresholds: SegmentationThresholds = None,
    ):
        self.pattern: Pattern[str] = DUAL_MARKER_RE if dual else SINGLE_MARKER_RE
        self.require_chain_start = require_chain_start
        self.thresholds = thresholds or SegmentationThresholds()

    def scan(self, stream: TextStream) -> List[Boundary]:
        text = stream.text
        boundaries: List[Boundary] = []
        rejected = 0

        for match in self.pattern.finditer(text):
            after = text[match.end():match.end() + self.thresholds.heading_lookahead]
            plain = strip_diacritics(after)

            if self._is_heading(plain):
                first_line = after.split("\n", 1)[0].strip()
                boundaries.append(Boundary(
                    position=match.start(),
                    end=match.end(),
                    text=match.group(0).strip(),
                    number=parse_arabic_int(match.group(1)),
                    kind=BoundaryKind.HEADING,
                    heading_text=first_line,
                ))
                continue

            if self.require_chain_start and not self._opens_chain(plain):
                rejected += 1
                continue

            boundaries.append(Boundary(
                position=match.start(),
                end=match.end(),
                text=match.group(0).strip(),
                number=parse_arabic_int(match.group(1)),
            ))

        if rejected:
            logger.debug(f"Rejected {rejected} numbered markers without a transmission phrase")
        return boundaries

    @staticmethod
    def _is_heading(plain: str) -> bool:
        return any(p.match(plain) for p in HEADING_KEYWORD_PATTERNS)

    @staticmethod
    def _opens_chain(plain: str) -> bool:
        normalized = re.sub(r"^-\s*", "", normalize_alef(plain))
        return any(p.match(normalized) for p in CHAIN_START_PATTERNS)


class OrdinalHeadingScanner(BoundaryScanner):
    """
    Scanner for ordinal headings such as "الحديث الأول", "الحديث الثاني".

    Matching runs on diacritic-free text; matched offsets are mapped back so
    the heading is cut from the vocalized original.
    """

    def __init__(self, keyword: str = "الحديث", thresholds: SegmentationThresholds = None):
        self.keyword = keyword
        self.thresholds = thresholds or SegmentationThresholds()
        self.pattern = re.compile(re.escape(keyword) + r"[ \t]+ال[\u0600-\u06FF \t]*")

    def scan(self, stream: TextStream) -> List[Boundary]:
        text = stream.text
        stripped = strip_with_index_map(text)
        boundaries: List[Boundary] = []
        last_end = 0

        for match in self.pattern.finditer(stripped.text):
            origin = stripped.original_start(match.start())
            if origin < last_end:
                continue

            # Heading must sit at (or near) the start of its line
            line_start = text.rfind("\n", 0, origin) + 1
            prefix = text[line_start:origin].strip()
            if len(prefix) > self.thresholds.ordinal_prefix_limit:
                continue

            end = text.find("\n", origin)
            if end == -1:
                end = len(text)

            boundaries.append(Boundary(
                position=origin,
                end=end,
                text=text[origin:end].strip(),
            ))
            last_end = end

        return boundaries


class ItemMarkerScanner(BoundaryScanner):
    """
    Scanner for du'a collections where "N - " marks both chapters and items.

    A marker is an item when the first line after it opens with a
    parenthesized sub-number or contains a quotation glyph; otherwise it is a
    chapter heading whose first line becomes the new bab.
    """

    def __init__(self, thresholds: SegmentationThresholds = None):
        self.thresholds = thresholds or SegmentationThresholds()

    def scan(self, stream: TextStream) -> List[Boundary]:
        text = stream.text
        boundaries: List[Boundary] = []

        for match in SINGLE_MARKER_RE.finditer(text):
            after = text[match.end():match.end() + self.thresholds.item_lookahead]
            first_line = after.split("\n", 1)[0]

            if self._is_item(first_line):
                boundaries.append(Boundary(
                    position=match.start(),
                    end=match.end(),
                    text=match.group(0).strip(),
                    number=parse_arabic_int(match.group(1)),
                ))
            else:
                boundaries.append(Boundary(
                    position=match.start(),
                    end=match.end(),
                    text=match.group(0).strip(),
                    number=parse_arabic_int(match.group(1)),
                    kind=BoundaryKind.HEADING,
                    heading_text=first_line.strip()[:self.thresholds.chapter_title_max],
                ))

        return boundaries

    @staticmethod
    def _is_item(first_line: str) -> bool:
        return first_line.strip().startswith("(") or any(g in first_line for g in _QUOTE_GLYPHS)
