"""
Chunk processor turning one chunk of pages into parsed hadith units.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..collection_configs import GRAMMAR_ITEM, GRAMMAR_ORDINAL, CollectionConfig
from ..context import CarryStateManager
from ..data_models import Boundary, CarryState, Chunk, ExtractedChunk, Heading, ParsedUnit
from ..headings import HeadingTracker
from ..post_processor import PostProcessor
from ..text_stream import TextStream, TextStreamAssembler
from ..utils.arabic import strip_diacritics, strip_page_markers
from .boundary_scanner import BoundaryScanner
from .footnotes import FootnoteSplitter, split_takhrij, strip_footnote_trailing_headings, strip_trailing_headings
from .unit_classifier import UnitClassifier

logger = logging.getLogger(__name__)

# "(M)" sub-number opening a du'a item
_ITEM_SUB_NUMBER_RE = re.compile(r"^\([٠-٩]+\)\s*")


class ChunkProcessor:
    """
    Segments the assembled text of a chunk into units.

    This component:
    1. Assembles the chunk's pages into one text stream
    2. Scans boundaries with the collection's grammar
    3. Tracks headings and slices each unit body between boundaries
    4. Splits footnotes and classifies chain/content
    5. Post-processes the units and derives the next carry state
    """

    def __init__(self, config: CollectionConfig):
        """
        Initialize the chunk processor.

        Args:
            config: Collection configuration
        """
        self.config = config
        self.assembler = TextStreamAssembler()
        self.scanner = BoundaryScanner.create(config)
        self.footnote_splitter = FootnoteSplitter(config.footnote_mode)
        self.classifier = UnitClassifier.for_config(config)
        self.post_processor = PostProcessor(config)
        self.state_manager = CarryStateManager()

    def process(self, chunk: Chunk, state: CarryState) -> Tuple[ExtractedChunk, CarryState]:
        """
        Process one chunk.

        Args:
            chunk: Chunk of pages
            state: Carry state left by the previous chunk

        Returns:
            The extracted chunk and the state for the next chunk
        """
        stream = self.assembler.assemble(chunk.pages)
        boundaries = self.scanner.scan(stream)

        if not boundaries:
            logger.info(f"Chunk {chunk.chunk_id}: no boundaries found")
            return ExtractedChunk(chunk_id=chunk.chunk_id, last_heading=state.last_heading, units=[]), state

        if self.config.grammar == GRAMMAR_ORDINAL:
            units, scanned_heading = self._segment_ordinal(stream, boundaries, state)
        elif self.config.grammar == GRAMMAR_ITEM:
            units, scanned_heading = self._segment_items(stream, boundaries)
        else:
            units, scanned_heading = self._segment_numbered(stream, boundaries, state)

        units, last_heading = self.post_processor.process(units, state.last_heading, scanned_heading)
        new_state = self.state_manager.update_state(units, state, last_heading)

        logger.debug(
            f"Chunk {chunk.chunk_id}: {len(boundaries)} boundaries, {len(units)} units, "
            f"last unit {new_state.last_unit_number}"
        )
        return ExtractedChunk(chunk_id=chunk.chunk_id, last_heading=new_state.last_heading, units=units), new_state

    def _segment_numbered(
        self,
        stream: TextStream,
        boundaries: List[Boundary],
        state: CarryState,
    ) -> Tuple[List[ParsedUnit], Heading]:
        text = stream.text
        tracker = HeadingTracker.for_styles(self.config.kitab_style, self.config.bab_style)

        initial = self.config.initial_kitab
        if initial and not state.last_heading.kitab and initial.pattern.search(strip_diacritics(text)):
            tracker.set_kitab(initial.name)
            if initial.bab:
                tracker.set_bab(initial.bab)

        units: List[ParsedUnit] = []
        previous_end = 0

        for index, boundary in enumerate(boundaries):
            if not boundary.is_unit:
                continue

            heading = tracker.observe(text[previous_end:boundary.position])
            implicit = self.config.implicit_kitabs.get(boundary.number)
            if implicit and implicit != heading.kitab:
                tracker.set_kitab(implicit)
                heading = tracker.heading

            body_end = self._body_end(stream, boundaries, index)
            unit = self._build_unit(
                stream,
                unit_number=str(boundary.number),
                sequential_number=boundary.number,
                body_start=boundary.end,
                body_end=body_end,
                heading=heading,
            )
            if unit is not None:
                units.append(unit)
            previous_end = boundary.end

        # Heading markers only: the whole chunk moves the heading state
        if previous_end == 0:
            tracker.observe(text)

        return units, tracker.heading

    def _segment_ordinal(
        self,
        stream: TextStream,
        boundaries: List[Boundary],
        state: CarryState,
    ) -> Tuple[List[ParsedUnit], Heading]:
        heading = Heading(kitab=self.config.default_kitab)
        units: List[ParsedUnit] = []
        next_number = state.last_unit_number + 1
        skipped = 0

        for index, boundary in enumerate(boundaries):
            # Overlap pages were already covered by the previous chunk
            if stream.page_number_at(boundary.position) <= state.last_page:
                skipped += 1
                continue

            unit = self._build_unit(
                stream,
                unit_number=str(next_number),
                sequential_number=next_number,
                body_start=boundary.end,
                body_end=self._body_end(stream, boundaries, index),
                heading=heading,
            )
            if unit is not None:
                units.append(unit)
                next_number += 1

        if skipped:
            logger.debug(f"Skipped {skipped} ordinal headings on pages <= {state.last_page}")
        return units, heading

    def _segment_items(
        self,
        stream: TextStream,
        boundaries: List[Boundary],
    ) -> Tuple[List[ParsedUnit], Heading]:
        tracker = HeadingTracker([])
        tracker.set_kitab(self.config.default_kitab)
        units: List[ParsedUnit] = []

        for index, boundary in enumerate(boundaries):
            if not boundary.is_unit:
                tracker.set_bab(boundary.heading_text)
                continue

            unit = self._build_unit(
                stream,
                unit_number=str(boundary.number),
                sequential_number=boundary.number,
                body_start=boundary.end,
                body_end=self._body_end(stream, boundaries, index),
                heading=tracker.heading,
            )
            if unit is not None:
                units.append(unit)

        return units, tracker.heading

    @staticmethod
    def _body_end(stream: TextStream, boundaries: List[Boundary], index: int) -> int:
        if index + 1 < len(boundaries):
            return boundaries[index + 1].position
        return len(stream)

    def _build_unit(
        self,
        stream: TextStream,
        unit_number: str,
        sequential_number: int,
        body_start: int,
        body_end: int,
        heading: Heading,
    ) -> Optional[ParsedUnit]:
        """
        Turn a body span into a ParsedUnit.

        Args:
            stream: Assembled chunk text
            unit_number: Canonical unit number
            sequential_number: Numeric position in the collection
            body_start: Offset right after the boundary marker
            body_end: Offset of the next boundary (or end of text)
            heading: Heading active at the boundary

        Returns:
            The unit, or None if the span is not a valid range
        """
        if body_end < body_start:
            logger.warning(f"Unit {unit_number}: body ends before it starts, skipping")
            return None

        body = stream.text[body_start:body_end].strip()
        split = self.footnote_splitter.split(body)
        main = split.main
        footnotes = split.footnotes

        if self.config.strip_trailing_headings:
            main = strip_trailing_headings(main)
            if footnotes:
                footnotes = strip_footnote_trailing_headings(footnotes) or None

        if self.config.split_takhrij:
            main, takhrij = split_takhrij(main)
            if takhrij:
                footnotes = f"{footnotes}\n{takhrij}" if footnotes else takhrij

        if self.config.grammar == GRAMMAR_ITEM:
            main = _ITEM_SUB_NUMBER_RE.sub("", main.strip())

        cleaned = strip_page_markers(main)
        chain, content = self.classifier.split(cleaned)

        last_offset = max(body_start, min(body_end - 1, len(stream) - 1))
        return ParsedUnit(
            unit_number=unit_number,
            sequential_number=sequential_number,
            chain_text=chain,
            content_text=content,
            heading=heading,
            footnotes=strip_page_markers(footnotes) if footnotes else None,
            page_start=stream.page_number_at(body_start),
            page_end=stream.page_number_at(last_offset),
            is_cross_reference_only=self.classifier.is_cross_reference(content),
        )
