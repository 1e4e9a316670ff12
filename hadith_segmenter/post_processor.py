import dataclasses
import logging
import re
from typing import Dict, List, Optional, Tuple

from .collection_configs import CollectionConfig, KitabRange
from .data_models import ExtractedChunk, Heading, ParsedUnit

logger = logging.getLogger(__name__)


def deduplicate_units(units: List[ParsedUnit]) -> List[ParsedUnit]:
    """
    Remove units sharing a (unit_number, page_start) key, keeping the first.

    Operates on one chunk's output only; running it twice changes nothing.
    """
    seen = set()
    deduped: List[ParsedUnit] = []
    for unit in units:
        if unit.key in seen:
            continue
        seen.add(unit.key)
        deduped.append(unit)
    return deduped


def apply_inherited_heading(units: List[ParsedUnit], inherited: Heading) -> Tuple[List[ParsedUnit], Heading]:
    """
    Fill leading units that lack a heading with the previous chunk's heading.

    Propagation stops once a unit carries its own heading; a kitab change
    resets the inherited bab.

    Args:
        units: Units of the current chunk in document order
        inherited: Heading handed over by the previous chunk

    Returns:
        Updated units and the heading active after the last unit
    """
    kitab = inherited.kitab
    bab = inherited.bab
    result: List[ParsedUnit] = []

    for unit in units:
        own = unit.heading
        if own.kitab and own.kitab != kitab:
            bab = ""
        filled = Heading(kitab=own.kitab or kitab, bab=own.bab or bab)
        if filled != own:
            unit = dataclasses.replace(unit, heading=filled)
        kitab = filled.kitab
        bab = filled.bab
        result.append(unit)

    return result, Heading(kitab=kitab, bab=bab)


def kitab_for_number(number: int, ranges: List[KitabRange]) -> Optional[str]:
    """Most specific (latest-starting) range containing the number."""
    matching = [r for r in ranges if r.start <= number <= r.end]
    if not matching:
        return None
    return max(matching, key=lambda r: r.start).name


def apply_kitab_ranges(units: List[ParsedUnit], ranges: List[KitabRange]) -> List[ParsedUnit]:
    """Override kitab from configured number ranges, for texts without kitab headings."""
    if not ranges:
        return units
    result: List[ParsedUnit] = []
    for unit in units:
        name = kitab_for_number(unit.sequential_number, ranges)
        if name is not None and name != unit.heading.kitab:
            unit = dataclasses.replace(unit, heading=Heading(kitab=name, bab=unit.heading.bab))
        result.append(unit)
    return result


class PostProcessor:
    """
    Per-chunk post-processing after segmentation.

    This component:
    1. Carries the previous chunk's heading into leading units
    2. Applies configured kitab ranges
    3. Removes duplicate units within the chunk
    """

    def __init__(self, config: CollectionConfig):
        self.config = config

    def process(
        self,
        units: List[ParsedUnit],
        inherited: Heading,
        scanned_heading: Heading,
    ) -> Tuple[List[ParsedUnit], Heading]:
        """
        Args:
            units: Units in scan order
            inherited: Heading from the incoming carry state
            scanned_heading: Heading active at the end of the scan

        Returns:
            Final units and the heading to hand to the next chunk
        """
        last_heading = scanned_heading

        if not inherited.is_empty():
            units, propagated = apply_inherited_heading(units, inherited)
            if scanned_heading.kitab and scanned_heading.kitab != propagated.kitab:
                # A kitab seen after the last unit resets the bab
                last_heading = scanned_heading
            else:
                last_heading = Heading(
                    kitab=scanned_heading.kitab or propagated.kitab,
                    bab=scanned_heading.bab or propagated.bab,
                )

        if self.config.kitab_ranges:
            units = apply_kitab_ranges(units, self.config.kitab_ranges)
            if units and units[-1].heading.kitab:
                last_heading = Heading(kitab=units[-1].heading.kitab, bab=last_heading.bab)

        before = len(units)
        units = deduplicate_units(units)
        if len(units) < before:
            logger.debug(f"Removed {before - len(units)} duplicate units")

        return units, last_heading


def merge_extracted_chunks(chunks: List[ExtractedChunk]) -> List[ParsedUnit]:
    """
    Deduplicate units across all chunks of a collection.

    Overlap pages make adjacent chunks emit the same unit. For each
    (unit_number, page_start) key the version with the longer chain+content
    wins (less likely truncated); ties go to the version nearer the middle of
    its chunk. The result is sorted by numeric unit number, then page.
    """
    best: Dict[Tuple[str, int], Tuple[ParsedUnit, float]] = {}

    for chunk in chunks:
        total = len(chunk.units)
        for position, unit in enumerate(chunk.units):
            middle_distance = abs(position - total / 2)
            existing = best.get(unit.key)
            if existing is None:
                best[unit.key] = (unit, middle_distance)
                continue
            kept, kept_distance = existing
            if unit.text_length > kept.text_length:
                best[unit.key] = (unit, middle_distance)
            elif unit.text_length == kept.text_length and middle_distance < kept_distance:
                best[unit.key] = (unit, middle_distance)

    def _sort_key(unit: ParsedUnit) -> Tuple[int, int]:
        digits = re.sub(r"[^0-9]", "", unit.unit_number)
        return (int(digits) if digits else 0, unit.page_start)

    merged = sorted((unit for unit, _ in best.values()), key=_sort_key)
    logger.info(f"Merged {sum(len(c.units) for c in chunks)} units into {len(merged)} unique units")
    return merged


def number_to_letter_suffix(n: int) -> str:
    """1 → a, 26 → z, 27 → aa"""
    suffix = ""
    remaining = n
    while remaining > 0:
        remaining -= 1
        suffix = chr(ord("a") + remaining % 26) + suffix
        remaining //= 26
    return suffix


def assign_unique_unit_numbers(units: List[ParsedUnit]) -> List[ParsedUnit]:
    """Give repeated unit numbers letter suffixes: 8, 8a, 8b, ..."""
    counts: Dict[str, int] = {}
    result: List[ParsedUnit] = []
    for unit in units:
        base = unit.unit_number
        count = counts.get(base, 0)
        counts[base] = count + 1
        if count:
            unit = dataclasses.replace(unit, unit_number=f"{base}{number_to_letter_suffix(count)}")
        result.append(unit)
    return result
