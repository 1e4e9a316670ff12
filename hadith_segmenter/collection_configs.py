"""
Per-collection configuration: which boundary grammar, heading styles and
chain/content delimiters each hadith collection uses.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

from . import config

GRAMMAR_NUMBERED = "numbered"
GRAMMAR_ORDINAL = "ordinal"
GRAMMAR_ITEM = "item"

# Chain/content delimiters
DELIMITER_DEFERRED = "deferred"  # split later by the LLM step
DELIMITER_GUILLEMETS_TRANSITION = "guillemets_transition"
DELIMITER_QUOTES = "quotes"
DELIMITER_GUILLEMETS_OR_BRACKETS = "guillemets_or_brackets"

FOOTNOTES_SINGLE = "single"
FOOTNOTES_MULTI = "multi"


@dataclass(frozen=True)
class SegmentationThresholds:
    """Tunable heuristic limits."""

    ordinal_prefix_limit: int = config.ORDINAL_PREFIX_LIMIT
    transition_cutoff: float = config.TRANSITION_CUTOFF
    item_lookahead: int = config.ITEM_LOOKAHEAD_CHARS
    chapter_title_max: int = config.CHAPTER_TITLE_MAX_CHARS
    heading_lookahead: int = config.HEADING_LOOKAHEAD_CHARS
    cross_reference_max_chars: int = config.CROSS_REFERENCE_MAX_CHARS
    cross_reference_short_chars: int = config.CROSS_REFERENCE_SHORT_CHARS


@dataclass(frozen=True)
class InitialKitab:
    """Kitab to assume when a chunk's text matches before any heading is seen."""

    pattern: Pattern[str]
    name: str
    bab: str = ""


@dataclass(frozen=True)
class KitabRange:
    start: int
    end: int
    name: str


@dataclass(frozen=True)
class CollectionConfig:
    slug: str
    name: str
    name_arabic: str
    grammar: str = GRAMMAR_NUMBERED
    numbering_style: str = "single"  # "single" (N -) or "dual" (N / M -)
    kitab_style: str = "standalone"  # "standalone" or "numbered"
    bab_style: str = "standalone"  # "standalone", "numbered" or "none"
    chain_delimiter: str = DELIMITER_DEFERRED
    footnote_mode: str = FOOTNOTES_SINGLE
    ordinal_keyword: str = "الحديث"
    require_chain_start: bool = False
    strip_trailing_headings: bool = False
    detect_cross_references: bool = True
    split_takhrij: bool = False
    initial_kitab: Optional[InitialKitab] = None
    implicit_kitabs: Dict[int, str] = field(default_factory=dict)
    kitab_ranges: List[KitabRange] = field(default_factory=list)
    thresholds: SegmentationThresholds = field(default_factory=SegmentationThresholds)
    cache_dir: Optional[str] = None

    @property
    def default_kitab(self) -> str:
        """Kitab assigned by grammars that carry no kitab headings of their own."""
        return self.name_arabic

    def resolve_cache_dir(self, cache_root: Optional[str] = None) -> str:
        if self.cache_dir:
            return self.cache_dir
        return os.path.join(cache_root or config.CACHE_ROOT, f"{self.slug}-pages-cache")


COLLECTIONS: Dict[str, CollectionConfig] = {
    "bukhari": CollectionConfig(
        slug="bukhari",
        name="Sahih al-Bukhari",
        name_arabic="صحيح البخاري",
        strip_trailing_headings=True,
        initial_kitab=InitialKitab(
            pattern=re.compile("بدء الوحي"),
            name="كتاب بدء الوحي",
        ),
    ),
    "abudawud": CollectionConfig(
        slug="abudawud",
        name="Sunan Abi Dawud",
        name_arabic="سنن أبي داود",
        strip_trailing_headings=True,
    ),
    "tirmidhi": CollectionConfig(
        slug="tirmidhi",
        name="Jami` at-Tirmidhi",
        name_arabic="جامع الترمذي",
        bab_style="numbered",
        strip_trailing_headings=True,
    ),
    "nasai": CollectionConfig(
        slug="nasai",
        name="Sunan an-Nasa'i",
        name_arabic="سنن النسائي",
        require_chain_start=True,
        strip_trailing_headings=True,
    ),
    "ibnmajah": CollectionConfig(
        slug="ibnmajah",
        name="Sunan Ibn Majah",
        name_arabic="سنن ابن ماجه",
        numbering_style="dual",
        strip_trailing_headings=True,
    ),
    "riyadussalihin": CollectionConfig(
        slug="riyadussalihin",
        name="Riyad as-Salihin",
        name_arabic="رياض الصالحين",
        kitab_style="numbered",
        strip_trailing_headings=True,
    ),
    "nawawi40": CollectionConfig(
        slug="nawawi40",
        name="An-Nawawi's Forty Hadith",
        name_arabic="الأربعون النووية",
        grammar=GRAMMAR_ORDINAL,
        bab_style="none",
        chain_delimiter=DELIMITER_GUILLEMETS_TRANSITION,
        detect_cross_references=False,
    ),
    "qudsi40": CollectionConfig(
        slug="qudsi40",
        name="Forty Hadith Qudsi",
        name_arabic="الأربعون القدسية",
        grammar=GRAMMAR_ORDINAL,
        bab_style="none",
        chain_delimiter=DELIMITER_QUOTES,
        detect_cross_references=False,
        split_takhrij=True,
    ),
    "hisn": CollectionConfig(
        slug="hisn",
        name="Hisn al-Muslim",
        name_arabic="حصن المسلم",
        grammar=GRAMMAR_ITEM,
        chain_delimiter=DELIMITER_GUILLEMETS_OR_BRACKETS,
        footnote_mode=FOOTNOTES_MULTI,
        detect_cross_references=False,
    ),
}


def get_config(slug: str) -> CollectionConfig:
    """
    Look up a collection by slug.

    Raises:
        KeyError: if the slug is unknown
    """
    try:
        return COLLECTIONS[slug]
    except KeyError:
        raise KeyError(
            f"Unknown collection '{slug}'. Available: {', '.join(sorted(COLLECTIONS))}"
        ) from None
