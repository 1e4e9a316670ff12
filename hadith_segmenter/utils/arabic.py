"""
Arabic text utilities: diacritic stripping with offset mapping, numerals, markers.
"""

import re
from dataclasses import dataclass
from typing import List

# Tashkeel (fathatan through wavy hamza below) plus superscript alef
DIACRITICS_CLASS = "\u064B-\u065F\u0670"
_DIACRITIC_RE = re.compile(f"[{DIACRITICS_CLASS}]")

ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
_TO_WESTERN = str.maketrans(ARABIC_INDIC_DIGITS, "0123456789")

# Printed page markers such as ⦗٣٢⦘
_PAGE_MARKER_RE = re.compile(r"\s*⦗[٠-٩]+⦘\s*")
# Footnote reference markers such as (^١)
_FOOTNOTE_MARKER_RE = re.compile(r"\(\^[٠-٩0-9]+\)")
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")
_INLINE_SPACE_RUN_RE = re.compile(r"[ \t]{2,}")

_ALEF_VARIANTS_RE = re.compile("[أإآٱ]")
_LEADING_NUMBER_RE = re.compile(r"^[٠-٩]+\s*-\s*")
_BASMALA = "بسم الله الرحمن الرحيم"


def is_diacritic(ch: str) -> bool:
    return bool(_DIACRITIC_RE.match(ch))


def strip_diacritics(text: str) -> str:
    """Remove Arabic combining marks for comparison purposes."""
    return _DIACRITIC_RE.sub("", text)


@dataclass(frozen=True)
class StrippedText:
    """
    A diacritic-free copy of a text span with a map back to the original.

    ``index_map[i]`` is the offset in ``original`` of ``text[i]``. Stripping
    only deletes characters, so the map is strictly increasing.
    """

    original: str
    text: str
    index_map: List[int]

    def original_start(self, stripped_pos: int) -> int:
        """Map a stripped start offset to the original text."""
        if stripped_pos >= len(self.index_map):
            return len(self.original)
        return self.index_map[stripped_pos]

    def original_end(self, stripped_end: int) -> int:
        """
        Map an exclusive stripped end offset to the original text.

        Marks trailing the last matched letter stay inside the span.
        """
        if stripped_end >= len(self.index_map):
            return len(self.original)
        return self.index_map[stripped_end]

    def slice_original(self, stripped_start: int, stripped_end: int) -> str:
        return self.original[self.original_start(stripped_start):self.original_end(stripped_end)]


def strip_with_index_map(text: str) -> StrippedText:
    """
    Strip diacritics while remembering where each kept character came from.

    Args:
        text: Original, fully vocalized text

    Returns:
        StrippedText with the stripped copy and its offset map
    """
    chars: List[str] = []
    index_map: List[int] = []
    for i, ch in enumerate(text):
        if not _DIACRITIC_RE.match(ch):
            chars.append(ch)
            index_map.append(i)
    return StrippedText(original=text, text="".join(chars), index_map=index_map)


def to_western_digits(text: str) -> str:
    """Convert Arabic-Indic numerals (٠-٩) to Western digits."""
    return text.translate(_TO_WESTERN)


def parse_arabic_int(text: str) -> int:
    return int(to_western_digits(text.strip()))


def strip_page_markers(text: str) -> str:
    """Strip printed page markers like ⦗٣٢⦘ and collapse the gaps they leave."""
    text = _PAGE_MARKER_RE.sub(" ", text)
    return _WHITESPACE_RUN_RE.sub(" ", text).strip()


def strip_footnote_markers(text: str) -> str:
    # Only inline space runs are collapsed; line breaks carry structure
    return _INLINE_SPACE_RUN_RE.sub(" ", _FOOTNOTE_MARKER_RE.sub("", text))


def normalize_alef(text: str) -> str:
    return _ALEF_VARIANTS_RE.sub("ا", text)


def clean_kitab_name(text: str) -> str:
    """
    Clean kitab heading text.

    Drops a leading "N - ", any basmala on the same line (matched regardless
    of vocalization) and a trailing period.
    """
    text = _LEADING_NUMBER_RE.sub("", text)

    stripped = strip_with_index_map(text)
    basmala_at = stripped.text.find(_BASMALA)
    if basmala_at >= 0:
        text = text[:stripped.original_start(basmala_at)].strip()

    text = re.sub(r"\s*﷽\s*", "", text)
    text = re.sub(r"\.\s*$", "", text)
    return text.strip()
