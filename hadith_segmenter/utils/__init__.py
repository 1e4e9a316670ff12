"""
Text utilities shared by the scanners and processors.
"""

from .arabic import (
    StrippedText,
    clean_kitab_name,
    normalize_alef,
    parse_arabic_int,
    strip_diacritics,
    strip_footnote_markers,
    strip_page_markers,
    strip_with_index_map,
    to_western_digits,
)

__all__ = [
    "StrippedText",
    "clean_kitab_name",
    "normalize_alef",
    "parse_arabic_int",
    "strip_diacritics",
    "strip_footnote_markers",
    "strip_page_markers",
    "strip_with_index_map",
    "to_western_digits",
]
