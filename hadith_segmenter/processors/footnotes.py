"""
Separation of a unit body into main text and footnote text.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..headings import is_heading_line
from ..utils.arabic import normalize_alef, strip_diacritics

# A line of underscores separates the page body from its footnotes
SEPARATOR_RE = re.compile(r"_{9,}")
_LEADING_SEPARATOR_RE = re.compile(r"^_+\s*")
_FOOTNOTE_LINE_RE = re.compile(r"^\([٠-٩0-9]+\)")
# Takhrij commentary follows a line holding only a doubled tatweel
_TAKHRIJ_SEPARATOR_RE = re.compile(r"\n\s*ــ\s*\n")

_FOOTNOTE_INTRO_PATTERNS = [
    re.compile(r"^قال الله تعالى"),
    re.compile(r"^واما الاحاديث"),
]


@dataclass(frozen=True)
class FootnoteSplit:
    main: str
    footnotes: Optional[str]


class FootnoteSplitter:
    """
    Splits a unit body at footnote separators.

    Modes:
    1. "single": everything after the first separator is footnote text
    2. "multi": separators may appear mid-body; lines after each separator
       are sorted into footnote lines and continuation lines
    """

    def __init__(self, mode: str = "single"):
        if mode not in ("single", "multi"):
            raise ValueError(f"Unsupported footnote mode: {mode}")
        self.mode = mode

    def split(self, text: str) -> FootnoteSplit:
        if self.mode == "multi":
            return split_multi_block(text)
        return split_single_block(text)


def split_single_block(text: str) -> FootnoteSplit:
    match = SEPARATOR_RE.search(text)
    if not match:
        return FootnoteSplit(main=text, footnotes=None)
    main = text[:match.start()].strip()
    footnotes = _LEADING_SEPARATOR_RE.sub("", text[match.start():]).strip()
    return FootnoteSplit(main=main, footnotes=footnotes or None)


def split_multi_block(text: str) -> FootnoteSplit:
    """
    Handle footnote blocks that interrupt the body mid-page.

    In each section after a separator, a non-blank line starting with a
    parenthesized number is a footnote; any other line continues the main
    text. Order is kept within each category.
    """
    sections = SEPARATOR_RE.split(text)
    if len(sections) <= 1:
        return FootnoteSplit(main=text, footnotes=None)

    main_parts: List[str] = [sections[0].rstrip()]
    footnote_parts: List[str] = []

    for section in sections[1:]:
        continuation_lines: List[str] = []
        footnote_lines: List[str] = []
        for line in section.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                continue
            if _FOOTNOTE_LINE_RE.match(trimmed):
                footnote_lines.append(trimmed)
            else:
                continuation_lines.append(line)

        if continuation_lines:
            main_parts.append("\n".join(continuation_lines))
        if footnote_lines:
            footnote_parts.append("\n".join(footnote_lines))

    main = "\n".join(main_parts).strip()
    footnotes = "\n".join(footnote_parts) if footnote_parts else None
    return FootnoteSplit(main=main, footnotes=footnotes)


def split_takhrij(text: str) -> Tuple[str, Optional[str]]:
    """Separate trailing takhrij commentary from the narration."""
    match = _TAKHRIJ_SEPARATOR_RE.search(text)
    if not match:
        return text, None
    return text[:match.start()].strip(), text[match.end():].strip() or None


def strip_trailing_headings(text: str) -> str:
    """Drop heading lines (and blank lines) from the end of a body."""
    lines = text.split("\n")
    while lines:
        last = lines[-1].strip()
        if not last or is_heading_line(last):
            lines.pop()
            continue
        break
    return "\n".join(lines)


def strip_footnote_trailing_headings(text: str) -> str:
    """Like strip_trailing_headings, also dropping chapter intros."""
    lines = text.split("\n")
    while lines:
        last = lines[-1].strip()
        if not last or is_heading_line(last):
            lines.pop()
            continue
        plain = normalize_alef(strip_diacritics(last))
        if any(p.match(plain) for p in _FOOTNOTE_INTRO_PATTERNS) or last.startswith("﴿"):
            lines.pop()
            continue
        break
    return "\n".join(lines).strip()
