"""
Heading tracking: recognizes kitab (container) and bab (subsection) lines and
keeps the active heading in document order.

Each HeadingRule holds:
  - pattern : compiled regex, matched at the start of a diacritic-free line
  - level   : "kitab" or "bab"
  - extract : builds the heading text from the original (vocalized) line

Rules are tried in order; the first one that matches decides the line.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern

from .data_models import Heading
from .utils.arabic import clean_kitab_name, strip_diacritics

LEVEL_KITAB = "kitab"
LEVEL_BAB = "bab"


@dataclass(frozen=True)
class HeadingRule:
    pattern: Pattern[str]
    level: str
    extract: Callable[[str], str]


def _p(pattern: str) -> Pattern[str]:
    return re.compile(pattern)


def _bracketed(line: str) -> str:
    """[كتاب ...] → كتاب ..."""
    close = line.find("]")
    inner = line[1:close] if close >= 0 else line[1:]
    return inner.strip()


def _as_is(line: str) -> str:
    return line


_BRACKETED_KITAB = HeadingRule(_p(r"^\[كتاب"), LEVEL_KITAB, _bracketed)

_KITAB_RULES = {
    "standalone": [
        HeadingRule(_p(r"^(?:[٠-٩]+\s*-\s*)?كتاب(?:\s|$)"), LEVEL_KITAB, clean_kitab_name),
        HeadingRule(_p(r"^أبواب(?:\s|$)"), LEVEL_KITAB, clean_kitab_name),
    ],
    "numbered": [
        HeadingRule(_p(r"^[٠-٩]+\s*-\s*كتاب"), LEVEL_KITAB, clean_kitab_name),
    ],
}

_BAB_RULES = {
    "standalone": [
        HeadingRule(_p(r"^باب(?:\s|$)"), LEVEL_BAB, _as_is),
        HeadingRule(_p(r"^[٠-٩]+\s*-\s*باب"), LEVEL_BAB, _as_is),
    ],
    "numbered": [
        # (N) باب ... or (N) (M) باب ...
        HeadingRule(_p(r"^\([٠-٩]+\)\s*(?:\([٠-٩]+\)\s*)?-?\s*باب"), LEVEL_BAB, _as_is),
    ],
    "none": [],
}

# Lines that are structural, not narration; trimmed from the tail of a body
TRAILING_HEADING_PATTERNS = [
    _p(r"^\([٠-٩]+\)\s*(?:\([٠-٩]+\)\s*)?-?\s*باب"),
    _p(r"^[٠-٩]+\s*-\s*كتاب"),
    _p(r"^[٠-٩]+\s*-\s*باب"),
    _p(r"^كتاب\s"),
    _p(r"^باب\s"),
    _p(r"^أبواب\s"),
    _p(r"^\[كتاب"),
    _p(r"^ذكر\s"),
]


def build_rules(kitab_style: str = "standalone", bab_style: str = "standalone") -> List[HeadingRule]:
    """
    Assemble the rule list for a collection's heading styles.

    Raises:
        ValueError: if a style is unknown
    """
    if kitab_style not in _KITAB_RULES:
        raise ValueError(f"Unsupported kitab style: {kitab_style}")
    if bab_style not in _BAB_RULES:
        raise ValueError(f"Unsupported bab style: {bab_style}")
    return _KITAB_RULES[kitab_style] + [_BRACKETED_KITAB] + _BAB_RULES[bab_style]


def is_heading_line(line: str) -> bool:
    plain = strip_diacritics(line.strip())
    return any(p.match(plain) for p in TRAILING_HEADING_PATTERNS)


class HeadingTracker:
    """
    Maintains the active (kitab, bab) pair.

    A kitab line replaces the kitab and clears the bab; a bab line replaces
    the bab only. Unrecognized lines are ignored.
    """

    def __init__(self, rules: List[HeadingRule], initial: Optional[Heading] = None):
        self.rules = rules
        self._kitab = initial.kitab if initial else ""
        self._bab = initial.bab if initial else ""

    @classmethod
    def for_styles(cls, kitab_style: str, bab_style: str, initial: Optional[Heading] = None) -> "HeadingTracker":
        return cls(build_rules(kitab_style, bab_style), initial)

    @property
    def heading(self) -> Heading:
        return Heading(kitab=self._kitab, bab=self._bab)

    def set_kitab(self, kitab: str) -> None:
        self._kitab = kitab
        self._bab = ""

    def set_bab(self, bab: str) -> None:
        self._bab = bab

    def observe(self, text: str) -> Heading:
        """
        Scan text that precedes a boundary, line by line.

        Args:
            text: Text between the previous marker and the next boundary

        Returns:
            The active heading after the scan
        """
        for line in text.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                continue
            plain = strip_diacritics(trimmed)
            for rule in self.rules:
                if rule.pattern.match(plain):
                    value = rule.extract(trimmed)
                    if rule.level == LEVEL_KITAB:
                        self.set_kitab(value)
                    else:
                        self.set_bab(value)
                    break
        return self.heading
