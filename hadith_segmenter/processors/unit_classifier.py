"""
Heuristic chain/content split and cross-reference detection.
"""

import re
from typing import Optional, Tuple

from ..collection_configs import (
    DELIMITER_DEFERRED,
    DELIMITER_GUILLEMETS_OR_BRACKETS,
    DELIMITER_GUILLEMETS_TRANSITION,
    DELIMITER_QUOTES,
    CollectionConfig,
    SegmentationThresholds,
)
from ..utils.arabic import strip_diacritics, strip_with_index_map


GUILLEMET_OPEN = "«"
GUILLEMET_CLOSE = "»"
QURAN_OPEN = "﴿"
QURAN_CLOSE = "﴾"
CURLY_OPEN = "“"
CURLY_CLOSE = "”"

# Reporting verbs that hand over from the chain to the quoted content
TRANSITION_PATTERNS = [
    re.compile(r"قال:\s"),
    re.compile(r"يقول:\s"),
    re.compile(r"قالت:\s"),
]

# "Similarly" / "with this same chain" phrasing of a brief cross-reference
CROSS_REFERENCE_RE = re.compile(
    r"بمثله|بنحوه|مثله|نحوه|بمثل ذلك|بنحو حديثهم|بنحو حديث|بهذا الإسناد|بهذا الاسناد"
)


def find_delimited(text: str, open_char: str, close_char: str) -> Optional[Tuple[int, int]]:
    """Outermost delimiter pair: first opening glyph to last closing glyph."""
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end <= start:
        return None
    return start, end


def split_on_transition(span: str, cutoff: float) -> Tuple[str, str]:
    """
    Split a quoted span at its last reporting verb.

    Only verbs ending at or before ``cutoff`` of the span's diacritic-free
    length are considered.

    Args:
        span: Text inside the delimiters
        cutoff: Fraction of the span length a verb must end within

    Returns:
        (chain, content); chain is empty when no verb qualifies
    """
    stripped = strip_with_index_map(span)
    limit = len(stripped.text) * cutoff
    best_start = -1
    best_end = -1

    for pattern in TRANSITION_PATTERNS:
        for match in pattern.finditer(stripped.text):
            if match.end() <= limit and match.end() > best_end:
                best_start = match.start()
                best_end = match.end()

    if best_end < 0:
        return "", span.strip()

    chain = span[:stripped.original_start(best_start)].strip()
    content = span[stripped.original_end(best_end):].strip()
    return chain, content


class UnitClassifier:
    """
    Splits a unit's text into chain (isnad) and content (matn).

    The delimiter mode comes from the collection:
    - deferred: no split here; the whole text is content
    - guillemets_transition: «...» holds the narration, split at a reporting verb
    - quotes: "..." or “...” holds the content, the chain precedes it
    - guillemets_or_brackets: «...» or ﴿...﴾ holds the content
    """

    def __init__(
        self,
        delimiter: str = DELIMITER_DEFERRED,
        thresholds: Optional[SegmentationThresholds] = None,
        detect_cross_references: bool = True,
    ):
        if delimiter not in (
            DELIMITER_DEFERRED,
            DELIMITER_GUILLEMETS_TRANSITION,
            DELIMITER_QUOTES,
            DELIMITER_GUILLEMETS_OR_BRACKETS,
        ):
            raise ValueError(f"Unsupported chain delimiter: {delimiter}")
        self.delimiter = delimiter
        self.thresholds = thresholds or SegmentationThresholds()
        self.detect_cross_references = detect_cross_references

    @classmethod
    def for_config(cls, config: CollectionConfig) -> "UnitClassifier":
        return cls(
            delimiter=config.chain_delimiter,
            thresholds=config.thresholds,
            detect_cross_references=config.detect_cross_references,
        )

    def split(self, text: str) -> Tuple[str, str]:
        """Return (chain, content) for a unit's main text."""
        if self.delimiter == DELIMITER_GUILLEMETS_TRANSITION:
            return self._split_guillemets_transition(text)
        if self.delimiter == DELIMITER_QUOTES:
            return self._split_quotes(text)
        if self.delimiter == DELIMITER_GUILLEMETS_OR_BRACKETS:
            return self._split_guillemets_or_brackets(text)
        return "", text.strip()

    def _split_guillemets_transition(self, text: str) -> Tuple[str, str]:
        pair = find_delimited(text, GUILLEMET_OPEN, GUILLEMET_CLOSE)
        if pair is None:
            # No quoted narration: keep everything as chain for later review
            return text.strip(), ""
        inside = text[pair[0] + 1:pair[1]].strip()
        return split_on_transition(inside, self.thresholds.transition_cutoff)

    def _split_quotes(self, text: str) -> Tuple[str, str]:
        for open_char, close_char in (('"', '"'), (CURLY_OPEN, CURLY_CLOSE)):
            pair = find_delimited(text, open_char, close_char)
            if pair is not None:
                return text[:pair[0]].strip(), text[pair[0] + 1:pair[1]].strip()
        return text.strip(), ""

    def _split_guillemets_or_brackets(self, text: str) -> Tuple[str, str]:
        pair = find_delimited(text, GUILLEMET_OPEN, GUILLEMET_CLOSE)
        if pair is not None:
            return text[:pair[0]].strip(), text[pair[0] + 1:pair[1]].strip()
        pair = find_delimited(text, QURAN_OPEN, QURAN_CLOSE)
        if pair is not None:
            # Qur'anic brackets stay part of the content
            return text[:pair[0]].strip(), text[pair[0]:pair[1] + 1].strip()
        return "", text.strip()

    def is_cross_reference(self, text: str) -> bool:
        """
        Flag brief cross-references ("similarly", "with this chain").

        Short text is flagged on phrase match; very short text is flagged
        regardless of phrasing.
        """
        if not self.detect_cross_references:
            return False
        stripped = strip_diacritics(text)
        if len(stripped) >= self.thresholds.cross_reference_max_chars:
            return False
        if CROSS_REFERENCE_RE.search(stripped):
            return True
        return len(stripped) < self.thresholds.cross_reference_short_chars
