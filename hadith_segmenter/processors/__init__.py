"""
Processors for boundary scanning, footnote splitting, chain/content
classification and whole-chunk segmentation.
"""

from .boundary_scanner import BoundaryScanner, ItemMarkerScanner, NumberedMarkerScanner, OrdinalHeadingScanner
from .chunk_processor import ChunkProcessor
from .footnotes import FootnoteSplit, FootnoteSplitter
from .unit_classifier import UnitClassifier

__all__ = [
    "BoundaryScanner",
    "ChunkProcessor",
    "FootnoteSplit",
    "FootnoteSplitter",
    "ItemMarkerScanner",
    "NumberedMarkerScanner",
    "OrdinalHeadingScanner",
    "UnitClassifier",
]
