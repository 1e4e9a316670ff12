"""
Hadith Segmenter
================

This package segments paginated, diacritic-bearing classical Arabic hadith
collections into structured units: narration chain, content, kitab/bab
heading context, footnotes and page provenance.
"""

__version__ = "0.1.0"

from .collection_configs import COLLECTIONS, CollectionConfig, get_config
from .data_models import CarryState, Chunk, ChunkFormatError, ExtractedChunk, Heading, Page, ParsedUnit


# Avoid importing tqdm and the processors until a run is requested
def get_chunk_processor():
    from .processors.chunk_processor import ChunkProcessor
    return ChunkProcessor


def get_process_collection():
    from .orchestrator import process_collection
    return process_collection


__all__ = [
    "COLLECTIONS",
    "CarryState",
    "Chunk",
    "ChunkFormatError",
    "CollectionConfig",
    "ExtractedChunk",
    "Heading",
    "Page",
    "ParsedUnit",
    "get_chunk_processor",
    "get_config",
    "get_process_collection",
]
