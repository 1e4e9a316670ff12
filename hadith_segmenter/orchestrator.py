import json
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from tqdm import tqdm

from .batch import BatchProcessor
from .collection_configs import CollectionConfig
from .context import CarryStateManager
from .data_models import CarryState, ChunkStats, ExtractedChunk, Page, ParsedUnit
from .post_processor import assign_unique_unit_numbers, merge_extracted_chunks
from .processors.chunk_processor import ChunkProcessor
from .storage import ChunkStore

logger = logging.getLogger(__name__)


@dataclass
class CollectionReport:
    """Outcome of one parse run over a collection."""

    slug: str
    chunks_processed: int = 0
    stats: ChunkStats = field(default_factory=ChunkStats)
    final_state: CarryState = field(default_factory=CarryState)
    output_paths: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "collection": self.slug,
            "chunksProcessed": self.chunks_processed,
            "units": self.stats.units,
            "emptyKitab": self.stats.empty_kitab,
            "emptyBab": self.stats.empty_bab,
            "emptyContent": self.stats.empty_content,
            "crossReferences": self.stats.cross_references,
            "withFootnotes": self.stats.with_footnotes,
            "finalState": self.final_state.to_dict(),
        }


def _percent(count: int, total: int) -> str:
    if not total:
        return "0.0%"
    return f"{count / total * 100:.1f}%"


def _log_totals(slug: str, stats: ChunkStats) -> None:
    logger.info(f"{slug}: {stats.units} units total")
    logger.info(f"  empty kitab:      {stats.empty_kitab} ({_percent(stats.empty_kitab, stats.units)})")
    logger.info(f"  empty bab:        {stats.empty_bab} ({_percent(stats.empty_bab, stats.units)})")
    logger.info(f"  empty content:    {stats.empty_content} ({_percent(stats.empty_content, stats.units)})")
    logger.info(f"  cross-references: {stats.cross_references} ({_percent(stats.cross_references, stats.units)})")
    logger.info(f"  with footnotes:   {stats.with_footnotes} ({_percent(stats.with_footnotes, stats.units)})")


def process_collection(
    collection: CollectionConfig,
    store: ChunkStore,
    dry_run: bool = False,
    chunk_id: Optional[int] = None,
) -> CollectionReport:
    """
    Main orchestration function to segment every chunk of a collection.

    Chunks are processed strictly in ascending id order; each chunk starts
    from the carry state the previous chunk returned.

    Args:
        collection: Collection configuration
        store: Store holding the collection's chunk files
        dry_run: Parse and report without writing output files
        chunk_id: Process only this chunk, starting from an empty state

    Returns:
        Report with aggregate quality counters and the final carry state

    Raises:
        ChunkFormatError: if any chunk is malformed; the run stops there
        FileNotFoundError: if the cache directory or a chunk is missing
    """
    logger.info(f"Starting segmentation of {collection.name} ({collection.slug})")

    chunk_ids = store.list_chunk_ids()
    if chunk_id is not None:
        if chunk_id not in chunk_ids:
            raise FileNotFoundError(f"Chunk {chunk_id} not found for {collection.slug}")
        chunk_ids = [chunk_id]

    report = CollectionReport(slug=collection.slug)
    if not chunk_ids:
        logger.warning(f"No chunk files found for {collection.slug}")
        return report

    processor = ChunkProcessor(collection)
    state = CarryStateManager().create_initial_state()

    for current_id in tqdm(chunk_ids, desc=f"Segmenting {collection.slug}"):
        chunk = store.load_chunk(current_id)
        extracted, state = processor.process(chunk, state)

        chunk_stats = ChunkStats.from_units(extracted.units)
        report.stats = report.stats + chunk_stats
        report.chunks_processed += 1
        logger.info(f"Chunk {current_id} (pages {chunk.pages_from}-{chunk.pages_to}): {chunk_stats.summary()}")

        if not dry_run:
            report.output_paths.append(store.save_extracted(extracted))

    report.final_state = state
    _log_totals(collection.slug, report.stats)
    if dry_run:
        logger.info("Dry run: no files written")
    else:
        report_path = store.save_report(report.to_dict())
        logger.info(f"Report saved to {report_path}")

    return report


def export_collection_pages(
    pages: List[Page],
    store: ChunkStore,
    batch_processor: Optional[BatchProcessor] = None,
) -> List[str]:
    """
    Cut a collection's pages into overlapping chunk files.

    Args:
        pages: Pages in reading order
        store: Destination store
        batch_processor: Chunking settings (defaults from config)

    Returns:
        Paths of the written chunk files
    """
    batch_processor = batch_processor or BatchProcessor()
    chunks = batch_processor.create_chunks(pages)
    if not chunks:
        logger.warning("No content pages left after filtering; nothing exported")
        return []

    paths = [store.save_chunk(chunk) for chunk in tqdm(chunks, desc="Writing chunks")]
    logger.info(
        f"Exported {len(chunks)} chunks ({batch_processor.chunk_size} pages each, "
        f"{batch_processor.overlap} overlap)"
    )
    return paths


def merge_collection(
    collection: CollectionConfig,
    store: ChunkStore,
    output_path: Optional[str] = None,
    unique_numbers: bool = False,
) -> List[ParsedUnit]:
    """
    Merge all extracted chunks of a collection into one deduplicated list.

    Args:
        collection: Collection configuration
        store: Store holding the extracted chunk files
        output_path: Where to write the merged JSON, if anywhere
        unique_numbers: Suffix repeated unit numbers (8, 8a, 8b)

    Returns:
        Merged units sorted by number then page
    """
    extracted_ids = store.list_extracted_ids()
    if not extracted_ids:
        logger.warning(f"No extracted chunks found for {collection.slug}")
        return []

    chunks: List[ExtractedChunk] = [store.load_extracted(cid) for cid in extracted_ids]
    units = merge_extracted_chunks(chunks)
    if unique_numbers:
        units = assign_unique_unit_numbers(units)

    if output_path:
        os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
        result = {
            "collection": collection.slug,
            "name": collection.name,
            "nameArabic": collection.name_arabic,
            "units": [unit.to_dict() for unit in units],
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        logger.info(f"Merged output saved to {output_path}")

    return units
