#!/usr/bin/env python3
import os
import argparse
import logging
import sys

from hadith_segmenter import config
from hadith_segmenter.batch import BatchProcessor
from hadith_segmenter.collection_configs import COLLECTIONS, get_config
from hadith_segmenter.orchestrator import export_collection_pages, merge_collection, process_collection
from hadith_segmenter.storage import ChunkStore, load_pages

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(config.LOG_FILE, encoding="utf-8")
        ]
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hadith Segmenter: split paginated Arabic hadith collections into units"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--cache-root",
        default=config.CACHE_ROOT,
        help="Directory holding <collection>-pages-cache folders"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Cut a page list into overlapping chunk files")
    export_parser.add_argument("collection", choices=sorted(COLLECTIONS), help="Collection slug")
    export_parser.add_argument("-i", "--input", required=True, help="JSON file with the collection's pages")
    export_parser.add_argument("--chunk-size", type=int, default=config.DEFAULT_CHUNK_SIZE, help="Pages per chunk")
    export_parser.add_argument("--overlap", type=int, default=config.CHUNK_OVERLAP, help="Pages shared by adjacent chunks")

    parse_parser = subparsers.add_parser("parse", help="Segment a collection's chunk files into units")
    parse_parser.add_argument("collection", choices=sorted(COLLECTIONS), help="Collection slug")
    parse_parser.add_argument("--dry-run", action="store_true", help="Report statistics without writing files")
    parse_parser.add_argument("--chunk", type=int, help="Process a single chunk id")

    merge_parser = subparsers.add_parser("merge", help="Merge extracted chunks into one deduplicated file")
    merge_parser.add_argument("collection", choices=sorted(COLLECTIONS), help="Collection slug")
    merge_parser.add_argument(
        "-o", "--output",
        help="Path to save the merged JSON file. If not provided, will use <collection>-units.json in the cache root."
    )
    merge_parser.add_argument(
        "--unique-numbers",
        action="store_true",
        help="Suffix repeated unit numbers with letters (8, 8a, 8b)"
    )

    return parser


def main():
    """
    Main entry point for the Hadith Segmenter.
    """
    args = _build_parser().parse_args()
    _configure_logging(args.verbose)

    collection = get_config(args.collection)
    cache_dir = collection.resolve_cache_dir(os.path.abspath(args.cache_root))
    store = ChunkStore.create("file", {"cache_dir": cache_dir})

    try:
        if args.command == "export":
            pages = load_pages(os.path.abspath(args.input))
            batch_processor = BatchProcessor(chunk_size=args.chunk_size, overlap=args.overlap)
            paths = export_collection_pages(pages, store, batch_processor)
            logger.info(f"Wrote {len(paths)} chunk files to {cache_dir}")

        elif args.command == "parse":
            report = process_collection(collection, store, dry_run=args.dry_run, chunk_id=args.chunk)
            logger.info(f"Processed {report.chunks_processed} chunks, {report.stats.units} units")

        elif args.command == "merge":
            output_path = args.output or os.path.join(
                os.path.abspath(args.cache_root), f"{collection.slug}-units.json"
            )
            units = merge_collection(collection, store, output_path, unique_numbers=args.unique_numbers)
            logger.info(f"Merged {len(units)} units for {collection.slug}")

    except Exception as e:
        logger.error(f"Error during {args.command}: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
