"""
Chunk storage module for reading page chunks and writing extracted units.
"""

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Pattern

from . import config
from .data_models import Chunk, ChunkFormatError, ExtractedChunk, Page

logger = logging.getLogger(__name__)


class ChunkStore(ABC):
    """
    Abstract base class for chunk storage.

    This defines the interface for loading page chunks and persisting the
    segmentation output of each chunk.
    """

    @classmethod
    def create(cls, store_type: str, store_config: Dict[str, Any]) -> "ChunkStore":
        """
        Factory method to create a ChunkStore instance.

        Args:
            store_type: Type of store (e.g., 'file')
            store_config: Configuration parameters for the store
                cache_dir: Directory holding chunk-NNN.json files

        Returns:
            ChunkStore instance
        """
        if store_type.lower() == "file":
            return FileChunkStore(store_config["cache_dir"])
        raise ValueError(f"Unsupported chunk store type: {store_type}")

    @abstractmethod
    def list_chunk_ids(self) -> List[int]:
        """Ids of all stored input chunks, ascending."""
        pass

    @abstractmethod
    def load_chunk(self, chunk_id: int) -> Chunk:
        """
        Load one input chunk.

        Raises:
            ChunkFormatError: if the chunk cannot be parsed
        """
        pass

    @abstractmethod
    def save_chunk(self, chunk: Chunk) -> str:
        pass

    @abstractmethod
    def save_extracted(self, extracted: ExtractedChunk) -> str:
        pass

    @abstractmethod
    def load_extracted(self, chunk_id: int) -> ExtractedChunk:
        pass

    @abstractmethod
    def list_extracted_ids(self) -> List[int]:
        pass

    @abstractmethod
    def save_report(self, report: Dict[str, Any]) -> str:
        """Persist the summary of a parse run."""
        pass


class FileChunkStore(ChunkStore):
    """
    File-system implementation of the ChunkStore interface.

    Layout inside ``cache_dir``:
    1. chunk-NNN.json: input pages
    2. chunk-NNN.extracted.json: segmentation output
    3. parse-report.json: summary of the last parse run
    """

    def __init__(self, cache_dir: str):
        self.cache_dir = cache_dir
        self._chunk_re = re.compile(config.CHUNK_FILE_PATTERN)
        self._extracted_re = re.compile(
            r"^chunk-(\d+)" + re.escape(config.EXTRACTED_SUFFIX) + "$"
        )

    def _chunk_path(self, chunk_id: int) -> str:
        return os.path.join(self.cache_dir, f"chunk-{chunk_id:03d}.json")

    def _extracted_path(self, chunk_id: int) -> str:
        return os.path.join(self.cache_dir, f"chunk-{chunk_id:03d}{config.EXTRACTED_SUFFIX}")

    def _list_ids(self, pattern: Pattern[str]) -> List[int]:
        if not os.path.isdir(self.cache_dir):
            raise FileNotFoundError(f"Cache directory not found: {self.cache_dir}")
        ids = []
        for name in os.listdir(self.cache_dir):
            match = pattern.match(name)
            if match:
                ids.append(int(match.group(1)))
        return sorted(ids)

    def list_chunk_ids(self) -> List[int]:
        return self._list_ids(self._chunk_re)

    def list_extracted_ids(self) -> List[int]:
        return self._list_ids(self._extracted_re)

    def _read_json(self, path: str) -> Any:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Chunk file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ChunkFormatError(f"{path}: invalid JSON ({e})") from e

    def _write_json(self, path: str, data: Dict[str, Any]) -> str:
        os.makedirs(self.cache_dir, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return path

    def load_chunk(self, chunk_id: int) -> Chunk:
        path = self._chunk_path(chunk_id)
        data = self._read_json(path)
        try:
            return Chunk.from_dict(data)
        except ChunkFormatError as e:
            raise ChunkFormatError(f"{path}: {e}") from e

    def save_chunk(self, chunk: Chunk) -> str:
        return self._write_json(self._chunk_path(chunk.chunk_id), chunk.to_dict())

    def save_extracted(self, extracted: ExtractedChunk) -> str:
        path = self._write_json(self._extracted_path(extracted.chunk_id), extracted.to_dict())
        logger.debug(f"Saved {len(extracted.units)} units to {path}")
        return path

    def load_extracted(self, chunk_id: int) -> ExtractedChunk:
        path = self._extracted_path(chunk_id)
        data = self._read_json(path)
        try:
            return ExtractedChunk.from_dict(data)
        except ChunkFormatError as e:
            raise ChunkFormatError(f"{path}: {e}") from e

    def save_report(self, report: Dict[str, Any]) -> str:
        return self._write_json(os.path.join(self.cache_dir, config.REPORT_FILE), report)


def load_pages(path: str) -> List[Page]:
    """
    Read an exported page list.

    Accepts either a JSON array of page objects or an object with a
    ``pages`` array.

    Raises:
        FileNotFoundError: if the file does not exist
        ChunkFormatError: if the file is not a valid page list
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Pages file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ChunkFormatError(f"{path}: invalid JSON ({e})") from e

    if isinstance(data, dict):
        data = data.get("pages")
    if not isinstance(data, list):
        raise ChunkFormatError(f"{path}: expected a list of pages")
    return [Page.from_dict(item) for item in data]
