"""
Shared data models for the segmentation engine.

Input side: Page and Chunk, as written by the page exporter.
Output side: ParsedUnit and ExtractedChunk, serialized with the camelCase keys
the downstream importer reads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ChunkFormatError(ValueError):
    """Raised when a chunk object is structurally invalid."""


def _require(data: Dict[str, Any], key: str, expected: Tuple[type, ...], where: str) -> Any:
    if not isinstance(data, dict):
        raise ChunkFormatError(f"{where}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise ChunkFormatError(f"{where}: missing required key '{key}'")
    value = data[key]
    # bool is an int subclass; it is never a valid number here
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ChunkFormatError(
            f"{where}: '{key}' has type {type(value).__name__}, "
            f"expected {' or '.join(t.__name__ for t in expected)}"
        )
    return value


@dataclass(frozen=True)
class Page:
    """One source page of plain text."""

    page_number: int
    volume_number: int
    printed_page_number: Optional[int]
    content_plain: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        where = "page"
        printed = data.get("printedPageNumber") if isinstance(data, dict) else None
        if printed is not None and (isinstance(printed, bool) or not isinstance(printed, int)):
            raise ChunkFormatError(f"{where}: 'printedPageNumber' must be an integer or null")
        return cls(
            page_number=_require(data, "pageNumber", (int,), where),
            volume_number=_require(data, "volumeNumber", (int,), where),
            printed_page_number=printed,
            content_plain=_require(data, "contentPlain", (str,), where),
        )

    def to_dict(self) -> dict:
        return {
            "pageNumber": self.page_number,
            "volumeNumber": self.volume_number,
            "printedPageNumber": self.printed_page_number,
            "contentPlain": self.content_plain,
        }


@dataclass(frozen=True)
class Chunk:
    """An ordered window of pages, possibly overlapping the previous chunk."""

    chunk_id: int
    pages_from: int
    pages_to: int
    pages: Tuple[Page, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        """
        Build a chunk from its JSON object.

        Raises:
            ChunkFormatError: if a key is missing or has the wrong type
        """
        where = "chunk"
        raw_pages = _require(data, "pages", (list,), where)
        return cls(
            chunk_id=_require(data, "chunkId", (int,), where),
            pages_from=_require(data, "pagesFrom", (int,), where),
            pages_to=_require(data, "pagesTo", (int,), where),
            pages=tuple(Page.from_dict(p) for p in raw_pages),
        )

    def to_dict(self) -> dict:
        return {
            "chunkId": self.chunk_id,
            "pagesFrom": self.pages_from,
            "pagesTo": self.pages_to,
            "pages": [page.to_dict() for page in self.pages],
        }


@dataclass(frozen=True)
class Heading:
    """Structural context above a unit: container (kitab) and subsection (bab)."""

    kitab: str = ""
    bab: str = ""

    def is_empty(self) -> bool:
        return not self.kitab and not self.bab

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Heading":
        if not data:
            return cls()
        return cls(kitab=data.get("kitab") or "", bab=data.get("bab") or "")

    def to_dict(self) -> dict:
        return {"kitab": self.kitab, "bab": self.bab}


class BoundaryKind(str, Enum):
    UNIT = "unit"
    HEADING = "heading"


@dataclass(frozen=True)
class Boundary:
    """A detected marker: the start of a unit, or a structural heading."""

    position: int  # Offset where the marker starts
    end: int  # Offset where the marker ends and the body begins
    text: str
    number: Optional[int] = None
    kind: BoundaryKind = BoundaryKind.UNIT
    heading_text: str = ""

    @property
    def is_unit(self) -> bool:
        return self.kind == BoundaryKind.UNIT


@dataclass(frozen=True)
class ParsedUnit:
    """One structured output record (hadith, ordinal item or du'a entry)."""

    unit_number: str
    sequential_number: int
    chain_text: str
    content_text: str
    heading: Heading
    footnotes: Optional[str]
    page_start: int
    page_end: int
    is_cross_reference_only: bool = False

    @property
    def key(self) -> Tuple[str, int]:
        """Deduplication key."""
        return (self.unit_number, self.page_start)

    @property
    def text_length(self) -> int:
        return len(self.chain_text) + len(self.content_text)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "unitNumber": self.unit_number,
            "sequentialNumber": self.sequential_number,
            "chainText": self.chain_text,
            "contentText": self.content_text,
            "heading": self.heading.to_dict(),
            "footnotes": self.footnotes,
            "pageStart": self.page_start,
            "pageEnd": self.page_end,
            "isCrossReferenceOnly": self.is_cross_reference_only,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedUnit":
        where = "unit"
        return cls(
            unit_number=_require(data, "unitNumber", (str,), where),
            sequential_number=_require(data, "sequentialNumber", (int,), where),
            chain_text=data.get("chainText") or "",
            content_text=data.get("contentText") or "",
            heading=Heading.from_dict(data.get("heading")),
            footnotes=data.get("footnotes"),
            page_start=_require(data, "pageStart", (int,), where),
            page_end=_require(data, "pageEnd", (int,), where),
            is_cross_reference_only=bool(data.get("isCrossReferenceOnly", False)),
        )


@dataclass(frozen=True)
class CarryState:
    """State threaded from one chunk to the next, in chunk order."""

    last_unit_number: int = 0
    last_heading: Heading = field(default_factory=Heading)
    last_page: int = 0

    def to_dict(self) -> dict:
        return {
            "lastUnitNumber": self.last_unit_number,
            "lastHeading": self.last_heading.to_dict(),
            "lastPage": self.last_page,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CarryState":
        return cls(
            last_unit_number=int(data.get("lastUnitNumber", 0)),
            last_heading=Heading.from_dict(data.get("lastHeading")),
            last_page=int(data.get("lastPage", 0)),
        )


@dataclass
class ExtractedChunk:
    """One chunk's output."""

    chunk_id: int
    last_heading: Heading
    units: List[ParsedUnit] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "chunkId": self.chunk_id,
            "lastHeading": self.last_heading.to_dict(),
            "units": [unit.to_dict() for unit in self.units],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedChunk":
        where = "extracted chunk"
        raw_units = _require(data, "units", (list,), where)
        return cls(
            chunk_id=_require(data, "chunkId", (int,), where),
            last_heading=Heading.from_dict(data.get("lastHeading")),
            units=[ParsedUnit.from_dict(u) for u in raw_units],
        )


@dataclass
class ChunkStats:
    """Quality counters a reviewer uses to audit coverage."""

    units: int = 0
    empty_kitab: int = 0
    empty_bab: int = 0
    empty_content: int = 0
    cross_references: int = 0
    with_footnotes: int = 0

    @classmethod
    def from_units(cls, units: List[ParsedUnit]) -> "ChunkStats":
        return cls(
            units=len(units),
            empty_kitab=sum(1 for u in units if not u.heading.kitab),
            empty_bab=sum(1 for u in units if not u.heading.bab),
            empty_content=sum(1 for u in units if not u.content_text),
            cross_references=sum(1 for u in units if u.is_cross_reference_only),
            with_footnotes=sum(1 for u in units if u.footnotes),
        )

    def __add__(self, other: "ChunkStats") -> "ChunkStats":
        return ChunkStats(
            units=self.units + other.units,
            empty_kitab=self.empty_kitab + other.empty_kitab,
            empty_bab=self.empty_bab + other.empty_bab,
            empty_content=self.empty_content + other.empty_content,
            cross_references=self.cross_references + other.cross_references,
            with_footnotes=self.with_footnotes + other.with_footnotes,
        )

    def summary(self) -> str:
        def _field(name: str, count: int) -> str:
            return f"{name}: {'ok' if count == 0 else f'{count} empty'}"

        return (
            f"{self.units} units ("
            f"{_field('kitab', self.empty_kitab)}, "
            f"{_field('bab', self.empty_bab)}, "
            f"{_field('content', self.empty_content)}, "
            f"cross-ref: {self.cross_references}, "
            f"footnotes: {self.with_footnotes})"
        )
