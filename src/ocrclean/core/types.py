"""
Core data types for the ocrclean extraction engine.

This module defines the values that flow through the pipeline:
- RawRecord: One OCR text block as handed over by the ingestion layer
- NormalizedText: raw_text after misread correction
- Segment: One dependent sub-token extracted from the normalized text
- EnrichedValue: A code resolved against a lookup table
- OutputRecord: The compiled, nullable, structured row
- BatchSummary / BatchResult: Data-quality counts for a processed batch

All per-record values are frozen. Nothing downstream mutates an upstream value.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ocrclean.exceptions import RecordError

from .constants import RECORD_ATTRIBUTES

__all__ = [
    # Enums
    "SegmentStatus",
    "RecordQuality",
    # Data classes
    "RawRecord",
    "NormalizedText",
    "Segment",
    "EnrichedValue",
    "OutputRecord",
    "BatchSummary",
    "BatchResult",
    # Aliases
    "FieldValue",
]

# A resolved field is a string, an ordered tuple of strings (split segments) or None.
FieldValue = Union[str, Tuple[str, ...], None]


class SegmentStatus(str, Enum):
    """Outcome of one extraction step."""
    MATCHED = "matched"
    MISS = "miss"                    # rule set matched nothing
    SHORT_CIRCUIT = "short_circuit"  # an upstream dependency was null


class RecordQuality(str, Enum):
    """How much of a record could be resolved."""
    COMPLETE = "complete"  # every segment matched
    PARTIAL = "partial"    # at least one matched, at least one null
    EMPTY = "empty"        # nothing matched


# =============================================================================
# INPUT / INTERMEDIATE VALUES
# =============================================================================

@dataclass(frozen=True)
class RawRecord:
    """
    A single detected text block.

    Attributes:
        source_id: Identifier of the source document (file key, drawing id, ...)
        page_number: 1-indexed page the block was found on
        coordinates: Bounding box of the block, e.g. (x1, y1, x2, y2)
        raw_text: Text exactly as the OCR engine produced it
    """
    source_id: str
    raw_text: str
    page_number: Optional[int] = None
    coordinates: Optional[Tuple[float, ...]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawRecord":
        """Build a record from a flattened OCR row."""
        if "source_id" not in data:
            raise RecordError("Record is missing 'source_id'")
        source_id = str(data["source_id"])
        if "raw_text" not in data:
            raise RecordError("Record is missing 'raw_text'", source_id=source_id)

        coordinates = data.get("coordinates")
        if coordinates is not None:
            try:
                coordinates = tuple(float(c) for c in coordinates)
            except (TypeError, ValueError) as e:
                raise RecordError(
                    f"Invalid coordinates: {coordinates!r}", source_id=source_id
                ) from e

        page_number = data.get("page_number")
        if page_number is not None:
            try:
                page_number = int(page_number)
            except (TypeError, ValueError) as e:
                raise RecordError(
                    f"Invalid page_number: {page_number!r}", source_id=source_id
                ) from e

        return cls(
            source_id=source_id,
            raw_text=data["raw_text"],
            page_number=page_number,
            coordinates=coordinates,
        )


@dataclass(frozen=True)
class NormalizedText:
    """raw_text with misread substitutions applied."""
    original: str
    text: str
    substitutions: int = 0

    @property
    def changed(self) -> bool:
        return self.substitutions > 0


@dataclass(frozen=True)
class Segment:
    """
    One extraction step's result.

    Attributes:
        name: Segment name from the rule set
        start_offset: Start of the whole match in the normalized text
        end_offset: End of the whole match (exclusive); the next window starts here
        matched_value: Selected capture group, "" for an empty match, None if null
        status: MATCHED, MISS or SHORT_CIRCUIT
        rule: Name of the pattern rule that matched
    """
    name: str
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    matched_value: Optional[str] = None
    status: SegmentStatus = SegmentStatus.MISS
    rule: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status == SegmentStatus.MATCHED:
            if self.start_offset is None or self.end_offset is None or self.matched_value is None:
                raise ValueError(f"Matched segment {self.name!r} needs offsets and a value")
            if self.start_offset < 0 or self.end_offset < self.start_offset:
                raise ValueError(
                    f"Invalid segment {self.name!r}: "
                    f"start={self.start_offset} end={self.end_offset}"
                )
        elif self.matched_value is not None:
            raise ValueError(f"Null segment {self.name!r} cannot carry a value")

    @property
    def is_null(self) -> bool:
        return self.status != SegmentStatus.MATCHED

    @classmethod
    def miss(cls, name: str) -> "Segment":
        return cls(name=name, status=SegmentStatus.MISS)

    @classmethod
    def short_circuit(cls, name: str) -> "Segment":
        return cls(name=name, status=SegmentStatus.SHORT_CIRCUIT)


@dataclass(frozen=True)
class EnrichedValue:
    """A code and its human-readable description (None when unmapped)."""
    code: Optional[str]
    description: Optional[str] = None

    @property
    def is_mapped(self) -> bool:
        return self.description is not None


# =============================================================================
# OUTPUT
# =============================================================================

@dataclass(frozen=True)
class OutputRecord:
    """
    One compiled row.

    ``fields`` and ``descriptions`` preserve declaration order. A value is None
    if and only if the segment that produces it was null.
    """
    source_id: str
    page_number: Optional[int]
    coordinates: Optional[Tuple[float, ...]]
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    descriptions: Dict[str, Optional[str]] = field(default_factory=dict)
    quality: RecordQuality = RecordQuality.EMPTY

    def get(self, name: str) -> Any:
        """Look up a field, description or record attribute by name."""
        if name in self.fields:
            return self.fields[name]
        if name in self.descriptions:
            return self.descriptions[name]
        if name in RECORD_ATTRIBUTES:
            return getattr(self, name)
        raise KeyError(name)

    @property
    def resolved_count(self) -> int:
        """Number of non-null segment fields."""
        return sum(1 for v in self.fields.values() if v is not None)

    def to_dict(self) -> dict[str, object]:
        """Flatten to a single row for serialization."""
        row: dict[str, object] = {
            "source_id": self.source_id,
            "page_number": self.page_number,
            "coordinates": list(self.coordinates) if self.coordinates is not None else None,
        }
        for name, value in self.fields.items():
            row[name] = list(value) if isinstance(value, tuple) else value
        row.update(self.descriptions)
        row["quality"] = self.quality.value
        return row


@dataclass(frozen=True)
class BatchSummary:
    """Data-quality counts for one processed batch."""
    total: int = 0
    complete: int = 0
    partial: int = 0
    empty: int = 0
    failed: int = 0
    duplicates_dropped: int = 0

    @property
    def emitted(self) -> int:
        return self.complete + self.partial + self.empty

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "complete": self.complete,
            "partial": self.partial,
            "empty": self.empty,
            "failed": self.failed,
            "duplicates_dropped": self.duplicates_dropped,
        }


@dataclass(frozen=True)
class BatchResult:
    """Compiled, deduplicated records plus their summary."""
    records: Tuple[OutputRecord, ...]
    summary: BatchSummary
    processing_time_ms: float = 0.0

    def __repr__(self) -> str:
        return (
            f"BatchResult(records={len(self.records)}, "
            f"summary={self.summary.to_dict()}, "
            f"processing_time_ms={self.processing_time_ms:.2f})"
        )
