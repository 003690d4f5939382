"""Record compilation and batch deduplication.

Compilation turns one record's segments into an OutputRecord. Deduplication
is a pure function over the whole compiled batch: it groups records by a
configured key and keeps one representative per group, chosen by a
configurable tie-break.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ocrclean.exceptions import ConfigurationError

from .constants import RECORD_ATTRIBUTES
from .enrichment import LookupEnricher
from .segments import SegmentDefinition
from .types import (
    BatchSummary,
    FieldValue,
    OutputRecord,
    RawRecord,
    RecordQuality,
    Segment,
)

logger = logging.getLogger(__name__)


class TieBreak(str, Enum):
    """Which record survives when several share a dedup key."""
    FIRST_SEEN = "first_seen"
    LAST_SEEN = "last_seen"
    MOST_COMPLETE = "most_complete"  # most non-null fields, then first seen


@dataclass(frozen=True)
class DedupPolicy:
    """Dedup key fields and tie-break rule. An empty key disables dedup."""
    key: Tuple[str, ...] = ()
    tie_break: TieBreak = TieBreak.FIRST_SEEN

    @property
    def enabled(self) -> bool:
        return bool(self.key)


# =============================================================================
# COMPILATION
# =============================================================================

def _field_value(segment: Segment, definition: SegmentDefinition) -> FieldValue:
    if segment.is_null:
        return None
    value = segment.matched_value
    if definition.split is not None:
        return tuple(part.strip() for part in value.split(definition.split) if part.strip())
    return value


def _quality(segments: Sequence[Segment]) -> RecordQuality:
    matched = sum(1 for s in segments if not s.is_null)
    if matched == len(segments):
        return RecordQuality.COMPLETE
    if matched == 0:
        return RecordQuality.EMPTY
    return RecordQuality.PARTIAL


def compile_record(
    raw: RawRecord,
    segments: Sequence[Segment],
    definitions: Sequence[SegmentDefinition],
    enricher: LookupEnricher,
) -> OutputRecord:
    """Assemble one OutputRecord from a record's segments.

    A field is None if and only if its segment is null. Empty matches stay "".
    """
    if len(segments) != len(definitions):
        raise ValueError(
            f"Got {len(segments)} segments for {len(definitions)} definitions"
        )

    fields: Dict[str, FieldValue] = {}
    descriptions: Dict[str, Optional[str]] = {}

    for segment, definition in zip(segments, definitions):
        if segment.name != definition.name:
            raise ValueError(
                f"Segment {segment.name!r} does not match definition {definition.name!r}"
            )
        fields[definition.field_name] = _field_value(segment, definition)

        if definition.lookup is not None:
            enriched = enricher.enrich(definition.lookup, segment.matched_value)
            descriptions[definition.description_name] = enriched.description

    return OutputRecord(
        source_id=raw.source_id,
        page_number=raw.page_number,
        coordinates=raw.coordinates,
        fields=fields,
        descriptions=descriptions,
        quality=_quality(segments),
    )


# =============================================================================
# DEDUPLICATION
# =============================================================================

def validate_dedup_key(policy: DedupPolicy, available: Iterable[str]) -> None:
    """Reject dedup keys that name fields no record will carry."""
    known = set(available) | set(RECORD_ATTRIBUTES)
    for name in policy.key:
        if name not in known:
            raise ConfigurationError(
                "Dedup key references an unknown field",
                setting_name="dedup.key",
                setting_value=name,
            )


def _dedup_key(record: OutputRecord, key: Tuple[str, ...]) -> Tuple[Any, ...]:
    return tuple(record.get(name) for name in key)


def _wins(candidate: OutputRecord, incumbent: OutputRecord, tie_break: TieBreak) -> bool:
    """Return True if candidate (seen later) should replace incumbent."""
    if tie_break == TieBreak.LAST_SEEN:
        return True
    if tie_break == TieBreak.MOST_COMPLETE:
        return candidate.resolved_count > incumbent.resolved_count
    return False  # FIRST_SEEN


def deduplicate(
    records: Sequence[OutputRecord],
    policy: DedupPolicy,
) -> Tuple[List[OutputRecord], int]:
    """Keep one record per dedup key.

    Output is ordered by each group's first appearance, so the result is the
    same across repeated runs over the same input order. Records whose key
    fields are all None are never merged with each other.

    Returns:
        (kept records, number of records dropped)
    """
    if not policy.enabled:
        return list(records), 0

    slots: List[OutputRecord] = []
    index_by_key: Dict[Tuple[Any, ...], int] = {}

    for record in records:
        key = _dedup_key(record, policy.key)
        if all(part is None for part in key):
            slots.append(record)
            continue

        slot = index_by_key.get(key)
        if slot is None:
            index_by_key[key] = len(slots)
            slots.append(record)
        elif _wins(record, slots[slot], policy.tie_break):
            slots[slot] = record

    dropped = len(records) - len(slots)
    if dropped:
        logger.debug("Deduplication on %s dropped %d record(s)", policy.key, dropped)
    return slots, dropped


def summarize(
    records: Iterable[OutputRecord],
    failed: int = 0,
    duplicates_dropped: int = 0,
) -> BatchSummary:
    """Count complete / partial / empty records for data-quality reporting."""
    counts = {quality: 0 for quality in RecordQuality}
    for record in records:
        counts[record.quality] += 1
    emitted = sum(counts.values())
    return BatchSummary(
        total=emitted + failed + duplicates_dropped,
        complete=counts[RecordQuality.COMPLETE],
        partial=counts[RecordQuality.PARTIAL],
        empty=counts[RecordQuality.EMPTY],
        failed=failed,
        duplicates_dropped=duplicates_dropped,
    )
