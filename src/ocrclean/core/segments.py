"""Chained segment extraction.

A code such as ``jdmf14zza3(x3,x5)`` is decomposed left to right: the
standard text, then the colour code that follows it, then the temperature
class, and so on. Each segment's search window starts where the previous
matched segment ended, so a miss early in the chain makes every dependent
segment after it unknowable. Those are marked SHORT_CIRCUIT rather than
guessed at.

Segments flagged ``independent`` are attempted even after a miss, starting
from the end of the last segment that did match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ocrclean.exceptions import ConfigurationError

from .matcher import PatternRule, match_first
from .types import Segment, SegmentStatus

logger = logging.getLogger(__name__)


class OffsetPolicy(str, Enum):
    """Where a segment may start relative to its window."""
    ANCHORED = "anchored"  # exactly at the window start
    SEARCH = "search"      # anywhere at or after the window start


@dataclass(frozen=True)
class SegmentDefinition:
    """
    One step of the extraction chain.

    Attributes:
        name: Segment name, also the default output field name
        rules: Ordered pattern rules; the first that matches wins
        offset: ANCHORED or SEARCH placement inside the window
        skip: Fixed number of characters skipped after the previous segment
        independent: Attempt this segment even when an earlier one is null
        lookup: Name of the lookup table used to describe the value
        description_field: Output name of the description (default ``<name>_desc``)
        split: Separator turning the value into an ordered tuple
        output_field: Output name of the value (default ``name``)
    """

    name: str
    rules: tuple[PatternRule, ...]
    offset: OffsetPolicy = OffsetPolicy.ANCHORED
    skip: int = 0
    independent: bool = False
    lookup: str | None = None
    description_field: str | None = None
    split: str | None = None
    output_field: str | None = None

    @property
    def field_name(self) -> str:
        return self.output_field or self.name

    @property
    def description_name(self) -> str | None:
        if self.lookup is None:
            return None
        return self.description_field or f"{self.field_name}_desc"

    def effective_rules(self) -> tuple[PatternRule, ...]:
        """Rules with anchoring forced by this segment's offset policy."""
        anchored = self.offset == OffsetPolicy.ANCHORED
        return tuple(
            rule if rule.anchored == anchored
            else PatternRule(rule.name, rule.pattern, rule.group, anchored)
            for rule in self.rules
        )


class SegmentExtractor:
    """Runs an ordered list of segment definitions over normalized text."""

    def __init__(self, definitions: Iterable[SegmentDefinition]):
        self.definitions: tuple[SegmentDefinition, ...] = tuple(definitions)
        if not self.definitions:
            raise ConfigurationError("At least one segment must be defined", setting_name="segments")

        seen: set[str] = set()
        outputs: set[str] = set()
        for definition in self.definitions:
            setting = f"segments.{definition.name}"
            if not definition.name:
                raise ConfigurationError("Segment name must not be empty", setting_name="segments")
            if definition.name in seen:
                raise ConfigurationError("Duplicate segment name", setting_name=setting)
            seen.add(definition.name)
            for out in (definition.field_name, definition.description_name):
                if out is None:
                    continue
                if out in outputs:
                    raise ConfigurationError(
                        "Duplicate output field", setting_name=setting, setting_value=out
                    )
                outputs.add(out)
            if not definition.rules:
                raise ConfigurationError("Segment has no rules", setting_name=setting)
            if definition.skip < 0:
                raise ConfigurationError(
                    "Segment skip must be >= 0",
                    setting_name=setting,
                    setting_value=definition.skip,
                )
            for attr in ("split", "lookup", "output_field", "description_field"):
                value = getattr(definition, attr)
                if value is not None and not isinstance(value, str):
                    raise ConfigurationError(
                        f"Segment {attr} must be a string",
                        setting_name=f"{setting}.{attr}",
                        setting_value=value,
                    )
            if definition.split == "":
                raise ConfigurationError("Segment split separator is empty", setting_name=setting)
            if definition.split is not None and definition.lookup is not None:
                raise ConfigurationError(
                    "A split segment cannot use a lookup table", setting_name=setting
                )

        self._rules = tuple(d.effective_rules() for d in self.definitions)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self.definitions]

    def extract(self, text: str) -> tuple[Segment, ...]:
        """Extract every segment in order.

        The window for each segment begins at the end offset of the last
        matched segment (0 before any match) plus the segment's ``skip``.
        """
        segments: list[Segment] = []
        cursor = 0
        chain_open = True

        for definition, rules in zip(self.definitions, self._rules):
            if not chain_open and not definition.independent:
                segments.append(Segment.short_circuit(definition.name))
                continue

            found = match_first(text, rules, cursor + definition.skip)
            if found is None:
                logger.debug("Segment %s: no match from offset %d", definition.name, cursor)
                segments.append(Segment.miss(definition.name))
                chain_open = False
                continue

            segments.append(Segment(
                name=definition.name,
                start_offset=found.start,
                end_offset=found.end,
                matched_value=found.value,
                status=SegmentStatus.MATCHED,
                rule=found.rule,
            ))
            cursor = found.end
            chain_open = True

        return tuple(segments)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(segments={self.names})"
