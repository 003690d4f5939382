"""
Schema for declarative rule sets.

A rule set bundles the four pieces of configuration the engine needs:
- misreads: ordered OCR misread substitutions
- segments: ordered segment definitions with their pattern rules
- lookups: static code → description tables
- dedup: dedup key and tie-break policy

Rule sets are plain data (YAML/JSON/dict) so patterns can be extended
without touching extraction logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ocrclean.exceptions import ConfigurationError

from ..compiler import DedupPolicy, validate_dedup_key
from ..enrichment import LookupEnricher, LookupTable
from ..normalizer import MisreadNormalizer, MisreadRule
from ..segments import SegmentDefinition, SegmentExtractor


@dataclass(frozen=True)
class RuleSet:
    """A complete, validated extraction configuration."""

    name: str
    segments: tuple[SegmentDefinition, ...]
    version: str = "1.0"
    description: str = ""
    misreads: tuple[MisreadRule, ...] = ()
    lookups: tuple[LookupTable, ...] = ()
    dedup: DedupPolicy = field(default_factory=DedupPolicy)

    def __post_init__(self) -> None:
        self.validate()

    @property
    def output_fields(self) -> list[str]:
        """Every field an OutputRecord built from this rule set carries."""
        names: list[str] = []
        for definition in self.segments:
            names.append(definition.field_name)
            if definition.description_name is not None:
                names.append(definition.description_name)
        return names

    def lookup(self, name: str) -> LookupTable | None:
        for table in self.lookups:
            if table.name == name:
                return table
        return None

    def validate(self) -> None:
        """Check cross-references between sections."""
        if not self.name:
            raise ConfigurationError("Rule set must have a 'name' field", setting_name="name")
        if not self.segments:
            raise ConfigurationError("Rule set defines no segments", setting_name="segments")

        # Component constructors carry the per-section checks
        MisreadNormalizer(self.misreads)
        SegmentExtractor(self.segments)
        LookupEnricher(self.lookups)

        table_names = {table.name for table in self.lookups}
        for definition in self.segments:
            if definition.lookup is not None and definition.lookup not in table_names:
                raise ConfigurationError(
                    "Segment references an unknown lookup table",
                    setting_name=f"segments.{definition.name}.lookup",
                    setting_value=definition.lookup,
                )

        validate_dedup_key(self.dedup, self.output_fields)
