"""
ocrclean core: pattern-based extraction and normalization of OCR text.

Main components:
- MisreadNormalizer: context-restricted OCR misread correction
- PatternRule / match_first: ordered, offset-anchored regex rules
- SegmentExtractor: chained, dependency-aware segment extraction
- LookupEnricher: static code → description tables
- compile_record / deduplicate: output rows and batch dedup
- ExtractionPipeline: parallel per-record stage plus dedup barrier
"""

from .compiler import DedupPolicy, TieBreak, compile_record, deduplicate, summarize
from .enrichment import LookupEnricher, LookupTable
from .matcher import Match, PatternRule, match_first, match_rule
from .normalizer import MisreadNormalizer, MisreadRule
from .pipeline import ExtractionPipeline, extract
from .rules import RuleSet, builtin_paint_code_rules, load_rule_set, rule_set_to_dict
from .segments import OffsetPolicy, SegmentDefinition, SegmentExtractor
from .types import (
    BatchResult,
    BatchSummary,
    EnrichedValue,
    NormalizedText,
    OutputRecord,
    RawRecord,
    RecordQuality,
    Segment,
    SegmentStatus,
)

__all__ = [
    # Types
    "RawRecord",
    "NormalizedText",
    "Segment",
    "SegmentStatus",
    "EnrichedValue",
    "OutputRecord",
    "RecordQuality",
    "BatchSummary",
    "BatchResult",
    # Normalization
    "MisreadRule",
    "MisreadNormalizer",
    # Matching
    "PatternRule",
    "Match",
    "match_rule",
    "match_first",
    # Segments
    "OffsetPolicy",
    "SegmentDefinition",
    "SegmentExtractor",
    # Enrichment
    "LookupTable",
    "LookupEnricher",
    # Compilation
    "DedupPolicy",
    "TieBreak",
    "compile_record",
    "deduplicate",
    "summarize",
    # Rule sets
    "RuleSet",
    "load_rule_set",
    "rule_set_to_dict",
    "builtin_paint_code_rules",
    # Pipeline
    "ExtractionPipeline",
    "extract",
]
