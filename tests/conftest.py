"""
Shared test configuration for ocrclean.

Provides record factories and small rule sets used across the test modules.
"""

import pytest

from ocrclean.core.compiler import DedupPolicy, TieBreak
from ocrclean.core.enrichment import LookupTable
from ocrclean.core.matcher import _r
from ocrclean.core.normalizer import MisreadRule
from ocrclean.core.rules import RuleSet, builtin_paint_code_rules
from ocrclean.core.segments import OffsetPolicy, SegmentDefinition
from ocrclean.core.types import RawRecord


# =============================================================================
# RECORD FACTORY FUNCTIONS
# =============================================================================

def make_record(
    raw_text: str,
    source_id: str = "drawing-1",
    page_number: int | None = 1,
    coordinates: tuple | None = (10.0, 20.0, 110.0, 40.0),
) -> RawRecord:
    """Create a RawRecord with sensible defaults."""
    return RawRecord(
        source_id=source_id,
        raw_text=raw_text,
        page_number=page_number,
        coordinates=coordinates,
    )


@pytest.fixture
def record_factory():
    """Factory fixture for creating raw records."""
    return make_record


# =============================================================================
# RULE SETS
# =============================================================================

@pytest.fixture
def paint_rules() -> RuleSet:
    """The built-in paint-code rule set."""
    return builtin_paint_code_rules()


@pytest.fixture
def chain_rules() -> RuleSet:
    """Three-step chain (letters, digits, letters) plus an independent tag."""
    return RuleSet(
        name="chain",
        misreads=(
            MisreadRule(name="o_zero", characters="oO", replacement="0", context=r"id-"),
        ),
        segments=(
            SegmentDefinition(
                name="prefix",
                rules=(_r("prefix", r"[A-Z]{2,3}"),),
                offset=OffsetPolicy.SEARCH,
            ),
            SegmentDefinition(
                name="number",
                rules=(_r("number", r"\d{2,4}"),),
            ),
            SegmentDefinition(
                name="suffix",
                rules=(_r("suffix", r"[a-z]{1,2}"),),
                lookup="suffixes",
            ),
            SegmentDefinition(
                name="tag",
                rules=(_r("tag", r"#(\w+)", group=1),),
                offset=OffsetPolicy.SEARCH,
                independent=True,
            ),
        ),
        lookups=(LookupTable("suffixes", {"ab": "Alpha bravo"}),),
        dedup=DedupPolicy(key=("prefix", "number"), tie_break=TieBreak.FIRST_SEEN),
    )
