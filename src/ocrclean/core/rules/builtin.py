"""Built-in paint-code rule set.

Paint callouts on engineering drawings read like ``jdmf14zza3(x3,x5)``:

    jdmf14   standard text (standard family + number)
    zz       topcoat colour code
    a        temperature class
    3        physical property class
    p1       primer code (optional on most drawings)
    (x3,x5)  additional requirements

OCR regularly reads the ``1`` right after the standard family as ``i``, ``l``,
``{``, ``/`` or ``\\``. The misread table fixes that one position only.
"""

from __future__ import annotations

from ..compiler import DedupPolicy, TieBreak
from ..enrichment import LookupTable
from ..matcher import _r
from ..normalizer import MisreadRule
from ..segments import OffsetPolicy, SegmentDefinition
from .schema import RuleSet

PAINT_CODE_MISREADS: tuple[MisreadRule, ...] = (
    MisreadRule(
        name="standard_number_one",
        characters="il{/\\|",
        replacement="1",
        context=r"jdm[a-z]",
    ),
)

PAINT_CODE_SEGMENTS: tuple[SegmentDefinition, ...] = (
    SegmentDefinition(
        name="standard_text",
        rules=(_r("jdm_standard", r"jdm[a-z]\d{1,3}"),),
        offset=OffsetPolicy.SEARCH,
        lookup="standards",
        description_field="standard_desc",
    ),
    SegmentDefinition(
        name="topcoat_color_code",
        rules=(_r("color_code", r"[a-z][a-z0-9]"),),
        lookup="colors",
        description_field="topcoat_color_desc",
    ),
    SegmentDefinition(
        name="temp_class",
        rules=(_r("temp_class", r"[a-e]"),),
    ),
    SegmentDefinition(
        name="physical_property_class",
        rules=(_r("property_class", r"[0-9]"),),
    ),
    SegmentDefinition(
        name="primer_code",
        rules=(_r("primer_code", r"p\d{1,2}"),),
        lookup="primers",
        description_field="primer_desc",
    ),
    SegmentDefinition(
        name="additional_requirements",
        rules=(_r("requirements", r"\(\s*([a-z0-9][a-z0-9,\s]*)\)", group=1),),
        offset=OffsetPolicy.SEARCH,
        independent=True,
        split=",",
    ),
)

PAINT_CODE_LOOKUPS: tuple[LookupTable, ...] = (
    LookupTable("standards", {
        "jdmf14": "Paint and coating finish, general",
        "jdmf15": "Paint and coating finish, high durability",
    }),
    LookupTable("colors", {
        "zz": "Black primer",
        "h2": "Dark green",
        "y1": "Industrial yellow",
        "b3": "Gloss black",
        "g4": "Medium gray",
    }),
    LookupTable("primers", {
        "p1": "Epoxy primer",
        "p2": "Zinc-rich primer",
    }),
)


def builtin_paint_code_rules() -> RuleSet:
    """Paint-code extraction with standard, colour and primer lookups."""
    return RuleSet(
        name="paint-codes",
        version="1.0",
        description="Paint callouts from OCR'd engineering drawings",
        misreads=PAINT_CODE_MISREADS,
        segments=PAINT_CODE_SEGMENTS,
        lookups=PAINT_CODE_LOOKUPS,
        dedup=DedupPolicy(
            key=("source_id", "standard_text"),
            tie_break=TieBreak.MOST_COMPLETE,
        ),
    )
