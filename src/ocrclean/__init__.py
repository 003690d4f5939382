"""
ocrclean - rule-driven extraction of structured records from noisy OCR text.

Usage:
    from ocrclean import ExtractionPipeline, RawRecord

    pipeline = ExtractionPipeline()  # built-in paint-code rules
    result = pipeline.process_batch([
        RawRecord(source_id="drawing-42", raw_text="jdmf14zza3(x3,x5)"),
    ])
    for record in result.records:
        print(record.to_dict())
"""

from ocrclean.core import (
    BatchResult,
    BatchSummary,
    ExtractionPipeline,
    OutputRecord,
    RawRecord,
    RuleSet,
    builtin_paint_code_rules,
    extract,
    load_rule_set,
)
from ocrclean.exceptions import ConfigurationError, OcrCleanError, RecordError

__version__ = "0.1.0"

__all__ = [
    "ExtractionPipeline",
    "extract",
    "RawRecord",
    "OutputRecord",
    "BatchResult",
    "BatchSummary",
    "RuleSet",
    "load_rule_set",
    "builtin_paint_code_rules",
    "OcrCleanError",
    "ConfigurationError",
    "RecordError",
]
