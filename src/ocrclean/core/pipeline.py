"""Runs the per-record stages in parallel, then deduplicates the batch."""

from __future__ import annotations

import contextvars
import logging
import time
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Union

from ocrclean.exceptions import ConfigurationError, RecordError

from .compiler import compile_record, deduplicate, summarize
from .constants import DEFAULT_MAX_WORKERS
from .enrichment import LookupEnricher
from .normalizer import MisreadNormalizer
from .rules import RuleSet, builtin_paint_code_rules
from .segments import SegmentExtractor
from .types import BatchResult, NormalizedText, OutputRecord, RawRecord, Segment

logger = logging.getLogger(__name__)

RecordInput = Union[RawRecord, Mapping[str, Any]]


class ExtractionPipeline:
    """Normalizes, extracts, enriches and compiles records, then deduplicates.

    Every component is built once here from the rule set and never mutated,
    so the per-record stage can run on any number of threads.
    """

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        if max_workers < 1:
            raise ConfigurationError(
                "max_workers must be at least 1",
                setting_name="max_workers",
                setting_value=max_workers,
            )
        self.rule_set = rule_set or builtin_paint_code_rules()
        self.max_workers = max_workers

        self.normalizer = MisreadNormalizer(self.rule_set.misreads)
        self.extractor = SegmentExtractor(self.rule_set.segments)
        self.enricher = LookupEnricher(self.rule_set.lookups)

        logger.info(
            f"ExtractionPipeline initialized with rule set {self.rule_set.name!r}: "
            f"segments={self.extractor.names}, "
            f"lookups={self.enricher.table_names}, "
            f"max_workers={self.max_workers}"
        )

    def extract_segments(self, text: str) -> tuple[NormalizedText, tuple[Segment, ...]]:
        """Normalize ``text`` and run the segment chain over it."""
        normalized = self.normalizer.normalize(text)
        return normalized, self.extractor.extract(normalized.text)

    def process_record(self, record: RecordInput) -> OutputRecord:
        """Run one record through every per-record stage.

        Raises:
            RecordError: if the record itself is unusable
        """
        if isinstance(record, Mapping):
            record = RawRecord.from_dict(record)
        elif not isinstance(record, RawRecord):
            raise RecordError(f"Unsupported record type: {type(record).__name__}")
        if not isinstance(record.raw_text, str):
            raise RecordError(
                f"raw_text must be a string, got {type(record.raw_text).__name__}",
                source_id=record.source_id,
            )

        normalized, segments = self.extract_segments(record.raw_text)
        if normalized.changed:
            logger.debug(
                "Record %s: %d misread character(s) corrected",
                record.source_id, normalized.substitutions,
            )
        return compile_record(record, segments, self.rule_set.segments, self.enricher)

    def _process_isolated(self, record: RecordInput) -> OutputRecord | None:
        try:
            return self.process_record(record)
        except RecordError as e:
            logger.warning(f"Skipping record: {e.message}", extra={"source_id": e.source_id})
            return None

    def process_batch(self, records: Iterable[RecordInput]) -> BatchResult:
        """Process a batch and deduplicate it.

        Output order follows input order (first appearance per dedup key).
        Records that raise RecordError are counted as failed and skipped.
        """
        start_time = time.perf_counter()
        items = list(records)

        if self.max_workers == 1 or len(items) < 2:
            compiled = [self._process_isolated(r) for r in items]
        else:
            # Worker threads do not inherit context vars (batch id for logging)
            contexts = [contextvars.copy_context() for _ in items]
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                compiled = list(executor.map(
                    lambda ctx, r: ctx.run(self._process_isolated, r), contexts, items
                ))

        # Barrier: dedup needs the full batch
        succeeded = [r for r in compiled if r is not None]
        failed = len(compiled) - len(succeeded)
        kept, dropped = deduplicate(succeeded, self.rule_set.dedup)
        summary = summarize(kept, failed=failed, duplicates_dropped=dropped)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Batch processed in %.1f ms", elapsed_ms, extra=summary.to_dict()
        )
        return BatchResult(records=tuple(kept), summary=summary, processing_time_ms=elapsed_ms)


def extract(
    records: Iterable[RecordInput],
    rule_set: RuleSet | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> BatchResult:
    """Convenience wrapper: build a pipeline and process one batch."""
    return ExtractionPipeline(rule_set, max_workers=max_workers).process_batch(records)
