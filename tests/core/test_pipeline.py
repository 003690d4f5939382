"""
End-to-end tests for ExtractionPipeline.

Tests cover:
- The built-in paint-code rules on realistic callouts
- Misread equivalence through the whole pipeline
- Record-level failure isolation
- Parallel processing order and batch dedup
"""

import logging

import pytest

from ocrclean.core.pipeline import ExtractionPipeline, extract
from ocrclean.core.types import RawRecord, RecordQuality, SegmentStatus
from ocrclean.exceptions import ConfigurationError, RecordError
from ocrclean.logging import get_batch_id, set_batch_id


@pytest.fixture
def pipeline():
    return ExtractionPipeline()


# =============================================================================
# PAINT CODE TESTS
# =============================================================================

class TestPaintCodes:
    """The built-in rule set on the callouts it was written for."""

    def test_callout_with_requirements(self, pipeline, record_factory):
        record = pipeline.process_record(record_factory("jdmf14zza3(x3,x5)"))

        assert record.fields == {
            "standard_text": "jdmf14",
            "topcoat_color_code": "zz",
            "temp_class": "a",
            "physical_property_class": "3",
            "primer_code": None,
            "additional_requirements": ("x3", "x5"),
        }
        assert record.descriptions == {
            "standard_desc": "Paint and coating finish, general",
            "topcoat_color_desc": "Black primer",
            "primer_desc": None,
        }
        assert record.quality == RecordQuality.PARTIAL

    def test_misread_callout(self, pipeline, record_factory):
        record = pipeline.process_record(record_factory("jdmfi4h2a3"))

        assert record.get("standard_text") == "jdmf14"
        assert record.get("topcoat_color_code") == "h2"
        assert record.get("topcoat_color_desc") == "Dark green"
        assert record.get("temp_class") == "a"
        assert record.get("physical_property_class") == "3"
        assert record.get("additional_requirements") is None

    def test_callout_with_primer_is_complete(self, pipeline, record_factory):
        record = pipeline.process_record(record_factory("jdmf15y1c2p2(x1)"))

        assert record.get("primer_code") == "p2"
        assert record.get("primer_desc") == "Zinc-rich primer"
        assert record.quality == RecordQuality.COMPLETE

    def test_callout_inside_longer_text(self, pipeline, record_factory):
        record = pipeline.process_record(record_factory("PAINT PER jdmf14b3a3 UNLESS NOTED"))

        assert record.get("standard_text") == "jdmf14"
        assert record.get("topcoat_color_desc") == "Gloss black"

    @pytest.mark.parametrize("misread", ["i", "l", "{", "/", "\\", "|"])
    def test_misreads_compile_identically(self, pipeline, record_factory, misread):
        canonical = pipeline.process_record(record_factory("jdmf14zza3(x3,x5)"))
        misread_record = pipeline.process_record(record_factory(f"jdmf{misread}4zza3(x3,x5)"))

        assert misread_record.to_dict() == canonical.to_dict()

    def test_unmapped_color(self, pipeline, record_factory):
        record = pipeline.process_record(record_factory("jdmf14q9a3"))

        assert record.get("topcoat_color_code") == "q9"
        assert record.get("topcoat_color_desc") is None

    def test_broken_chain(self, pipeline, record_factory):
        """A bad temperature class makes the later dependent fields null."""
        record = pipeline.process_record(record_factory("jdmf14zzx3(x3)"))

        assert record.get("topcoat_color_code") == "zz"
        assert record.get("temp_class") is None
        assert record.get("physical_property_class") is None
        assert record.get("primer_code") is None
        assert record.get("additional_requirements") == ("x3",)

    def test_no_callout(self, pipeline, record_factory):
        record = pipeline.process_record(record_factory("SECTION A-A"))

        assert record.quality == RecordQuality.EMPTY
        assert record.resolved_count == 0

    def test_extract_segments_reports_normalization(self, pipeline):
        normalized, segments = pipeline.extract_segments("jdmf/4zza3")

        assert normalized.text == "jdmf14zza3"
        assert normalized.substitutions == 1
        assert segments[0].status == SegmentStatus.MATCHED


# =============================================================================
# RECORD INPUT TESTS
# =============================================================================

class TestRecordInput:
    """Tests for the accepted record shapes."""

    def test_mapping_input(self, pipeline):
        record = pipeline.process_record({
            "source_id": "dwg-3",
            "raw_text": "jdmf14zza3",
            "page_number": 2,
            "coordinates": [0, 0, 1, 1],
        })

        assert record.source_id == "dwg-3"
        assert record.page_number == 2
        assert record.coordinates == (0.0, 0.0, 1.0, 1.0)

    def test_non_string_text_rejected(self, pipeline):
        with pytest.raises(RecordError, match="raw_text must be a string"):
            pipeline.process_record(RawRecord(source_id="a", raw_text=None))

    def test_unsupported_type_rejected(self, pipeline):
        with pytest.raises(RecordError, match="Unsupported record type"):
            pipeline.process_record("jdmf14zza3")

    def test_invalid_worker_count(self):
        with pytest.raises(ConfigurationError, match="max_workers"):
            ExtractionPipeline(max_workers=0)

    def test_custom_rule_set(self, chain_rules):
        pipeline = ExtractionPipeline(chain_rules)

        record = pipeline.process_record({"source_id": "a", "raw_text": "id-oAB12ab"})

        assert record.get("prefix") == "AB"
        assert record.get("number") == "12"
        assert record.get("suffix_desc") == "Alpha bravo"


# =============================================================================
# BATCH TESTS
# =============================================================================

class TestProcessBatch:
    """Tests for process_batch."""

    def test_order_preserved_with_threads(self, record_factory):
        pipeline = ExtractionPipeline(max_workers=4)
        records = [record_factory(f"jdmf14zza{i % 5}", source_id=f"dwg-{i}") for i in range(40)]

        result = pipeline.process_batch(records)

        assert [r.source_id for r in result.records] == [f"dwg-{i}" for i in range(40)]

    def test_serial_and_parallel_agree(self, record_factory):
        records = [
            record_factory(text, source_id=f"dwg-{i % 3}")
            for i, text in enumerate([
                "jdmf14zza3", "jdmfi4h2a3(x1)", "nothing", "jdmf15y1c2p2",
                "jdmf14zza3p1", "jdmf{5y1c2", "jdmf14", "jdmf15g4b1(x2,x4)",
            ])
        ]

        serial = ExtractionPipeline(max_workers=1).process_batch(records)
        parallel = ExtractionPipeline(max_workers=8).process_batch(records)

        assert [r.to_dict() for r in serial.records] == [r.to_dict() for r in parallel.records]
        assert serial.summary == parallel.summary

    def test_failed_records_counted_not_raised(self, pipeline):
        result = pipeline.process_batch([
            {"source_id": "ok", "raw_text": "jdmf14zza3"},
            {"source_id": "no-text"},
            {"source_id": "bad-text", "raw_text": 42},
            {"raw_text": "jdmf14zza3"},
        ])

        assert [r.source_id for r in result.records] == ["ok"]
        assert result.summary.failed == 3
        assert result.summary.total == 4

    def test_duplicates_collapsed_to_most_complete(self, pipeline, record_factory):
        """Built-in rules dedup on (source_id, standard_text), most complete wins."""
        result = pipeline.process_batch([
            record_factory("jdmf14zz", source_id="dwg-1"),
            record_factory("jdmf15y1c2", source_id="dwg-1"),
            record_factory("jdmf14zza3p1", source_id="dwg-1"),
            record_factory("jdmf14zza3", source_id="dwg-2"),
        ])

        assert [(r.source_id, r.get("standard_text")) for r in result.records] == [
            ("dwg-1", "jdmf14"),
            ("dwg-1", "jdmf15"),
            ("dwg-2", "jdmf14"),
        ]
        assert result.records[0].get("primer_code") == "p1"
        assert result.summary.duplicates_dropped == 1

    def test_records_with_null_key_not_merged(self, chain_rules, record_factory):
        """Records whose whole dedup key is null are kept individually."""
        pipeline = ExtractionPipeline(chain_rules)

        result = pipeline.process_batch([
            record_factory("nothing", source_id="dwg-1"),
            record_factory("still nothing", source_id="dwg-1"),
        ])

        assert len(result.records) == 2
        assert result.summary.duplicates_dropped == 0

    def test_summary(self, pipeline, record_factory):
        result = pipeline.process_batch([
            record_factory("jdmf15y1c2p2(x1)", source_id="a"),
            record_factory("jdmf14zza3", source_id="b"),
            record_factory("nothing", source_id="c"),
        ])

        assert result.summary.complete == 1
        assert result.summary.partial == 1
        assert result.summary.empty == 1
        assert result.processing_time_ms >= 0

    def test_empty_batch(self, pipeline):
        result = pipeline.process_batch([])

        assert result.records == ()
        assert result.summary.total == 0

    def test_accepts_generator(self, pipeline, record_factory):
        result = pipeline.process_batch(
            record_factory("jdmf14zza3", source_id=f"dwg-{i}") for i in range(3)
        )

        assert len(result.records) == 3

    def test_extract_helper(self, chain_rules):
        result = extract(
            [{"source_id": "a", "raw_text": "AB12"}, {"source_id": "b", "raw_text": "AB12"}],
            rule_set=chain_rules,
        )

        # chain rules dedup on (prefix, number) across sources
        assert len(result.records) == 1
        assert result.summary.duplicates_dropped == 1


# =============================================================================
# LOGGING TESTS
# =============================================================================

class TestBatchLogging:
    """Structured log output of a batch."""

    def test_summary_counts_logged_as_extras(self, pipeline, record_factory, caplog):
        with caplog.at_level(logging.INFO, logger="ocrclean.core.pipeline"):
            pipeline.process_batch([
                record_factory("jdmf14zza3", source_id="a"),
                {"source_id": "b"},
            ])

        (summary,) = [r for r in caplog.records if r.getMessage().startswith("Batch processed")]
        assert summary.total == 2
        assert summary.partial == 1
        assert summary.failed == 1

    def test_skipped_record_logs_source_id(self, pipeline, caplog):
        with caplog.at_level(logging.WARNING, logger="ocrclean.core.pipeline"):
            pipeline.process_batch([{"source_id": "dwg-7"}])

        (warning,) = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert warning.source_id == "dwg-7"
        assert "raw_text" in warning.getMessage()

    def test_batch_id_reaches_worker_threads(self):
        """Warnings logged on pool threads carry the caller's batch id."""
        seen = []

        class BatchIdHandler(logging.Handler):
            def emit(self, record):
                seen.append(get_batch_id())

        handler = BatchIdHandler(level=logging.WARNING)
        pipeline_logger = logging.getLogger("ocrclean.core.pipeline")
        pipeline_logger.addHandler(handler)
        set_batch_id("batch-42")
        try:
            ExtractionPipeline(max_workers=4).process_batch(
                [{"source_id": f"bad-{i}"} for i in range(8)]
            )
        finally:
            set_batch_id(None)
            pipeline_logger.removeHandler(handler)

        assert seen == ["batch-42"] * 8
