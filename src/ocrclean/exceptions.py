"""
Unified exception hierarchy for ocrclean.

All exception classes live here. No per-module exception files.

Hierarchy:
    OcrCleanError (base)
    ├── ConfigurationError - malformed rules, lookups or settings (fatal at startup)
    └── RecordError - a single record could not be processed (fatal to that record)

Extraction misses and dependency short-circuits are not exceptions. They are
reported as data on each Segment (see ``ocrclean.core.types.SegmentStatus``)
so one malformed record never halts a batch.
"""

from typing import Any, Optional

__all__ = [
    "OcrCleanError",
    "ConfigurationError",
    "RecordError",
]


class OcrCleanError(Exception):
    """
    Base exception for all ocrclean errors.

    Provides consistent error formatting with optional context.

    Attributes:
        message: Human-readable error description
        context: Additional context about what was being done
        details: Technical details (setting names, source ids, etc.)
    """

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with context and details."""
        parts = [self.message]
        if self.context:
            parts.append(f"Context: {self.context}")
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            parts.append(f"Details: {detail_str}")
        return ". ".join(parts)


class ConfigurationError(OcrCleanError):
    """
    Raised when a rule set, lookup table or setting is invalid.

    Examples:
        - Misread rule with an empty character class
        - Regular expression that does not compile
        - Capture group index beyond the pattern's groups
        - Segment referencing an unknown lookup table
        - Dedup key naming a field no segment produces

    Usage:
        try:
            rule_set = load_rule_set(path)
        except ConfigurationError as e:
            logger.error(f"Invalid rule set: {e}")
            sys.exit(1)
    """

    def __init__(
        self,
        message: str,
        setting_name: Optional[str] = None,
        setting_value: Optional[Any] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if setting_name:
            details["setting"] = setting_name
        if setting_value is not None:
            details["value"] = repr(setting_value)
        super().__init__(message, details=details, **kwargs)
        self.setting_name = setting_name
        self.setting_value = setting_value


class RecordError(OcrCleanError):
    """
    Raised when one input record cannot be processed at all.

    The batch pipeline catches this, counts the record as failed and moves on.

    Examples:
        - raw_text is not a string
        - A mapping passed as a record is missing ``source_id``
    """

    def __init__(
        self,
        message: str,
        source_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if source_id is not None:
            details["source_id"] = source_id
        super().__init__(message, details=details, **kwargs)
        self.source_id = source_id
