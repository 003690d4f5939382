"""
Core constants for the ocrclean extraction engine.

Import from this module rather than hardcoding values.
"""

__all__ = [
    "DEFAULT_MAX_WORKERS",
    "RECORD_ATTRIBUTES",
]

# --- PROCESSING ---
DEFAULT_MAX_WORKERS = 4

# --- OUTPUT ---
# Fields every OutputRecord carries regardless of rule set
RECORD_ATTRIBUTES = ("source_id", "page_number", "coordinates")
