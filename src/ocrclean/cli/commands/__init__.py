"""
CLI command modules.

This module provides all CLI commands for ocrclean.
"""

# Batch extraction command
from ocrclean.cli.commands.extract import extract

# Rule set commands
from ocrclean.cli.commands.rules import rules

__all__ = [
    "extract",
    "rules",
]
