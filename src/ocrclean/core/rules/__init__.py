"""
Declarative rule sets for the extraction engine.

Components:
- RuleSet: validated bundle of misreads, segments, lookups and dedup policy
- load_rule_set: YAML/JSON/dict loader
- builtin_paint_code_rules: the paint-callout example rule set
"""

from .builtin import builtin_paint_code_rules
from .loader import load_rule_set, rule_set_to_dict
from .schema import RuleSet

__all__ = [
    "RuleSet",
    "load_rule_set",
    "rule_set_to_dict",
    "builtin_paint_code_rules",
]
