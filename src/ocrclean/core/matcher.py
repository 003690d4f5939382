"""Ordered regex rules with offset anchoring.

Rules are frozen dataclasses stored in tuples. No mutation, no import-time
side effects, safe to share across instances and threads.

Evaluation is first-match-wins in declared order, not most-specific-wins.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from ocrclean.exceptions import ConfigurationError


@dataclass(frozen=True)
class PatternRule:
    """Immutable, hashable pattern rule."""

    name: str
    pattern: re.Pattern[str]
    group: int | str = 0
    anchored: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.group, int):
            if self.group < 0 or self.group > self.pattern.groups:
                raise ConfigurationError(
                    f"Capture group {self.group} out of range "
                    f"(pattern has {self.pattern.groups})",
                    setting_name=f"rules.{self.name}.group",
                    setting_value=self.group,
                )
        elif self.group not in self.pattern.groupindex:
            raise ConfigurationError(
                f"Unknown named group {self.group!r}",
                setting_name=f"rules.{self.name}.group",
                setting_value=self.group,
            )

    @classmethod
    def compile(
        cls,
        name: str,
        regex: str,
        group: int | str = 0,
        anchored: bool = True,
        flags: int = 0,
    ) -> PatternRule:
        """Compile ``regex``, turning regex errors into ConfigurationError."""
        try:
            pattern = re.compile(regex, flags)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid pattern: {e}",
                setting_name=f"rules.{name}.pattern",
                setting_value=regex,
            ) from e
        return cls(name=name, pattern=pattern, group=group, anchored=anchored)


def _r(
    name: str,
    regex: str,
    group: int | str = 0,
    anchored: bool = True,
    flags: int = 0,
) -> PatternRule:
    """Shorthand for defining a rule."""
    return PatternRule.compile(name, regex, group=group, anchored=anchored, flags=flags)


@dataclass(frozen=True)
class Match:
    """Whole-match span plus the selected group's text."""

    rule: str
    start: int
    end: int
    value: str


def match_rule(text: str, rule: PatternRule, start: int = 0) -> Match | None:
    """Apply one rule at ``start``.

    Anchored rules must match exactly at ``start``; unanchored rules take the
    first match at or after it. Text before ``start`` is never scanned, but
    lookbehinds may still see it.
    """
    if start > len(text):
        return None
    if rule.anchored:
        m = rule.pattern.match(text, start)
    else:
        m = rule.pattern.search(text, start)
    if m is None:
        return None
    value = m.group(rule.group)
    if value is None:
        # Selected group did not participate in the match
        return None
    return Match(rule=rule.name, start=m.start(), end=m.end(), value=value)


def match_first(text: str, rules: Sequence[PatternRule], start: int = 0) -> Match | None:
    """Return the first rule's match, trying rules in declared order."""
    for rule in rules:
        found = match_rule(text, rule, start)
        if found is not None:
            return found
    return None
