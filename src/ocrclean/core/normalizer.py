"""Context-restricted OCR misread correction.

A misread rule rewrites a small character class (``{``, ``l``, ``/``, ``\\``)
to one canonical character, but only in the run immediately following a
context pattern such as a known code prefix. Text outside a configured
context is never touched.

Rules are frozen dataclasses and the normalizer holds no mutable state, so one
instance is safe to share across worker threads.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from ocrclean.exceptions import ConfigurationError

from .types import NormalizedText

logger = logging.getLogger(__name__)

_RUN_GROUP = "misread_run"


@dataclass(frozen=True)
class MisreadRule:
    """
    One substitution table entry.

    Attributes:
        name: Identifier used in logs and error messages
        characters: Characters OCR produces in place of ``replacement``
        replacement: The canonical character
        context: Regex that must match immediately before the misread run
        max_run: Maximum number of consecutive misread characters rewritten
    """

    name: str
    characters: str
    replacement: str
    context: str
    max_run: int = 1


def _compile_rule(rule: MisreadRule) -> re.Pattern[str]:
    setting = f"misreads.{rule.name}"
    if not rule.characters:
        raise ConfigurationError(
            "Misread rule has an empty character class", setting_name=setting
        )
    if len(rule.replacement) != 1:
        raise ConfigurationError(
            "Misread replacement must be exactly one character",
            setting_name=setting,
            setting_value=rule.replacement,
        )
    if rule.replacement in rule.characters:
        raise ConfigurationError(
            "Misread replacement cannot also be a misread character",
            setting_name=setting,
            setting_value=rule.replacement,
        )
    if rule.max_run < 1:
        raise ConfigurationError(
            "Misread max_run must be at least 1",
            setting_name=setting,
            setting_value=rule.max_run,
        )
    if not rule.context:
        raise ConfigurationError(
            "Misread rule needs a context pattern; blind replacement is not allowed",
            setting_name=setting,
        )
    try:
        context = re.compile(rule.context)
    except re.error as e:
        raise ConfigurationError(
            f"Invalid misread context pattern: {e}",
            setting_name=setting,
            setting_value=rule.context,
        ) from e
    if context.fullmatch(""):
        raise ConfigurationError(
            "Misread context must not match the empty string",
            setting_name=setting,
            setting_value=rule.context,
        )

    char_class = "[" + "".join(re.escape(c) for c in rule.characters) + "]"
    return re.compile(
        f"(?:{rule.context})(?P<{_RUN_GROUP}>{char_class}{{1,{rule.max_run}}})"
    )


class MisreadNormalizer:
    """Applies misread rules in declared order until the text is stable."""

    def __init__(self, rules: Iterable[MisreadRule] = ()):
        self.rules: tuple[MisreadRule, ...] = tuple(rules)
        self._compiled = tuple(_compile_rule(rule) for rule in self.rules)

        # A replacement that is another rule's misread character could cycle.
        misread_chars = {c for rule in self.rules for c in rule.characters}
        for rule in self.rules:
            if rule.replacement in misread_chars:
                raise ConfigurationError(
                    "Misread replacement is a misread character of another rule",
                    setting_name=f"misreads.{rule.name}",
                    setting_value=rule.replacement,
                )

        names = [rule.name for rule in self.rules]
        if len(names) != len(set(names)):
            raise ConfigurationError("Duplicate misread rule names", setting_value=names)

    def normalize(self, text: str) -> NormalizedText:
        """Return ``text`` with every in-context misread rewritten.

        Passes repeat until the text is stable. A rewrite can create a new
        context, so runs longer than ``max_run`` are fixed across passes.
        Every changing pass removes at least one misread character (no
        replacement is itself a misread character), so the loop terminates.
        """
        current = text
        total = 0
        while True:
            current, changed = self._apply_once(current)
            if not changed:
                break
            total += changed
        return NormalizedText(original=text, text=current, substitutions=total)

    def _apply_once(self, text: str) -> tuple[str, int]:
        changed = 0
        for rule, pattern in zip(self.rules, self._compiled):
            count = 0

            def _replace(m: re.Match[str], rule: MisreadRule = rule) -> str:
                nonlocal count
                run_start = m.start(_RUN_GROUP) - m.start()
                run = m.group(_RUN_GROUP)
                count += len(run)
                return m.group(0)[:run_start] + rule.replacement * len(run)

            text = pattern.sub(_replace, text)
            if count:
                logger.debug("Misread rule %s rewrote %d character(s)", rule.name, count)
            changed += count
        return text, changed

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rules={[r.name for r in self.rules]})"
