"""
Rule set loader.

Supports loading rule sets from:
- Built-in Python definitions (see ``builtin.py``)
- YAML files
- JSON files (JSON is valid YAML)
- YAML strings
- Plain dicts
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from ocrclean.exceptions import ConfigurationError

from ..compiler import DedupPolicy, TieBreak
from ..enrichment import LookupTable
from ..matcher import PatternRule
from ..normalizer import MisreadRule
from ..segments import OffsetPolicy, SegmentDefinition
from .schema import RuleSet

logger = logging.getLogger(__name__)


def _require_list(data: Any, setting: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigurationError(
            "Expected a list", setting_name=setting, setting_value=type(data).__name__
        )
    return data


def _require_mapping(data: Any, setting: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Expected a mapping", setting_name=setting, setting_value=type(data).__name__
        )
    return data


def _parse_misread(data: dict[str, Any], index: int) -> MisreadRule:
    data = _require_mapping(data, f"misreads[{index}]")
    name = data.get("name") or f"misread_{index}"
    for required in ("characters", "replacement", "context"):
        if required not in data:
            raise ConfigurationError(
                f"Misread rule is missing '{required}'", setting_name=f"misreads.{name}"
            )
    try:
        max_run = int(data.get("max_run", 1))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "Misread max_run must be an integer",
            setting_name=f"misreads.{name}.max_run",
            setting_value=data.get("max_run"),
        ) from e
    return MisreadRule(
        name=name,
        characters=str(data["characters"]),
        replacement=str(data["replacement"]),
        context=str(data["context"]),
        max_run=max_run,
    )


def _parse_rule(data: Any, segment: str, index: int) -> PatternRule:
    if isinstance(data, str):
        data = {"pattern": data}
    data = _require_mapping(data, f"segments.{segment}.rules[{index}]")
    name = data.get("name") or f"{segment}_{index}"
    if not data.get("pattern"):
        raise ConfigurationError("Rule is missing 'pattern'", setting_name=f"rules.{name}")
    flags = re.IGNORECASE if data.get("ignore_case", False) else 0
    group = data.get("group", 0)
    if not isinstance(group, (int, str)) or isinstance(group, bool):
        raise ConfigurationError(
            "Rule group must be an index or a group name",
            setting_name=f"rules.{name}.group",
            setting_value=group,
        )
    return PatternRule.compile(name, str(data["pattern"]), group=group, flags=flags)


def _optional_str(data: dict[str, Any], key: str, segment: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(
            f"Segment {key} must be a string",
            setting_name=f"segments.{segment}.{key}",
            setting_value=value,
        )
    return value


def _parse_segment(data: dict[str, Any], index: int) -> SegmentDefinition:
    data = _require_mapping(data, f"segments[{index}]")
    name = data.get("name")
    if not name:
        raise ConfigurationError(
            "Segment is missing 'name'", setting_name=f"segments[{index}]"
        )

    offset_str = str(data.get("offset", OffsetPolicy.ANCHORED.value)).lower()
    try:
        offset = OffsetPolicy(offset_str)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown offset policy (expected one of {[p.value for p in OffsetPolicy]})",
            setting_name=f"segments.{name}.offset",
            setting_value=offset_str,
        ) from e

    try:
        skip = int(data.get("skip", 0))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "Segment skip must be an integer",
            setting_name=f"segments.{name}.skip",
            setting_value=data.get("skip"),
        ) from e

    independent = data.get("independent", False)
    if not isinstance(independent, bool):
        raise ConfigurationError(
            "Segment independent must be true or false",
            setting_name=f"segments.{name}.independent",
            setting_value=independent,
        )

    rules = tuple(
        _parse_rule(rule, name, i)
        for i, rule in enumerate(_require_list(data.get("rules"), f"segments.{name}.rules"))
    )

    return SegmentDefinition(
        name=name,
        rules=rules,
        offset=offset,
        skip=skip,
        independent=independent,
        lookup=_optional_str(data, "lookup", name),
        description_field=_optional_str(data, "description_field", name),
        split=_optional_str(data, "split", name),
        output_field=_optional_str(data, "output_field", name),
    )


def _parse_lookups(data: Any) -> tuple[LookupTable, ...]:
    if data is None:
        return ()
    data = _require_mapping(data, "lookups")
    tables = []
    for name, entries in data.items():
        entries = _require_mapping(entries or {}, f"lookups.{name}")
        # YAML turns bare codes like 10 or "on" into non-strings
        tables.append(LookupTable(str(name), {str(k): str(v) for k, v in entries.items()}))
    return tuple(tables)


def _parse_dedup(data: Any) -> DedupPolicy:
    if data is None:
        return DedupPolicy()
    data = _require_mapping(data, "dedup")
    key = data.get("key", [])
    if isinstance(key, str):
        key = [key]
    key = _require_list(key, "dedup.key")

    tie_str = str(data.get("tie_break", TieBreak.FIRST_SEEN.value)).lower()
    try:
        tie_break = TieBreak(tie_str)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown tie-break (expected one of {[t.value for t in TieBreak]})",
            setting_name="dedup.tie_break",
            setting_value=tie_str,
        ) from e
    return DedupPolicy(key=tuple(str(k) for k in key), tie_break=tie_break)


def _read_source(source: str | Path | dict) -> dict[str, Any]:
    if isinstance(source, dict):
        return source
    if not isinstance(source, (str, Path)):
        raise ConfigurationError(f"Invalid rule set source type: {type(source)}")

    try:
        path = Path(source)
        is_file = path.is_file()
    except (OSError, ValueError):
        # Long YAML strings are not valid paths on every platform
        is_file = False

    try:
        if is_file:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        elif isinstance(source, Path):
            raise ConfigurationError("Rule set file not found", setting_value=str(source))
        else:
            # Assume it's YAML content
            data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Rule set is not valid YAML/JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Rule set must be a mapping", setting_value=type(data).__name__
        )
    return data


def load_rule_set(source: str | Path | dict) -> RuleSet:
    """
    Load a rule set from YAML, JSON, or dict.

    Args:
        source: File path, YAML string, or dict

    Returns:
        Parsed and validated RuleSet

    Raises:
        ConfigurationError: for any structural problem
    """
    data = _read_source(source)

    name = data.get("name")
    if not name:
        raise ConfigurationError("Rule set must have a 'name' field", setting_name="name")

    misreads = tuple(
        _parse_misread(entry, i)
        for i, entry in enumerate(_require_list(data.get("misreads"), "misreads"))
    )
    segments = tuple(
        _parse_segment(entry, i)
        for i, entry in enumerate(_require_list(data.get("segments"), "segments"))
    )

    rule_set = RuleSet(
        name=str(name),
        version=str(data.get("version", "1.0")),
        description=data.get("description", ""),
        misreads=misreads,
        segments=segments,
        lookups=_parse_lookups(data.get("lookups")),
        dedup=_parse_dedup(data.get("dedup")),
    )
    logger.info(
        "Loaded rule set %s v%s (%d segments, %d misread rules, %d lookup tables)",
        rule_set.name, rule_set.version,
        len(rule_set.segments), len(rule_set.misreads), len(rule_set.lookups),
    )
    return rule_set


def rule_set_to_dict(rule_set: RuleSet) -> dict[str, Any]:
    """Serialize a rule set back to the declarative form ``load_rule_set`` reads."""
    segments = []
    for definition in rule_set.segments:
        entry: dict[str, Any] = {
            "name": definition.name,
            "offset": definition.offset.value,
            "rules": [
                {
                    "name": rule.name,
                    "pattern": rule.pattern.pattern,
                    "group": rule.group,
                    **({"ignore_case": True} if rule.pattern.flags & re.IGNORECASE else {}),
                }
                for rule in definition.rules
            ],
        }
        if definition.skip:
            entry["skip"] = definition.skip
        if definition.independent:
            entry["independent"] = True
        if definition.lookup is not None:
            entry["lookup"] = definition.lookup
        if definition.description_field is not None:
            entry["description_field"] = definition.description_field
        if definition.split is not None:
            entry["split"] = definition.split
        if definition.output_field is not None:
            entry["output_field"] = definition.output_field
        segments.append(entry)

    return {
        "name": rule_set.name,
        "version": rule_set.version,
        "description": rule_set.description,
        "misreads": [
            {
                "name": rule.name,
                "characters": rule.characters,
                "replacement": rule.replacement,
                "context": rule.context,
                "max_run": rule.max_run,
            }
            for rule in rule_set.misreads
        ],
        "segments": segments,
        "lookups": {table.name: dict(table.entries) for table in rule_set.lookups},
        "dedup": {
            "key": list(rule_set.dedup.key),
            "tie_break": rule_set.dedup.tie_break.value,
        },
    }
