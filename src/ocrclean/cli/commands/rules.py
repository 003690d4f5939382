"""
Rule set inspection commands.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml

from ocrclean.cli.base import resolve_rule_set, rules_option
from ocrclean.core.rules import rule_set_to_dict


@click.group()
def rules():
    """Inspect and validate rule sets."""
    pass


@rules.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def rules_validate(path: Path):
    """Check that a rule set file loads cleanly."""
    rule_set = resolve_rule_set(path)
    click.echo(
        f"OK: {rule_set.name} v{rule_set.version} "
        f"({len(rule_set.segments)} segments, {len(rule_set.misreads)} misread rules, "
        f"{len(rule_set.lookups)} lookup tables)"
    )


@rules.command("show")
@rules_option
def rules_show(rules_path: Path | None):
    """Print the effective rule set as YAML."""
    rule_set = resolve_rule_set(rules_path)
    click.echo(yaml.safe_dump(rule_set_to_dict(rule_set), sort_keys=False, allow_unicode=True))
