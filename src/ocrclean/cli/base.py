"""Shared CLI decorators and utilities."""

from __future__ import annotations

import csv
import functools
import io
import json
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ocrclean.core.rules import RuleSet, builtin_paint_code_rules, load_rule_set
from ocrclean.core.types import BatchSummary
from ocrclean.exceptions import ConfigurationError

# Human-facing output goes to stderr; stdout carries data rows
err_console = Console(stderr=True)


def format_option(
    choices: list[str] | None = None,
    default: str | None = None,
) -> Callable[..., Any]:
    """Add ``--format`` / ``-f`` option with configurable choices.

    The Python parameter is named ``output_format`` to avoid shadowing the
    built-in ``format``.
    """
    if choices is None:
        choices = ["json", "jsonl", "csv"]
    if default is None:
        default = choices[0]

    def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
        @click.option(
            "--format", "-f", "output_format",
            type=click.Choice(choices),
            default=default,
            help="Output format",
        )
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return f(*args, **kwargs)
        return wrapper
    return decorator


def rules_option(f: Callable[..., Any]) -> Callable[..., Any]:
    """Add ``--rules`` option pointing at a YAML/JSON rule set."""
    @click.option(
        "--rules", "-r", "rules_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="Rule set file (YAML/JSON). Defaults to the built-in paint-code rules.",
    )
    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return f(*args, **kwargs)
    return wrapper


def spinner(description: str = "Working...") -> Progress:
    """Create a spinner-style progress indicator for indeterminate operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    )


def resolve_rule_set(rules_path: Path | None) -> RuleSet:
    """Load ``rules_path`` or fall back to the built-in rules.

    Exits with status 2 on a ConfigurationError.
    """
    try:
        if rules_path is None:
            return builtin_paint_code_rules()
        return load_rule_set(rules_path)
    except ConfigurationError as e:
        click.echo(f"Error: Invalid rule set: {e}", err=True)
        raise SystemExit(2) from e


def format_rows(rows: list[dict[str, Any]], output_format: str) -> str:
    """Render output rows as a JSON array, JSON lines or CSV."""
    if output_format == "jsonl":
        return "\n".join(json.dumps(row, default=str) for row in rows)

    if output_format == "csv":
        columns: list[str] = []
        for row in rows:
            for key in row:
                if key not in columns:
                    columns.append(key)
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({
                k: ",".join(str(v) for v in value) if isinstance(value, list) else value
                for k, value in row.items()
            })
        return buf.getvalue().rstrip()

    return json.dumps(rows, indent=2, default=str)


def print_summary(summary: BatchSummary, title: str = "Batch summary") -> None:
    """Print a data-quality summary table to stderr."""
    table = Table(title=title)
    table.add_column("Outcome")
    table.add_column("Records", justify="right")
    table.add_row("Complete", str(summary.complete))
    table.add_row("Partial", str(summary.partial))
    table.add_row("Empty", str(summary.empty))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Duplicates dropped", str(summary.duplicates_dropped))
    table.add_row("[bold]Total[/bold]", f"[bold]{summary.total}[/bold]")
    err_console.print(table)


def read_records(path: Path) -> list[Any]:
    """Read raw records from a JSON array or a JSON-lines file."""
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        data = json.loads(text)
        return list(data)
    return [json.loads(line) for line in _non_blank(text.splitlines())]


def _non_blank(lines: Iterable[str]) -> Iterable[str]:
    return (line for line in lines if line.strip())
