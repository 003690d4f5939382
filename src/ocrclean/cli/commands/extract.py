"""
Extract command for batch processing of OCR records.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import click

from ocrclean.cli.base import (
    format_option,
    format_rows,
    print_summary,
    read_records,
    resolve_rule_set,
    rules_option,
    spinner,
)
from ocrclean.config import get_settings
from ocrclean.core.pipeline import ExtractionPipeline
from ocrclean.exceptions import ConfigurationError
from ocrclean.logging import set_batch_id


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@rules_option
@format_option()
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              help="Output file (stdout when omitted)")
@click.option("--workers", "-w", type=int, default=None, help="Worker threads (default from settings)")
@click.option("--quiet", "-q", is_flag=True, help="Suppress the summary table")
def extract(
    input_path: Path,
    rules_path: Path | None,
    output_format: str,
    output: Path | None,
    workers: int | None,
    quiet: bool,
):
    """Extract structured records from a file of raw OCR records.

    INPUT_PATH is a JSON array or JSON-lines file whose items carry
    source_id, raw_text and optionally page_number and coordinates.

    Examples:
        ocrclean extract blocks.jsonl
        ocrclean extract blocks.json --rules paint.yaml -o rows.csv -f csv
    """
    settings = get_settings()
    if rules_path is None:
        rules_path = settings.processing.rules_path
    rule_set = resolve_rule_set(rules_path)

    try:
        records = read_records(input_path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        click.echo(f"Error reading {input_path}: {e}", err=True)
        raise SystemExit(1) from e

    if workers is None:
        workers = settings.processing.max_workers
    try:
        pipeline = ExtractionPipeline(rule_set, max_workers=workers)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2) from e

    set_batch_id(uuid.uuid4().hex)
    try:
        with spinner(f"Extracting {len(records)} records") as progress:
            progress.add_task(f"Extracting {len(records)} records", total=None)
            result = pipeline.process_batch(records)
    finally:
        set_batch_id(None)

    rendered = format_rows([r.to_dict() for r in result.records], output_format)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered + "\n", encoding="utf-8")
        click.echo(f"Results written to: {output}", err=True)
    else:
        click.echo(rendered)

    if not quiet:
        print_summary(result.summary)
