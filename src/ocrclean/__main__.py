"""
ocrclean CLI entry point.

Usage:
    ocrclean extract INPUT [--rules FILE] [--format json|jsonl|csv] [--output FILE]
    ocrclean rules validate FILE
    ocrclean rules show [--rules FILE]
"""

import click

from ocrclean.cli.commands import extract, rules
from ocrclean.config import get_settings
from ocrclean.logging import setup_logging


@click.group()
@click.version_option(package_name="ocrclean")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default from settings)",
)
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
def cli(log_level, json_logs):
    """ocrclean - rule-driven extraction of structured records from OCR text"""
    settings = get_settings().logging
    setup_logging(
        level=log_level or settings.level,
        json_format=json_logs or settings.format == "json",
        log_file=settings.file,
    )


cli.add_command(extract)
cli.add_command(rules)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
