"""CLI command implementations for the batch runner."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from src.core.result_aggregation import format_batch_summary
from src.models.config import Config
from src.models.errors import AdmissionError
from src.utils.logger import configure_logging


def _get_config() -> Config:
    """Load configuration from .env file."""
    return Config()


def _load_items(items_file: Path) -> list[dict[str, Any]]:
    """Read a JSON array of items.

    Each entry needs an ``id``; ``is_active`` defaults to true and ``url``
    (or a full ``payload`` object) describes the source to crawl.
    """
    data = json.loads(items_file.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        msg = "items file must contain a JSON array"
        raise click.BadParameter(msg, param_hint="ITEMS_FILE")

    items: list[dict[str, Any]] = []
    for entry in data:
        if not isinstance(entry, dict):
            msg = "every item must be a JSON object"
            raise click.BadParameter(msg, param_hint="ITEMS_FILE")
        item = dict(entry)
        if "payload" not in item and "url" in item:
            item["payload"] = {"url": item.pop("url")}
        items.append(item)
    return items


@click.command()
@click.argument("items_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-concurrency", default=None, type=int, help="Sources crawled at once")
@click.option("--force-refresh", is_flag=True, help="Also crawl inactive sources")
@click.option("--timeout", default=None, type=float, help="Per-source timeout in seconds")
@click.option(
    "--output-format",
    default="summary",
    type=click.Choice(["summary", "json"]),
    help="Output format",
)
def run_batch(
    items_file: Path,
    max_concurrency: int | None,
    force_refresh: bool,
    timeout: float | None,
    output_format: str,
) -> None:
    """Crawl every website source listed in ITEMS_FILE."""
    config = _get_config()
    configure_logging(config.log_level, json_logs=config.json_logs)

    from src.services.batch_processor import BatchOrchestrator
    from src.services.website_processor import WebsiteSourceProcessor

    items = _load_items(items_file)
    processor = WebsiteSourceProcessor(
        timeout=config.http_timeout_seconds,
        user_agent=config.user_agent,
    )
    orchestrator = BatchOrchestrator(processor, progress_every=config.progress_log_every)

    try:
        options = config.batch_options(
            force_refresh=force_refresh,
            max_concurrency=max_concurrency,
            item_timeout_seconds=timeout,
        )
    except ValidationError as exc:
        click.echo(f"[ERROR] Invalid options: {exc.errors()[0]['msg']}", err=True)
        sys.exit(2)

    click.echo(f"[INFO] Crawling {len(items)} sources (max {options.max_concurrency} at once)...")
    try:
        summary = orchestrator.run(items, options)
    except AdmissionError as exc:
        click.echo(f"[ERROR] {exc}", err=True)
        sys.exit(2)

    if output_format == "json":
        click.echo(summary.model_dump_json(indent=2))
    else:
        click.echo(format_batch_summary(summary))

    if not summary.overall_success:
        sys.exit(1)
