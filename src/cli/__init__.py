"""CLI entry point for the batch runner."""

from __future__ import annotations

import click

from src.cli.commands import run_batch


@click.group()
def cli() -> None:
    """Bounded-concurrency batch runner for website sources."""


cli.add_command(run_batch)
