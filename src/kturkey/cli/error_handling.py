"""CLI error handling helpers."""

import click

from kturkey.domain.entities import DataQualityWarning
from kturkey.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def echo_warnings(warnings: tuple[DataQualityWarning, ...] | list[DataQualityWarning]) -> None:
    """Print data-quality warnings to stderr, one per line."""
    for warning in warnings:
        click.echo(f"Warning [{warning.code.value}]: {warning.message}", err=True)
