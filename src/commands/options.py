"""
Shared option parsing and output helpers for CLI commands.
"""

import json

import click


def parse_json_document(ctx, param, value):
    """Click callback: parse a JSON object option such as --params '{"p": 0.1}'."""
    if value is None:
        return None
    try:
        document = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}")
    if not isinstance(document, dict):
        raise click.BadParameter("expected a JSON object")
    return document


def fail(message: str):
    """Print an error in red and exit with status 1."""
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    raise click.exceptions.Exit(1)


def fmt(value, precision: int = 4) -> str:
    """Format an optional measurement for tables."""
    if value is None:
        return 'N/A'
    if isinstance(value, float):
        return f"{value:.{precision}g}"
    return str(value)
