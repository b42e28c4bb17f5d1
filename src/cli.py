#!/usr/bin/env python3
"""
CLI for the network research database.
"""

import logging

import click
from importlib.metadata import version

import settings
from commands import algorithm, config, experiment, network, performance, visualization
from db import Database


@click.group()
@click.version_option(version=version("netresearch"))
@click.option('--db', 'db_path', default=None, envvar='RESEARCH_DB_PATH',
              help='Path to the SQLite research database (default: data/research.db)')
@click.pass_context
def cli(ctx, db_path):
    """Network Research Database - Record and compare spectral algorithm benchmarks."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.WARNING),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    ctx.ensure_object(dict)
    ctx.obj['db_path'] = db_path


@cli.command()
@click.pass_obj
def init(obj):
    """Create tables, indexes and views if they don't exist."""
    db = Database(obj['db_path'])
    click.echo(click.style(f"Research database ready at {db.db_path}", fg='green'))
    db.dispose()


# Register command groups
cli.add_command(network.network)
cli.add_command(algorithm.algorithm)
cli.add_command(config.config)
cli.add_command(experiment.experiment)
cli.add_command(performance.performance)
cli.add_command(visualization.visualization)


if __name__ == "__main__":
    cli()
