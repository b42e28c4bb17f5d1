"""
Visualization commands.
"""

from pathlib import Path

import click
from tabulate import tabulate

from db import Database
from domain.visualization_image import load_image, default_filename
from commands.options import fail


@click.group()
def visualization():
    """Browse and extract rendered network layouts."""
    pass


@visualization.command('list')
@click.option('--network', 'network_id', type=int, default=None, help='Filter by network ID')
@click.pass_obj
def list_visualizations(obj, network_id):
    """List stored visualizations."""
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        items = db.list_visualizations(session, network_id=network_id)
        if not items:
            click.echo(click.style("No visualizations found", fg="yellow"))
            return

        table = []
        for viz in items:
            if viz.image_blob is not None:
                storage = f"inline ({len(viz.image_blob):,} bytes)"
            else:
                storage = viz.image_path or click.style('not materialized', fg='yellow')
            size = f"{viz.width}x{viz.height}" if viz.width and viz.height else '-'
            table.append([viz.viz_id, viz.network.name, viz.layout_algorithm, viz.image_format, size, storage])

        click.echo(tabulate(table, headers=['ID', 'Network', 'Layout', 'Format', 'Size', 'Storage'],
                            tablefmt='simple'))

    finally:
        session.close()


@visualization.command()
@click.argument('viz_id', type=int)
@click.option('--output', '-o', default=None, help='Output file (default: network<N>_<layout>_<id>.<format>)')
@click.pass_obj
def extract(obj, viz_id, output):
    """
    Write a visualization's image to a file.

    Example:
        netresearch visualization extract 7 -o karate_spring.png
    """
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        viz = db.get_visualization(session, viz_id)
        if not viz:
            fail(f"Visualization {viz_id} not found")

        try:
            content = load_image(viz)
        except FileNotFoundError:
            fail(f"Image file missing: {viz.image_path}")
        if content is None:
            fail(f"Visualization {viz_id} has no rendered image")

        output_path = Path(output or default_filename(viz))
        output_path.write_bytes(content)
        click.echo(click.style(f"✓ Wrote {len(content):,} bytes to {output_path}", fg="green"))

    finally:
        session.close()
