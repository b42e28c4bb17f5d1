"""
Algorithm performance comparison command.
"""

import click
from tabulate import tabulate

from db import Database
from commands.options import fmt


@click.command()
@click.option('--category', '-c', default=None, help='Only algorithms of this category')
@click.option('--network', 'network_name', default=None, help='Only networks with this name')
@click.pass_obj
def performance(obj, category, network_name):
    """
    Compare algorithms per network over successful runs.

    Examples:
        netresearch performance
        netresearch performance --category spectral_gap
    """
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        rows = db.algorithm_performance(session, category=category, network_name=network_name)
        if not rows:
            click.echo(click.style("No successful experiments recorded", fg="yellow"))
            return

        table = [
            [row.network_name, row.node_count, row.edge_count, row.algorithm_name, row.category,
             fmt(row.avg_runtime), fmt(row.runtime_std), fmt(row.avg_memory), row.run_count,
             f"{row.success_rate:.0%}"]
            for row in rows
        ]
        click.echo(tabulate(
            table,
            headers=['Network', 'Nodes', 'Edges', 'Algorithm', 'Category', 'Avg runtime (s)', 'Std',
                     'Avg memory (MB)', 'Runs', 'Converged'],
            tablefmt='simple'
        ))

    finally:
        session.close()
