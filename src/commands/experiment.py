"""
Experiment browsing commands.

Experiments are written by the benchmarking harness; the CLI only reads them.
"""

import click
from tabulate import tabulate

from db import Database
from commands.options import fail, fmt


@click.group()
def experiment():
    """Browse recorded benchmark runs."""
    pass


@experiment.command('list')
@click.option('--network', 'network_id', type=int, default=None, help='Filter by network ID')
@click.option('--algorithm', 'algorithm_id', type=int, default=None, help='Filter by algorithm ID')
@click.option('--config', 'config_id', type=int, default=None, help='Filter by system config ID')
@click.option('--since', type=click.DateTime(), default=None, help='Runs at or after this time (UTC)')
@click.option('--until', type=click.DateTime(), default=None, help='Runs at or before this time (UTC)')
@click.option('--success/--failed', default=None, help='Filter by run outcome')
@click.option('--limit', default=50, help='Maximum number of runs to show (default: 50)')
@click.pass_obj
def list_experiments(obj, network_id, algorithm_id, config_id, since, until, success, limit):
    """
    List benchmark runs, oldest first.

    Examples:
        netresearch experiment list --network 3
        netresearch experiment list --algorithm 2 --failed
        netresearch experiment list --since 2024-01-01 --until 2024-02-01
    """
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        runs = db.query_experiments(session, network_id=network_id, algorithm_id=algorithm_id,
                                    system_config_id=config_id, since=since, until=until,
                                    success=success, limit=limit)
        if not runs:
            click.echo(click.style("No experiments found", fg="yellow"))
            return

        table = []
        for run in runs:
            status = click.style('✓', fg='green') if run.success else click.style('✗', fg='red')
            table.append([
                run.experiment_id,
                status,
                run.network.name,
                run.algorithm.name,
                fmt(run.runtime_seconds),
                fmt(run.memory_peak_mb),
                fmt(run.spectral_gap),
                run.run_datetime.strftime('%Y-%m-%d %H:%M:%S') if run.run_datetime else 'N/A',
            ])

        click.echo(tabulate(
            table,
            headers=['ID', '✓', 'Network', 'Algorithm', 'Runtime (s)', 'Memory (MB)', 'Gap', 'Run at'],
            tablefmt='simple'
        ))
        click.echo()
        click.echo(click.style(f"Showing {len(runs)} run(s)", fg='cyan'))

    finally:
        session.close()


@experiment.command()
@click.argument('experiment_id', type=int)
@click.option('--show-eigenvalues/--no-eigenvalues', default=False, help='Print stored eigenvalues')
@click.pass_obj
def show(obj, experiment_id, show_eigenvalues):
    """Show details for a specific benchmark run."""
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        run = db.get_experiment(session, experiment_id)
        if not run:
            fail(f"Experiment {experiment_id} not found")

        outcome = click.style('success', fg='green') if run.success else click.style('failed', fg='red')
        click.echo(click.style(f"\n=== Experiment #{run.experiment_id} ===\n", fg='cyan', bold=True))

        info_table = [
            ['Network', f"{run.network.name} (id={run.network_id})"],
            ['Algorithm', f"{run.algorithm.name} [{run.algorithm.category}] (id={run.algorithm_id})"],
            ['System config', run.system_config_id],
            ['Run at', run.run_datetime],
            ['Outcome', outcome],
        ]
        if run.error_message:
            info_table.append(['Error', click.style(run.error_message, fg='red')])
        click.echo(tabulate(info_table, tablefmt='plain'))
        click.echo()

        click.echo(click.style("Performance:", fg='yellow', bold=True))
        click.echo(tabulate([
            ['Runtime (s)', fmt(run.runtime_seconds)],
            ['Peak memory (MB)', fmt(run.memory_peak_mb)],
            ['Avg CPU (%)', fmt(run.cpu_percent_avg)],
        ], tablefmt='plain'))
        click.echo()

        click.echo(click.style("Results:", fg='yellow', bold=True))
        converged = 'N/A' if run.converged is None else ('yes' if run.converged else 'no')
        click.echo(tabulate([
            ['Converged', converged],
            ['Iterations', fmt(run.iterations)],
            ['Tolerance achieved', fmt(run.tolerance_achieved)],
            ['Numerical error', fmt(run.numerical_error)],
            ['Spectral gap', fmt(run.spectral_gap)],
            ['Spectral radius', fmt(run.spectral_radius)],
            ['Algebraic connectivity', fmt(run.algebraic_connectivity)],
            ['Condition number', fmt(run.condition_number)],
            ['Rank estimate', fmt(run.rank_estimate)],
            ['Eigenvalues stored', len(run.eigenvalues) if run.eigenvalues is not None else 'N/A'],
            ['Eigenvectors path', run.eigenvectors_path or 'N/A'],
        ], tablefmt='plain'))

        if show_eigenvalues and run.eigenvalues:
            click.echo()
            click.echo(click.style("Eigenvalues:", fg='yellow', bold=True))
            click.echo(', '.join(fmt(value, 8) for value in run.eigenvalues))
        click.echo()

    finally:
        session.close()
