"""
Algorithm catalog commands.
"""

import click
from tabulate import tabulate

from db import Database, ResearchDBError
from commands.options import parse_json_document, fail


@click.group()
def algorithm():
    """Manage the catalog of spectral algorithm implementations."""
    pass


@algorithm.command('add')
@click.option('--name', '-n', required=True, help="Label ('NetworkX_eigenvalues', 'SciPy_ARPACK', ...)")
@click.option('--category', '-c', required=True, help="Family ('spectral_gap', 'full_spectrum', 'laplacian', ...)")
@click.option('--implementation', '-i', required=True, help="Library ('networkx', 'scipy', 'igraph', ...)")
@click.option('--version', 'lib_version', default=None, help='Library version')
@click.option('--method-details', default=None, help='Solver and settings in free text')
@click.option('--params', 'parameters', default=None, callback=parse_json_document,
              help='Algorithm-specific parameters as JSON')
@click.option('--description', default=None, help='Free-text description')
@click.pass_obj
def add(obj, name, category, implementation, lib_version, method_details, parameters, description):
    """
    Register an algorithm, reusing an identical existing entry.

    Example:
        netresearch algorithm add -n SciPy_ARPACK -c spectral_gap -i scipy \\
            --version 1.11.4 --params '{"k": 2, "which": "LM"}'
    """
    db = Database(obj['db_path'])
    try:
        with db.session_scope() as session:
            entry = db.get_or_create_algorithm(session, {
                'name': name,
                'category': category,
                'implementation': implementation,
                'version': lib_version,
                'method_details': method_details,
                'parameters': parameters,
                'description': description,
            })
            algorithm_id = entry.algorithm_id
    except ResearchDBError as e:
        fail(str(e))
    click.echo(click.style(f"✓ Algorithm '{name}' registered (id={algorithm_id})", fg="green"))


@algorithm.command('list')
@click.option('--category', '-c', default=None, help='Filter by category')
@click.option('--implementation', '-i', default=None, help='Filter by implementation')
@click.pass_obj
def list_algorithms(obj, category, implementation):
    """List registered algorithms."""
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        algorithms = db.find_algorithms(session, category=category, implementation=implementation)
        if not algorithms:
            click.echo(click.style("No algorithms found", fg="yellow"))
            return

        table = [
            [a.algorithm_id, a.name, a.category, a.implementation, a.version or '-']
            for a in algorithms
        ]
        click.echo(tabulate(table, headers=['ID', 'Name', 'Category', 'Implementation', 'Version'],
                            tablefmt='simple'))

    finally:
        session.close()
