"""
Network catalog commands.
"""

import json

import click
from tabulate import tabulate

from db import Database, ResearchDBError
from commands.options import parse_json_document, fail


@click.group()
def network():
    """Manage the catalog of networks under study."""
    pass


@network.command('add')
@click.option('--name', '-n', required=True, help='Network name')
@click.option('--source', '-s', required=True, help="Provenance ('generated', 'snap', 'konect', ...)")
@click.option('--nodes', 'node_count', type=int, required=True, help='Number of nodes')
@click.option('--edges', 'edge_count', type=int, required=True, help='Number of edges')
@click.option('--directed/--undirected', default=False, help='Whether edges are directed')
@click.option('--weighted/--unweighted', default=False, help='Whether edges carry weights')
@click.option('--type', 'network_type', default=None, help="Category ('social', 'biological', 'synthetic', ...)")
@click.option('--url', 'source_url', default=None, help='Where the network was obtained')
@click.option('--description', default=None, help='Free-text description')
@click.option('--params', 'generation_params', default=None, callback=parse_json_document,
              help='Generator parameters as JSON, for synthetic networks')
@click.option('--file-path', default=None, help='Path to the edge list or adjacency matrix')
@click.pass_obj
def add(obj, name, source, node_count, edge_count, directed, weighted, network_type, source_url,
        description, generation_params, file_path):
    """
    Add a network to the catalog.

    Examples:
        netresearch network add -n karate -s konect --nodes 34 --edges 78
        netresearch network add -n er-1000 -s generated --nodes 1000 --edges 4950 \\
            --type synthetic --params '{"model": "erdos_renyi", "p": 0.01}'
    """
    db = Database(obj['db_path'])
    try:
        network_id = db.insert_network({
            'name': name,
            'source': source,
            'source_url': source_url,
            'network_type': network_type,
            'is_directed': directed,
            'is_weighted': weighted,
            'node_count': node_count,
            'edge_count': edge_count,
            'description': description,
            'generation_params': generation_params,
            'file_path': file_path,
        })
    except ResearchDBError as e:
        fail(str(e))
    click.echo(click.style(f"✓ Added network '{name}' (id={network_id})", fg="green"))


@network.command('list')
@click.option('--min-nodes', type=int, default=None, help='Minimum node count')
@click.option('--max-nodes', type=int, default=None, help='Maximum node count')
@click.option('--source', default=None, help='Filter by provenance')
@click.option('--type', 'network_type', default=None, help='Filter by network type')
@click.pass_obj
def list_networks(obj, min_nodes, max_nodes, source, network_type):
    """List cataloged networks, smallest first."""
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        networks = db.find_networks(session, min_nodes=min_nodes, max_nodes=max_nodes,
                                    source=source, network_type=network_type)
        if not networks:
            click.echo(click.style("No networks found", fg="yellow"))
            return

        table = [
            [n.network_id, n.name, n.source, n.network_type or '-', n.node_count, n.edge_count,
             'yes' if n.is_directed else 'no', 'yes' if n.is_weighted else 'no']
            for n in networks
        ]
        click.echo(tabulate(table, headers=['ID', 'Name', 'Source', 'Type', 'Nodes', 'Edges', 'Directed', 'Weighted'],
                            tablefmt='simple'))

    finally:
        session.close()


@network.command()
@click.argument('network_id', type=int)
@click.pass_obj
def show(obj, network_id):
    """Show details for a specific network."""
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        network = db.get_network(session, network_id)
        if not network:
            fail(f"Network {network_id} not found")

        click.echo(click.style(f"\n=== {network.name} ===\n", fg="cyan", bold=True))
        click.echo(f"ID: {network.network_id}")
        click.echo(f"Source: {network.source}")
        if network.source_url:
            click.echo(f"URL: {network.source_url}")
        click.echo(f"Type: {network.network_type or '-'}")
        click.echo(f"Nodes: {network.node_count}")
        click.echo(f"Edges: {network.edge_count}")
        click.echo(f"Directed: {'yes' if network.is_directed else 'no'}")
        click.echo(f"Weighted: {'yes' if network.is_weighted else 'no'}")
        if network.generation_params:
            click.echo(f"Generation params: {json.dumps(network.generation_params, sort_keys=True)}")
        if network.file_path:
            click.echo(f"File: {network.file_path}")
        if network.description:
            click.echo(f"Description: {network.description}")
        click.echo(f"Created: {network.created_at}")
        click.echo(f"Experiments: {len(network.experiments)}")
        click.echo(f"Visualizations: {len(network.visualizations)}")

    finally:
        session.close()
