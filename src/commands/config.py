"""
System configuration commands.
"""

import click
from tabulate import tabulate

from db import Database, ResearchDBError, SystemConfig
from domain.system_snapshot import capture_system_config
from commands.options import fail, fmt


@click.group()
def config():
    """Record the environments experiments run on."""
    pass


@config.command()
@click.option('--gpu', 'gpu_info', default=None, help='GPU description (default: GPU_INFO setting)')
@click.option('--runtime-type', default=None, help="Environment class ('standard', 'high-ram', 'gpu', ...)")
@click.option('--dry-run', is_flag=True, help='Show the snapshot without storing it')
@click.pass_obj
def capture(obj, gpu_info, runtime_type, dry_run):
    """
    Snapshot the current environment, reusing an identical stored config.

    Example:
        netresearch config capture --runtime-type high-ram
    """
    record = capture_system_config(gpu_info=gpu_info, runtime_type=runtime_type)

    table = [[field, fmt(value)] for field, value in record.model_dump(exclude={'created_at'}).items()]
    click.echo(tabulate(table, tablefmt='plain'))
    click.echo()

    if dry_run:
        click.echo(click.style("Dry run: nothing stored", fg="yellow"))
        return

    db = Database(obj['db_path'])
    try:
        with db.session_scope() as session:
            config_id = db.get_or_create_system_config(session, record).config_id
    except ResearchDBError as e:
        fail(str(e))
    click.echo(click.style(f"✓ System config id={config_id}", fg="green"))


@config.command('list')
@click.pass_obj
def list_configs(obj):
    """List recorded system configurations."""
    db = Database(obj['db_path'])
    session = db.get_session()

    try:
        configs = session.query(SystemConfig).order_by(SystemConfig.config_id).all()
        if not configs:
            click.echo(click.style("No system configs found", fg="yellow"))
            return

        table = [
            [c.config_id, c.python_version or '-', c.numpy_version or '-', c.scipy_version or '-',
             c.networkx_version or '-', fmt(c.memory_gb), c.gpu_info or '-', c.colab_runtime_type or '-']
            for c in configs
        ]
        click.echo(tabulate(table, headers=['ID', 'Python', 'NumPy', 'SciPy', 'NetworkX', 'Mem (GB)', 'GPU', 'Runtime'],
                            tablefmt='simple'))

    finally:
        session.close()
