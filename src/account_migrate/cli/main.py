"""Main CLI entry point for the account migration tool."""

import sys
import asyncio
from typing import Optional
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config.config import Config
from ..utils.logging import setup_logging
from ..migration.engine import MigrationEngine, MigrationSummary

console = Console()

MAX_LISTED_MESSAGES = 5


@click.group()
@click.version_option(version='0.1.0', prog_name='account-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Account Migration Tool - Recreate, revert and confirm objects between accounts."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    setup_logging('DEBUG' if verbose else 'INFO')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
@click.pass_context
def init(ctx: click.Context, output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Account Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your provider details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the configured object types in execution order."""
    try:
        config = _load_config(ctx)
        engine = _create_engine(config)

        table = Table(title='Object Types')
        table.add_column('#', style='blue')
        table.add_column('Object Type', style='cyan')
        table.add_column('Provider', style='green')
        table.add_column('Depends On', style='yellow')
        table.add_column('Confirm', style='magenta')

        object_types = config.enabled_object_types()
        for position, name in enumerate(engine.execution_order(), start=1):
            table.add_row(
                str(position),
                name,
                object_types[name].provider,
                ', '.join(object_types[name].depends_on) or '-',
                '✓' if engine.importer(name).confirmable else '✗',
            )

        console.print(table)
        console.print(f'Concurrency: {config.migration.concurrency}')

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to load status: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.pass_context
def recreate(ctx: click.Context) -> None:
    """Recreate all objects in the new account."""
    _run_operation(ctx, 'recreate')


@cli.command()
@click.pass_context
def revert(ctx: click.Context) -> None:
    """Remove all recreated objects from the new account."""
    _run_operation(ctx, 'revert')


@cli.command()
@click.pass_context
def confirm(ctx: click.Context) -> None:
    """Finalize provisionally recreated objects."""
    _run_operation(ctx, 'confirm')


@cli.command()
@click.pass_context
def copy(ctx: click.Context) -> None:
    """Recreate all objects, then confirm them."""
    _run_operation(ctx, 'copy')


def _run_operation(ctx: click.Context, operation: str) -> None:
    console.print(
        Panel.fit(
            '[bold blue]Account Migration Tool[/bold blue]\n'
            f'Starting {operation}...',
            border_style='blue',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)
        engine = _create_engine(config)

        summary = asyncio.run(_run_engine(engine, operation))

    except Exception as e:
        console.print(f'[red]✗[/red] {operation.capitalize()} failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    _display_summary(summary)

    if not summary.success:
        console.print(
            f'[red]✗[/red] {operation.capitalize()} finished with '
            f'{summary.error_count} errors'
        )
        sys.exit(1)

    console.print(f'[green]✓[/green] {operation.capitalize()} completed successfully')


async def _run_engine(engine: MigrationEngine, operation: str) -> MigrationSummary:
    if operation == 'copy':
        return await engine.copy()
    return await getattr(engine, f'{operation}_all')()


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from the given or a default file."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')
        return Config.from_file(config_path)

    default_paths = ['config.yaml', 'config.yml', '.account-migrate.yaml']
    for path in default_paths:
        if Path(path).exists():
            return Config.from_file(path)

    raise FileNotFoundError(
        'No configuration found. Use --config to specify a file or run '
        '"account-migrate init" to create one.'
    )


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def _create_engine(config: Config) -> MigrationEngine:
    engine = MigrationEngine(config)
    engine.load_providers()
    return engine


def _display_summary(summary: MigrationSummary) -> None:
    """Display results of an engine run."""
    table = Table(title=f'{summary.operation.capitalize()} Summary')
    table.add_column('Object Type', style='cyan')
    table.add_column('Imported', style='green')
    table.add_column('Reused', style='blue')
    table.add_column('Reverted', style='magenta')
    table.add_column('Confirmed', style='green')
    table.add_column('Warnings', style='yellow')
    table.add_column('Errors', style='red')

    for object_name in summary.execution_order:
        stats = summary.results_by_type.get(object_name)
        if stats is None:
            continue
        table.add_row(
            object_name,
            str(stats.imported),
            str(stats.reused),
            str(stats.reverted),
            str(stats.confirmed),
            str(len(summary.warnings.get(object_name, []))),
            str(len(summary.errors.get(object_name, []))),
        )

    console.print(table)

    if summary.completed_at:
        duration = summary.completed_at - summary.started_at
        console.print(f'\n[blue]Duration:[/blue] {duration}')

    _display_messages('Warnings', 'yellow', summary.warnings)
    _display_messages('Errors', 'red', summary.errors)


def _display_messages(title: str, color: str, messages_by_type) -> None:
    messages = [
        f'{object_name}: {message}'
        for object_name, messages in messages_by_type.items()
        for message in messages
    ]
    if not messages:
        return

    console.print(f'\n[{color}]{title} ({len(messages)}):[/{color}]')
    for message in messages[:MAX_LISTED_MESSAGES]:
        console.print(f'  • {message}', markup=False)
    if len(messages) > MAX_LISTED_MESSAGES:
        console.print(f'  ... and {len(messages) - MAX_LISTED_MESSAGES} more')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
