"""
Command Line Interface for the Migrations SDK.

The host application owns the composition: it builds the registry with every
known migration, optionally picks a ledger backend and hands both to
``bootstrap()``::

    from migrations_sdk.cli import bootstrap

    bootstrap(
        DirMigrationRegistry("migrations", [AddUsers(), AddOrders()]),
        config=MigrationConfig.from_env(),
        context=engine,
    )

Without an explicit ledger, ``MIGRATIONS_DATABASE_URL`` and
``MIGRATIONS_TABLE`` select the SQL ledger.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import MigrationConfig
from ..exceptions import MigrationError
from ..ledgers.sql import SQLExecutionLedger
from ..logging import configure_logging
from ..migrations.base import MigrationStatus, RunReport
from ..migrations.ledger import ExecutionLedger
from ..migrations.lock import ProcessLock
from ..migrations.registry import DirMigrationRegistry, MigrationRegistry
from ..migrations.runner import MigrationRunner, MigrationStats
from ..migrations.scaffold import create_blank_migration
from .utils.console import error, info, success, warning

T = TypeVar("T")

console = Console()

STATUS_STYLES = {
    MigrationStatus.APPLIED: "green",
    MigrationStatus.PENDING: "yellow",
    MigrationStatus.UNKNOWN: "red",
}


def parse_steps(value: str) -> Optional[int]:
    """Parse a ``--steps`` value: a non-negative integer or ``all``."""
    if value.strip().lower() == "all":
        return None
    try:
        steps = int(value)
    except ValueError:
        raise typer.BadParameter(f"expected a non-negative integer or 'all', got {value!r}")
    if steps < 0:
        raise typer.BadParameter(f"expected a non-negative integer or 'all', got {value!r}")
    return steps


def ledger_from_config(config: MigrationConfig) -> SQLExecutionLedger:
    """
    Build the SQL ledger described by ``database_url`` and ``ledger_table_name``.

    Raises:
        MigrationError: If no database URL is configured
    """
    if not config.database_url:
        raise MigrationError(
            "No execution ledger given and no database URL configured "
            "(set MIGRATIONS_DATABASE_URL)"
        )
    return SQLExecutionLedger.from_url(config.database_url, config.ledger_table_name)


def build_app(
    registry: MigrationRegistry,
    ledger: Optional[ExecutionLedger] = None,
    config: Optional[MigrationConfig] = None,
    context: Any = None
) -> typer.Typer:
    """
    Build the typer application bound to a registry and a ledger.

    When ``ledger`` is None a SQL ledger is built from the configuration.

    Raises:
        MigrationError: If no ledger is given and none can be configured
    """
    config = config or MigrationConfig()
    if ledger is None:
        ledger = ledger_from_config(config)

    app = typer.Typer(
        name="migrations",
        help="Apply, revert and inspect versioned migrations",
        add_completion=False,
        no_args_is_help=True
    )

    def make_runner() -> MigrationRunner:
        lock = ProcessLock(config.lock_dir, config.lock_name) if config.run_exclusively else None
        return MigrationRunner(registry, ledger, context=context, lock=lock)

    def run(operation: Callable[[MigrationRunner], Awaitable[T]]) -> T:
        """Validate the registry, run one async operation and map errors to exit codes."""
        async def execute() -> T:
            try:
                if isinstance(registry, DirMigrationRegistry):
                    registry.assert_valid()
                return await operation(make_runner())
            finally:
                await ledger.close()

        for issue in config.validate_settings():
            warning(issue)

        try:
            return asyncio.run(execute())
        except MigrationError as e:
            error(str(e))
            raise typer.Exit(1)

    @app.callback()
    def main():
        """Apply, revert and inspect versioned migrations."""
        configure_logging(config.log_level.value)

    @app.command("up")
    def up(steps: str = typer.Option("all", "--steps", help="Number of migrations to apply, or 'all'")):
        """Apply pending migrations in ascending version order."""
        count = parse_steps(steps)
        _report(run(lambda runner: runner.up(count)))

    @app.command("down")
    def down(steps: str = typer.Option("all", "--steps", help="Number of migrations to revert, or 'all'")):
        """Revert applied migrations in descending version order."""
        count = parse_steps(steps)
        _report(run(lambda runner: runner.down(count)))

    @app.command("force:up")
    def force_up(version: int = typer.Option(..., "--version", min=0, help="Migration version to apply")):
        """Apply one migration regardless of recorded state (destructive)."""
        warning(f"Forcing up migration {version}; ledger state is ignored")
        _report(run(lambda runner: runner.force_up(version)))

    @app.command("force:down")
    def force_down(version: int = typer.Option(..., "--version", min=0, help="Migration version to revert")):
        """Revert one migration regardless of recorded state (destructive)."""
        warning(f"Forcing down migration {version}; ledger state is ignored")
        _report(run(lambda runner: runner.force_down(version)))

    @app.command("stats")
    def stats():
        """Show registered, executed and pending migrations."""
        _print_stats(registry, run(lambda runner: runner.stats()))

    @app.command("blank")
    def blank():
        """Create a new migration file stamped with the current time."""
        try:
            path = create_blank_migration(config.migrations_dir)
        except MigrationError as e:
            error(str(e))
            raise typer.Exit(1)
        success(f"Created {path}")
        info("Register the new migration in your registry before running migrations")

    @app.command("help")
    def help_command(ctx: typer.Context):
        """Show this help message."""
        typer.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())

    return app


def bootstrap(
    registry: MigrationRegistry,
    ledger: Optional[ExecutionLedger] = None,
    config: Optional[MigrationConfig] = None,
    context: Any = None,
    argv: Optional[List[str]] = None
) -> None:
    """
    Build the application and run it with ``argv`` (process arguments if None).

    Without a ``ledger`` the SQL ledger configured by ``config`` (or the
    ``MIGRATIONS_*`` environment) is used.
    """
    config = config or MigrationConfig.from_env()
    try:
        app = build_app(registry, ledger, config=config, context=context)
    except MigrationError as e:
        error(str(e))
        raise SystemExit(1)
    app(args=argv, prog_name="migrations")


def _report(report: RunReport) -> None:
    direction = report.direction.value
    label = f"forced {direction}" if report.forced else direction

    if report.completed:
        versions = ", ".join(str(v) for v in report.completed)
        success(f"{label}: {len(report.completed)} migration(s) completed ({versions})")
    elif report.success:
        info(f"{label}: nothing to do")

    if not report.success:
        error(f"{label}: migration {report.failed_version} failed: {report.error}")
        raise typer.Exit(1)


def _print_stats(registry: MigrationRegistry, stats: MigrationStats) -> None:
    table = Table(title="Migrations")
    table.add_column("Version", style="cyan")
    table.add_column("Status")
    table.add_column("Description")

    for version, status in stats.statuses:
        style = STATUS_STYLES[status]
        migration = registry.get(version)
        description = migration.description if migration is not None else ""
        table.add_row(str(version), f"[{style}]{status.value}[/{style}]", escape(description))

    console.print(table)
    console.print(f"Registered: {stats.registered}")
    console.print(f"Executed: {stats.executed}")
    console.print(f"Pending up: {stats.pending_up}")
    console.print(f"Pending down: {stats.pending_down}")

    if stats.consistent:
        success("Ledger is consistent with the registry")
    else:
        versions = ", ".join(str(v) for v in stats.unknown_versions)
        warning(f"Ledger has executions with no registered migration: {versions}. "
                "Ordered up/down runs will be refused")
