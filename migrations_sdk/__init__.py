"""
Migrations SDK.

Tracks and applies an ordered sequence of reversible, versioned migrations
against an external resource, remembering which ones have run so execution
can resume, advance or reverse deterministically.

Example::

    from migrations_sdk import DirMigrationRegistry, MigrationRunner
    from migrations_sdk.ledgers import SQLExecutionLedger

    registry = DirMigrationRegistry("migrations", [AddUsers(), AddOrders()])
    ledger = SQLExecutionLedger.from_url("sqlite+aiosqlite:///app.db")
    report = await MigrationRunner(registry, ledger, context=engine).up()
"""

from .version import __version__
from .config import MigrationConfig
from .exceptions import (
    DuplicateVersionError,
    InvalidVersionError,
    LedgerError,
    LedgerInconsistencyError,
    LedgerReadError,
    MigrationError,
    MigrationLockError,
    MigrationNotFoundError,
    MigrationRegistrationError,
    MigrationStepError,
    RegistryInconsistencyError,
)
from .migrations import (
    DirMigrationRegistry,
    ExecutionLedger,
    ExecutionPlan,
    Migration,
    MigrationDirection,
    MigrationExecution,
    MigrationRegistry,
    MigrationRunner,
    MigrationStats,
    MigrationStatus,
    ProcessLock,
    Reconciler,
    RegistryValidation,
    RunReport,
    create_blank_migration,
)

__all__ = [
    "__version__",
    "MigrationConfig",

    # Core
    "Migration",
    "MigrationRegistry",
    "DirMigrationRegistry",
    "ExecutionLedger",
    "MigrationExecution",
    "Reconciler",
    "MigrationRunner",
    "ProcessLock",
    "ExecutionPlan",
    "RegistryValidation",
    "RunReport",
    "MigrationStats",
    "MigrationDirection",
    "MigrationStatus",
    "create_blank_migration",

    # Exceptions
    "MigrationError",
    "MigrationRegistrationError",
    "DuplicateVersionError",
    "InvalidVersionError",
    "RegistryInconsistencyError",
    "MigrationNotFoundError",
    "LedgerError",
    "LedgerReadError",
    "LedgerInconsistencyError",
    "MigrationStepError",
    "MigrationLockError",
]
