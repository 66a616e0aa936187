"""
Migration core for the Migrations SDK.

Features:
- Registry of versioned, reversible migrations
- Directory consistency validation of registered migrations
- Reconciliation against a persisted execution ledger
- Ordered, bounded and forced up/down runs
- Host-local exclusivity guard
- Blank migration scaffolding

Author: Migrations SDK
Version: 1.0.0
"""

from .base import Migration, MigrationDirection, MigrationStatus, RunReport
from .ledger import ExecutionLedger, MigrationExecution
from .lock import ProcessLock
from .reconciler import ExecutionPlan, Reconciler
from .registry import (
    DirMigrationRegistry,
    MigrationRegistry,
    RegistryValidation,
    migration_file_name,
    parse_migration_file_name,
)
from .runner import MigrationRunner, MigrationStats
from .scaffold import create_blank_migration

__all__ = [
    # Core classes
    "Migration",
    "MigrationRegistry",
    "DirMigrationRegistry",
    "ExecutionLedger",
    "MigrationExecution",
    "Reconciler",
    "MigrationRunner",
    "ProcessLock",

    # Results
    "ExecutionPlan",
    "RegistryValidation",
    "RunReport",
    "MigrationStats",

    # Enums
    "MigrationDirection",
    "MigrationStatus",

    # Helpers
    "migration_file_name",
    "parse_migration_file_name",
    "create_blank_migration",
]
