"""
Configuration for the Migrations SDK.

This module provides the configuration model consumed by the runner, the
exclusivity guard, the ledger backends and the command line interface.

Author: Migrations SDK
Version: 1.0.0
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .logging import LogLevel


class MigrationConfig(BaseModel):
    """Configuration for migration runs."""

    model_config = ConfigDict(validate_assignment=True)

    # Migration sources
    migrations_dir: Path = Field(
        default=Path("migrations"),
        description="Directory containing version_<N>.py migration files"
    )

    # Ledger settings
    ledger_table_name: str = Field(
        default="migration_executions",
        description="Name of the table/collection storing migration executions"
    )

    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy async URL of the ledger database"
    )

    # Exclusivity guard
    run_exclusively: bool = Field(
        default=True,
        description="Hold a host-local lock while migrations run"
    )

    lock_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory holding the lock file"
    )

    lock_name: str = Field(
        default="migrations",
        description="Name of the lock file (without extension)"
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log level used by the command line interface"
    )

    @field_validator('migrations_dir', 'lock_dir', mode='before')
    @classmethod
    def validate_path(cls, v):
        """Accept plain strings for path settings."""
        if isinstance(v, str):
            v = Path(v)
        return v

    @field_validator('ledger_table_name', 'lock_name')
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Validate names used for tables and lock files."""
        if not v or not v.replace('_', '').replace('-', '').isalnum():
            raise ValueError("Value must contain only alphanumeric characters, '-' and '_'")
        return v

    @classmethod
    def from_env(cls) -> 'MigrationConfig':
        """
        Create configuration from environment variables.

        Recognized variables: ``MIGRATIONS_DIR``, ``MIGRATIONS_TABLE``,
        ``MIGRATIONS_DATABASE_URL``, ``MIGRATIONS_RUN_EXCLUSIVELY``,
        ``MIGRATIONS_LOCK_DIR``, ``MIGRATIONS_LOCK_NAME`` and
        ``MIGRATIONS_LOG_LEVEL``.

        Returns:
            MigrationConfig instance with values from environment
        """
        values = {
            'migrations_dir': os.getenv('MIGRATIONS_DIR', 'migrations'),
            'ledger_table_name': os.getenv('MIGRATIONS_TABLE', 'migration_executions'),
            'database_url': os.getenv('MIGRATIONS_DATABASE_URL') or None,
            'run_exclusively': os.getenv('MIGRATIONS_RUN_EXCLUSIVELY', 'true').lower() == 'true',
            'lock_name': os.getenv('MIGRATIONS_LOCK_NAME', 'migrations'),
            'log_level': LogLevel(os.getenv('MIGRATIONS_LOG_LEVEL', 'INFO').upper()),
        }

        lock_dir = os.getenv('MIGRATIONS_LOCK_DIR')
        if lock_dir:
            values['lock_dir'] = lock_dir

        return cls(**values)

    def validate_settings(self) -> List[str]:
        """
        Validate configuration and return list of issues.

        Returns:
            List of validation error messages
        """
        issues = []

        if not self.migrations_dir.exists():
            issues.append(f"Migrations directory does not exist: {self.migrations_dir}")
        elif not self.migrations_dir.is_dir():
            issues.append(f"Migrations path is not a directory: {self.migrations_dir}")

        if self.run_exclusively and not self.lock_dir.is_dir():
            issues.append(f"Lock directory does not exist: {self.lock_dir}")

        return issues
