"""
Base migration classes and interfaces for the migration system.

This module defines the contract every user-supplied migration fulfils,
together with the enums and result types the runner reports with.

Author: Migrations SDK
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

MAX_VERSION = 2 ** 64 - 1


class MigrationDirection(Enum):
    """Direction of migration execution."""
    UP = "up"
    DOWN = "down"


class MigrationStatus(Enum):
    """Status of a registered migration relative to the ledger."""
    PENDING = "pending"
    APPLIED = "applied"
    UNKNOWN = "unknown"


class Migration(ABC):
    """
    Base class for migrations.

    Subclasses set the ``version`` class attribute (conventionally the unix
    timestamp, in seconds, at which the migration was created) and implement
    ``up()`` and ``down()``. Both receive the context object handed to the
    runner, typically a database engine or connection. Raising from either
    method marks the step as failed; each migration is responsible for its
    own atomicity.

    Example::

        class AddUsersTable(Migration):
            version = 1712953077

            async def up(self, context):
                async with context.begin() as conn:
                    await conn.execute(text("CREATE TABLE users (id INTEGER)"))

            async def down(self, context):
                async with context.begin() as conn:
                    await conn.execute(text("DROP TABLE users"))
    """

    version: int

    @abstractmethod
    async def up(self, context: Any) -> None:
        """Apply the migration."""

    @abstractmethod
    async def down(self, context: Any) -> None:
        """Revert the migration."""

    @property
    def description(self) -> str:
        """First line of the migration's docstring, if any."""
        doc = type(self).__doc__
        if not doc:
            return ""
        return doc.strip().splitlines()[0]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(version={getattr(self, 'version', None)!r})"


def is_valid_version(version: Any) -> bool:
    """Check that a version is an unsigned 64-bit integer."""
    return (
        isinstance(version, int)
        and not isinstance(version, bool)
        and 0 <= version <= MAX_VERSION
    )


@dataclass
class RunReport:
    """Result of a runner operation."""
    direction: MigrationDirection
    forced: bool = False
    completed: List[int] = field(default_factory=list)
    failed_version: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        """Check if every attempted step succeeded."""
        return self.failed_version is None
