"""
Execution ledger contract.

The ledger remembers which migrations have been applied. The runner only
talks to it through ``ExecutionLedger``; concrete storage lives in
``migrations_sdk.ledgers``.

Author: Migrations SDK
Version: 1.0.0
"""

import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


def now_ms() -> int:
    """Current unix time in milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class MigrationExecution:
    """Persisted record of one completed migration."""
    version: int
    executed_at_ms: int
    finished_at_ms: int

    def __post_init__(self):
        if self.executed_at_ms > self.finished_at_ms:
            raise ValueError(
                f"Execution of {self.version} finishes before it starts "
                f"({self.executed_at_ms} > {self.finished_at_ms})"
            )

    @property
    def duration_ms(self) -> int:
        return self.finished_at_ms - self.executed_at_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MigrationExecution':
        """Create from dictionary."""
        return cls(
            version=int(data['version']),
            executed_at_ms=int(data['executed_at_ms']),
            finished_at_ms=int(data['finished_at_ms'])
        )


class ExecutionLedger(ABC):
    """
    Storage contract for migration executions.

    Every method may raise ``LedgerError``; the runner treats such failures as
    fatal to the current step.
    """

    @abstractmethod
    async def init(self) -> None:
        """Create the storage if needed. Must succeed when it already exists."""

    @abstractmethod
    async def load_executions(self) -> List[MigrationExecution]:
        """
        Return every stored execution, in any order.

        Raises:
            LedgerReadError: If a record cannot be decoded; carries the
                executions decoded before it
        """

    @abstractmethod
    async def save(self, execution: MigrationExecution) -> None:
        """Insert the execution, or update the timestamps of an existing one."""

    @abstractmethod
    async def remove(self, execution: MigrationExecution) -> None:
        """Delete the execution for its version. Missing records are not an error."""

    @abstractmethod
    async def find_one(self, version: int) -> Optional[MigrationExecution]:
        """Return the execution for ``version`` or None."""

    async def close(self) -> None:
        """Release storage resources."""
