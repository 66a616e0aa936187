"""
In-memory execution ledger.

Useful for tests and for hosts that keep migration state elsewhere. Nothing
is persisted across processes.
"""

from typing import Dict, Iterable, List, Optional

from ..migrations.ledger import ExecutionLedger, MigrationExecution


class MemoryExecutionLedger(ExecutionLedger):
    """Execution ledger backed by a dictionary."""

    def __init__(self, executions: Optional[Iterable[MigrationExecution]] = None):
        self._executions: Dict[int, MigrationExecution] = {
            execution.version: execution for execution in executions or ()
        }
        self.initialized = False

    async def init(self) -> None:
        self.initialized = True

    async def load_executions(self) -> List[MigrationExecution]:
        return list(self._executions.values())

    async def save(self, execution: MigrationExecution) -> None:
        self._executions[execution.version] = execution

    async def remove(self, execution: MigrationExecution) -> None:
        self._executions.pop(execution.version, None)

    async def find_one(self, version: int) -> Optional[MigrationExecution]:
        return self._executions.get(version)

    def __len__(self) -> int:
        return len(self._executions)
