"""
Reconciliation between the registry and the execution ledger.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from ..exceptions import LedgerInconsistencyError
from .base import Migration, MigrationStatus
from .ledger import MigrationExecution
from .registry import MigrationRegistry


@dataclass
class ExecutionPlan:
    """Pending work computed from a registry and a set of executions."""
    pending_up: List[Migration] = field(default_factory=list)
    pending_down: List[Migration] = field(default_factory=list)
    unknown_versions: List[int] = field(default_factory=list)
    executions: Dict[int, MigrationExecution] = field(default_factory=dict)

    @property
    def consistent(self) -> bool:
        return not self.unknown_versions

    def assert_consistent(self) -> None:
        """
        Raises:
            LedgerInconsistencyError: If executions reference unregistered migrations
        """
        if self.unknown_versions:
            raise LedgerInconsistencyError(self.unknown_versions)


class Reconciler:
    """
    Computes pending work by diffing the registry against the ledger.

    Pending-up migrations are ordered by ascending version, pending-down
    migrations by descending version so the last applied is reverted first.
    """

    def __init__(self, registry: MigrationRegistry):
        self.registry = registry

    def plan(self, executions: Iterable[MigrationExecution]) -> ExecutionPlan:
        by_version = {execution.version: execution for execution in executions}

        pending_up = []
        applied = []
        for migration in self.registry.ordered_migrations():
            if migration.version in by_version:
                applied.append(migration)
            else:
                pending_up.append(migration)

        unknown = sorted(v for v in by_version if self.registry.get(v) is None)

        return ExecutionPlan(
            pending_up=pending_up,
            pending_down=list(reversed(applied)),
            unknown_versions=unknown,
            executions=by_version
        )

    def statuses(self, plan: ExecutionPlan) -> List[Tuple[int, MigrationStatus]]:
        """Per-version status rows, ascending, including unknown ledger versions."""
        rows = [
            (migration.version, MigrationStatus.APPLIED)
            for migration in plan.pending_down
        ]
        rows.extend((migration.version, MigrationStatus.PENDING) for migration in plan.pending_up)
        rows.extend((version, MigrationStatus.UNKNOWN) for version in plan.unknown_versions)
        return sorted(rows, key=lambda row: row[0])
