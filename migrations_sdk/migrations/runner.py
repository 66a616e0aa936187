"""
Migration runner.

This module provides the ``MigrationRunner`` class that applies and reverts
registered migrations in order, persisting an execution record after every
successful step.

Runs are strictly sequential. A step that fails halts the run: later
migrations are not attempted and earlier successes are not reverted.

Author: Migrations SDK
Version: 1.0.0
"""

import asyncio
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from ..exceptions import LedgerError, MigrationNotFoundError, MigrationStepError
from ..logging import MigrationEventType, MigrationLogger, new_run_id
from .base import Migration, MigrationDirection, MigrationStatus, RunReport
from .ledger import ExecutionLedger, MigrationExecution, now_ms
from .lock import ProcessLock
from .reconciler import ExecutionPlan, Reconciler
from .registry import MigrationRegistry


@dataclass
class MigrationStats:
    """Read-only snapshot of registry and ledger state."""
    registered: int
    executed: int
    pending_up: int
    pending_down: int
    unknown_versions: List[int] = field(default_factory=list)
    statuses: List[Tuple[int, MigrationStatus]] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        """Whether ordered ``up``/``down`` runs are allowed."""
        return not self.unknown_versions


class MigrationRunner:
    """
    Applies and reverts migrations against an execution ledger.

    Args:
        registry: Registry of known migrations
        ledger: Execution ledger storage
        context: Object forwarded to every ``Migration.up``/``down`` call
        lock: Optional exclusivity guard held for the duration of each run
    """

    def __init__(
        self,
        registry: MigrationRegistry,
        ledger: ExecutionLedger,
        context: Any = None,
        lock: Optional[ProcessLock] = None
    ):
        self.registry = registry
        self.ledger = ledger
        self.context = context
        self.lock = lock
        self.reconciler = Reconciler(registry)
        self.logger = MigrationLogger("runner")
        self._initialized = False

    async def initialize(self) -> None:
        """Make sure the ledger storage exists."""
        if self._initialized:
            return
        await self.ledger.init()
        self._initialized = True

    # Ordered runs

    async def up(self, steps: Optional[int] = None) -> RunReport:
        """
        Apply pending migrations in ascending version order.

        Args:
            steps: Maximum number of migrations to apply (all if None)

        Raises:
            LedgerInconsistencyError: If the ledger references unregistered migrations
            LedgerError: If the ledger cannot be read or written
        """
        return await self._run_ordered(MigrationDirection.UP, steps)

    async def down(self, steps: Optional[int] = None) -> RunReport:
        """
        Revert applied migrations in descending version order.

        Args:
            steps: Maximum number of migrations to revert (all if None)

        Raises:
            LedgerInconsistencyError: If the ledger references unregistered migrations
            LedgerError: If the ledger cannot be read or written
        """
        return await self._run_ordered(MigrationDirection.DOWN, steps)

    # Forced runs

    async def force_up(self, version: int) -> RunReport:
        """
        Apply one migration regardless of the ledger.

        This is destructive: it can apply a migration twice. The ledger
        consistency check is skipped.

        Raises:
            MigrationNotFoundError: If the version is not registered
        """
        return await self._run_forced(MigrationDirection.UP, version)

    async def force_down(self, version: int) -> RunReport:
        """
        Revert one migration regardless of the ledger.

        This is destructive: it can revert a migration that was never
        applied. The ledger consistency check is skipped.

        Raises:
            MigrationNotFoundError: If the version is not registered
        """
        return await self._run_forced(MigrationDirection.DOWN, version)

    # Inspection

    async def stats(self) -> MigrationStats:
        """Report registry and ledger state without changing either."""
        with self._exclusive():
            plan = await self.plan()
            return MigrationStats(
                registered=self.registry.count(),
                executed=len(plan.executions),
                pending_up=len(plan.pending_up),
                pending_down=len(plan.pending_down),
                unknown_versions=list(plan.unknown_versions),
                statuses=self.reconciler.statuses(plan)
            )

    async def plan(self) -> ExecutionPlan:
        """Load executions and compute pending work."""
        await self.initialize()
        executions = await self.ledger.load_executions()
        return self.reconciler.plan(executions)

    # Internals

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self.lock is None:
            yield
            return
        with self.lock:
            yield

    async def _run_ordered(self, direction: MigrationDirection, steps: Optional[int]) -> RunReport:
        if steps is not None and steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")

        with self._exclusive():
            new_run_id()
            plan = await self.plan()
            plan.assert_consistent()

            pending = plan.pending_up if direction == MigrationDirection.UP else plan.pending_down
            if steps is not None:
                pending = pending[:steps]

            return await self._execute(direction, pending, forced=False)

    async def _run_forced(self, direction: MigrationDirection, version: int) -> RunReport:
        migration = self.registry.get(version)
        if migration is None:
            raise MigrationNotFoundError(version)

        with self._exclusive():
            new_run_id()
            await self.initialize()
            return await self._execute(direction, [migration], forced=True)

    async def _execute(
        self,
        direction: MigrationDirection,
        migrations: Sequence[Migration],
        forced: bool
    ) -> RunReport:
        report = RunReport(direction=direction, forced=forced)
        self.logger.log_run_started(direction.value, len(migrations), forced=forced)

        for migration in migrations:
            if not await self._execute_step(migration, direction, report):
                break

        self.logger.log_run_finished(direction.value, len(report.completed), report.success)
        return report

    async def _execute_step(
        self,
        migration: Migration,
        direction: MigrationDirection,
        report: RunReport
    ) -> bool:
        version = migration.version
        self.logger.log_step_started(version, direction.value)

        executed_at_ms = now_ms()
        started = time.perf_counter()
        try:
            if direction == MigrationDirection.UP:
                await migration.up(self.context)
            else:
                await migration.down(self.context)
        except asyncio.CancelledError:
            self.logger.warning(
                f"Migration {version} cancelled during {direction.value}",
                event_type=MigrationEventType.STEP_FAILED,
                version=version,
                direction=direction.value,
                status="cancelled"
            )
            raise
        except Exception as e:
            step_error = MigrationStepError(version, direction.value, e)
            report.failed_version = version
            report.error = step_error
            self.logger.log_step_failed(version, direction.value, step_error)
            return False

        execution = MigrationExecution(
            version=version,
            executed_at_ms=executed_at_ms,
            finished_at_ms=max(now_ms(), executed_at_ms)
        )
        try:
            if direction == MigrationDirection.UP:
                await self.ledger.save(execution)
            else:
                await self.ledger.remove(execution)
        except LedgerError as e:
            self.logger.error(
                f"Migration {version} ran {direction.value} but the ledger could not be updated: {e}",
                event_type=MigrationEventType.LEDGER,
                version=version,
                direction=direction.value,
                status="failure"
            )
            raise

        report.completed.append(version)
        duration_ms = (time.perf_counter() - started) * 1000
        self.logger.log_step_succeeded(version, direction.value, duration_ms)
        return True
