"""
Shared fixtures for the Migrations SDK tests.
"""

from typing import Any, List, Optional, Tuple, Type

import pytest

from migrations_sdk import Migration, MigrationExecution
from migrations_sdk.ledgers import MemoryExecutionLedger


class RecordingMigration(Migration):
    """Migration that records its calls and can be told to fail."""

    def __init__(
        self,
        version: int,
        calls: List[Tuple[str, int]],
        fail_on: Tuple[str, ...] = (),
        error: Type[BaseException] = RuntimeError
    ):
        self.version = version
        self.calls = calls
        self.fail_on = set(fail_on)
        self.error = error
        self.contexts: List[Any] = []

    async def up(self, context):
        self.calls.append(("up", self.version))
        self.contexts.append(context)
        if "up" in self.fail_on:
            raise self.error(f"up {self.version} failed")

    async def down(self, context):
        self.calls.append(("down", self.version))
        self.contexts.append(context)
        if "down" in self.fail_on:
            raise self.error(f"down {self.version} failed")


class RecordingLedger(MemoryExecutionLedger):
    """Memory ledger that records every mutating call."""

    def __init__(self, executions=None):
        super().__init__(executions)
        self.saved: List[MigrationExecution] = []
        self.removed: List[MigrationExecution] = []
        self.closed = False

    async def save(self, execution):
        self.saved.append(execution)
        await super().save(execution)

    async def remove(self, execution):
        self.removed.append(execution)
        await super().remove(execution)

    async def close(self):
        self.closed = True


@pytest.fixture
def calls():
    """Ordered log of migration calls."""
    return []


@pytest.fixture
def make_migration(calls):
    """Factory for recording migrations sharing the ``calls`` log."""
    def factory(
        version: int,
        fail_on: Tuple[str, ...] = (),
        error: Type[BaseException] = RuntimeError
    ) -> RecordingMigration:
        return RecordingMigration(version, calls, fail_on, error)
    return factory


@pytest.fixture
def make_ledger():
    """Factory for recording ledgers pre-filled with executions for ``versions``."""
    def factory(versions: Optional[List[int]] = None) -> RecordingLedger:
        return RecordingLedger(
            MigrationExecution(version=v, executed_at_ms=1000, finished_at_ms=1005)
            for v in versions or []
        )
    return factory
