"""
SQL execution ledger.

This module stores migration executions in a relational table through
SQLAlchemy's asyncio extension, so the same implementation serves SQLite
(aiosqlite), PostgreSQL (asyncpg) and MySQL (aiomysql).

Table layout::

    version         BIGINT  PRIMARY KEY  (uint64, two's complement)
    executed_at_ms  BIGINT  NOT NULL
    finished_at_ms  BIGINT  NOT NULL

Author: Migrations SDK
Version: 1.0.0
"""

from typing import Any, List, Optional

from sqlalchemy import BigInteger, Column, MetaData, Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.types import TypeDecorator

from ..exceptions import LedgerError, LedgerReadError
from ..logging import MigrationEventType, MigrationLogger
from ..migrations.ledger import ExecutionLedger, MigrationExecution

# Drivers raise OverflowError for out-of-range ints before SQLAlchemy sees them.
STORAGE_ERRORS = (SQLAlchemyError, OverflowError)

_INT64_MAX = 2 ** 63 - 1
_UINT64_RANGE = 2 ** 64


class UnsignedBigInteger(TypeDecorator):
    """
    Unsigned 64-bit integer stored in a signed BIGINT column.

    Values above the signed range are stored as their two's complement, so
    small versions stay readable in the table while the full unsigned range
    round-trips.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if isinstance(value, int) and value > _INT64_MAX:
            return value - _UINT64_RANGE
        return value

    def process_result_value(self, value, dialect):
        if isinstance(value, int) and value < 0:
            return value + _UINT64_RANGE
        return value


class SQLExecutionLedger(ExecutionLedger):
    """
    Execution ledger backed by a SQL table.

    Args:
        engine: SQLAlchemy async engine. Sharing the application's engine is
            recommended so connection pools are managed in one place.
        table_name: Name of the executions table
    """

    def __init__(self, engine: AsyncEngine, table_name: str = "migration_executions"):
        self.engine = engine
        self.table_name = table_name
        self.metadata = MetaData()
        self.table = Table(
            table_name,
            self.metadata,
            Column("version", UnsignedBigInteger, primary_key=True, autoincrement=False),
            Column("executed_at_ms", BigInteger, nullable=False),
            Column("finished_at_ms", BigInteger, nullable=False),
        )
        self.logger = MigrationLogger("ledger.sql")
        self._owns_engine = False

    @classmethod
    def from_url(cls, url: str, table_name: str = "migration_executions", **engine_kwargs: Any) -> 'SQLExecutionLedger':
        """Build a ledger with its own engine; ``close()`` disposes it."""
        ledger = cls(create_async_engine(url, **engine_kwargs), table_name)
        ledger._owns_engine = True
        return ledger

    async def init(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.metadata.create_all, checkfirst=True)
        except STORAGE_ERRORS as e:
            raise LedgerError(f"Failed to create executions table {self.table_name}", original_error=e)

        self.logger.debug(f"Executions table {self.table_name} ready", event_type=MigrationEventType.LEDGER)

    async def load_executions(self) -> List[MigrationExecution]:
        query = select(
            self.table.c.version,
            self.table.c.executed_at_ms,
            self.table.c.finished_at_ms
        ).order_by(self.table.c.version)

        try:
            async with self.engine.connect() as conn:
                rows = (await conn.execute(query)).all()
        except STORAGE_ERRORS as e:
            raise LedgerError(f"Failed to load executions from {self.table_name}", original_error=e)

        executions = []
        for row in rows:
            try:
                executions.append(self._decode_row(row))
            except (TypeError, ValueError) as e:
                raise LedgerReadError(
                    f"Malformed execution row in {self.table_name}: {tuple(row)}",
                    partial_executions=executions,
                    original_error=e
                )
        # Stored order is signed, so versions past the signed range sort first.
        return sorted(executions, key=lambda execution: execution.version)

    async def save(self, execution: MigrationExecution) -> None:
        values = {
            'executed_at_ms': execution.executed_at_ms,
            'finished_at_ms': execution.finished_at_ms
        }
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    update(self.table)
                    .where(self.table.c.version == execution.version)
                    .values(**values)
                )
                if result.rowcount == 0:
                    await conn.execute(insert(self.table).values(version=execution.version, **values))
        except STORAGE_ERRORS as e:
            raise LedgerError(
                f"Failed to save execution of migration {execution.version}",
                version=execution.version,
                original_error=e
            )

    async def remove(self, execution: MigrationExecution) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.execute(delete(self.table).where(self.table.c.version == execution.version))
        except STORAGE_ERRORS as e:
            raise LedgerError(
                f"Failed to remove execution of migration {execution.version}",
                version=execution.version,
                original_error=e
            )

    async def find_one(self, version: int) -> Optional[MigrationExecution]:
        query = select(
            self.table.c.version,
            self.table.c.executed_at_ms,
            self.table.c.finished_at_ms
        ).where(self.table.c.version == version)

        try:
            async with self.engine.connect() as conn:
                row = (await conn.execute(query)).first()
        except STORAGE_ERRORS as e:
            raise LedgerError(f"Failed to find execution of migration {version}", version=version, original_error=e)

        if row is None:
            return None
        try:
            return self._decode_row(row)
        except (TypeError, ValueError) as e:
            raise LedgerReadError(
                f"Malformed execution row in {self.table_name}: {tuple(row)}",
                version=version,
                original_error=e
            )

    async def close(self) -> None:
        if self._owns_engine:
            await self.engine.dispose()

    @staticmethod
    def _decode_row(row) -> MigrationExecution:
        version, executed_at_ms, finished_at_ms = row
        return MigrationExecution(
            version=int(version),
            executed_at_ms=int(executed_at_ms),
            finished_at_ms=int(finished_at_ms)
        )
