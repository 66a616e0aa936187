"""
Tests for execution ledger backends.
"""

import pytest
from sqlalchemy import text

from migrations_sdk import LedgerError, LedgerReadError, MigrationExecution
from migrations_sdk.ledgers import MemoryExecutionLedger, SQLExecutionLedger


def execution(version, executed_at_ms=100, finished_at_ms=150):
    return MigrationExecution(version=version, executed_at_ms=executed_at_ms, finished_at_ms=finished_at_ms)


class TestMigrationExecution:
    """Test cases for MigrationExecution."""

    def test_duration(self):
        assert execution(1, 100, 175).duration_ms == 75

    def test_finished_before_executed_is_rejected(self):
        with pytest.raises(ValueError):
            execution(1, 200, 100)

    def test_dict_conversion(self):
        record = execution(7)
        assert MigrationExecution.from_dict(record.to_dict()) == record


class TestMemoryExecutionLedger:
    """Test cases for MemoryExecutionLedger."""

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        ledger = MemoryExecutionLedger()
        await ledger.init()

        await ledger.save(execution(1))
        await ledger.save(execution(2))

        assert sorted(e.version for e in await ledger.load_executions()) == [1, 2]
        assert ledger.initialized

    @pytest.mark.asyncio
    async def test_save_overwrites(self):
        ledger = MemoryExecutionLedger([execution(1)])

        await ledger.save(execution(1, 300, 400))

        assert await ledger.find_one(1) == execution(1, 300, 400)
        assert len(ledger) == 1

    @pytest.mark.asyncio
    async def test_remove_missing_is_not_an_error(self):
        ledger = MemoryExecutionLedger([execution(1)])

        await ledger.remove(execution(5))
        await ledger.remove(execution(1))

        assert await ledger.load_executions() == []

    @pytest.mark.asyncio
    async def test_find_one_missing(self):
        assert await MemoryExecutionLedger().find_one(3) is None


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


class TestSQLExecutionLedger:
    """Test cases for SQLExecutionLedger on SQLite."""

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            await ledger.save(execution(1))
            await ledger.init()

            assert [e.version for e in await ledger.load_executions()] == [1]
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_load_is_ordered_by_version(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            for version in (30, 10, 20):
                await ledger.save(execution(version))

            assert [e.version for e in await ledger.load_executions()] == [10, 20, 30]
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_save_is_an_upsert(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            await ledger.save(execution(1))
            await ledger.save(execution(1, 500, 600))

            executions = await ledger.load_executions()
            assert executions == [execution(1, 500, 600)]
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_remove(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            await ledger.save(execution(1))
            await ledger.save(execution(2))

            await ledger.remove(execution(1))
            await ledger.remove(execution(99))

            assert await ledger.find_one(1) is None
            assert await ledger.find_one(2) == execution(2)
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_full_unsigned_version_range(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            for version in (2 ** 64 - 1, 5, 2 ** 63):
                await ledger.save(execution(version))

            assert [e.version for e in await ledger.load_executions()] == [5, 2 ** 63, 2 ** 64 - 1]
            assert await ledger.find_one(2 ** 64 - 1) == execution(2 ** 64 - 1)

            await ledger.save(execution(2 ** 64 - 1, 300, 400))
            assert await ledger.find_one(2 ** 64 - 1) == execution(2 ** 64 - 1, 300, 400)

            await ledger.remove(execution(2 ** 63))
            assert await ledger.find_one(2 ** 63) is None
            assert len(await ledger.load_executions()) == 2
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_small_versions_are_stored_as_is(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            await ledger.save(execution(1712953077))

            async with ledger.engine.connect() as conn:
                stored = (await conn.execute(text("SELECT version FROM migration_executions"))).scalar()
            assert stored == 1712953077
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_driver_overflow_is_a_ledger_error(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()

            with pytest.raises(LedgerError):
                await ledger.save(execution(1, 2 ** 64, 2 ** 64))
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_custom_table_name(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url, table_name="schema_versions")
        try:
            await ledger.init()
            await ledger.save(execution(4))

            async with ledger.engine.connect() as conn:
                count = (await conn.execute(text("SELECT COUNT(*) FROM schema_versions"))).scalar()
            assert count == 1
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_malformed_row_returns_partial_executions(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            await ledger.init()
            await ledger.save(execution(1))
            await ledger.save(execution(2))
            async with ledger.engine.begin() as conn:
                await conn.execute(text(
                    "INSERT INTO migration_executions (version, executed_at_ms, finished_at_ms) "
                    "VALUES (3, 'oops', 10)"
                ))

            with pytest.raises(LedgerReadError) as exc_info:
                await ledger.load_executions()

            assert [e.version for e in exc_info.value.partial_executions] == [1, 2]
        finally:
            await ledger.close()

    @pytest.mark.asyncio
    async def test_missing_table_raises_ledger_error(self, database_url):
        ledger = SQLExecutionLedger.from_url(database_url)
        try:
            with pytest.raises(LedgerError):
                await ledger.load_executions()
        finally:
            await ledger.close()
