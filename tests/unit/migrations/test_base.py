"""
Tests for the migration contract, run reports and errors.
"""

from migrations_sdk import (
    Migration,
    MigrationDirection,
    MigrationStepError,
    RunReport,
)


class AddUsersTable(Migration):
    """Create the users table.

    Longer explanation that is not part of the description.
    """

    version = 1712953077

    async def up(self, context):
        pass

    async def down(self, context):
        pass


class Undocumented(Migration):
    version = 1

    async def up(self, context):
        pass

    async def down(self, context):
        pass


def test_description_is_first_docstring_line():
    assert AddUsersTable().description == "Create the users table."
    assert Undocumented().description == ""


def test_repr():
    assert repr(AddUsersTable()) == "AddUsersTable(version=1712953077)"


def test_run_report_success():
    report = RunReport(direction=MigrationDirection.UP, completed=[1, 2])
    assert report.success

    report.failed_version = 3
    assert not report.success


def test_step_error_keeps_cause():
    cause = RuntimeError("column exists")
    error = MigrationStepError(7, "up", cause)

    assert error.version == 7
    assert error.direction == "up"
    assert str(error) == "Migration 7 failed while running up (Caused by: column exists)"

    data = error.to_dict()
    assert data['error_type'] == "MigrationStepError"
    assert data['version'] == 7
    assert data['original_error'] == "column exists"
