"""
Tests for blank migration generation.
"""

import time

import pytest

from migrations_sdk import MigrationError, create_blank_migration
from migrations_sdk.migrations.registry import parse_migration_file_name


def test_creates_file_with_given_version(tmp_path):
    path = create_blank_migration(tmp_path, version=1712953077)

    assert path == tmp_path / "version_1712953077.py"
    content = path.read_text()
    assert "class Migration1712953077(Migration):" in content
    assert "version = 1712953077" in content
    assert "async def up(self, context):" in content
    assert "async def down(self, context):" in content


def test_defaults_to_current_unix_time(tmp_path):
    before = int(time.time())
    path = create_blank_migration(tmp_path)
    after = int(time.time())

    version = parse_migration_file_name(path.name)
    assert before <= version <= after


def test_creates_missing_directory(tmp_path):
    path = create_blank_migration(tmp_path / "db" / "migrations", version=5)
    assert path.is_file()


def test_existing_file_is_not_overwritten(tmp_path):
    existing = tmp_path / "version_5.py"
    existing.write_text("keep me")

    with pytest.raises(MigrationError):
        create_blank_migration(tmp_path, version=5)

    assert existing.read_text() == "keep me"
