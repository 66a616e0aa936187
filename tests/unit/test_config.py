"""
Tests for MigrationConfig.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from migrations_sdk import MigrationConfig
from migrations_sdk.logging import LogLevel


class TestMigrationConfig:
    """Test cases for MigrationConfig."""

    def test_defaults(self):
        config = MigrationConfig()

        assert config.migrations_dir == Path("migrations")
        assert config.ledger_table_name == "migration_executions"
        assert config.database_url is None
        assert config.run_exclusively is True
        assert config.lock_name == "migrations"
        assert config.log_level == LogLevel.INFO

    def test_path_settings_accept_strings(self, tmp_path):
        config = MigrationConfig(lock_dir=str(tmp_path), migrations_dir=str(tmp_path / "db"))
        assert config.lock_dir == tmp_path
        assert config.migrations_dir == tmp_path / "db"

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MIGRATIONS_DIR", str(tmp_path))
        monkeypatch.setenv("MIGRATIONS_TABLE", "schema_versions")
        monkeypatch.setenv("MIGRATIONS_DATABASE_URL", "sqlite+aiosqlite:///app.db")
        monkeypatch.setenv("MIGRATIONS_RUN_EXCLUSIVELY", "false")
        monkeypatch.setenv("MIGRATIONS_LOCK_DIR", str(tmp_path))
        monkeypatch.setenv("MIGRATIONS_LOCK_NAME", "app-migrations")
        monkeypatch.setenv("MIGRATIONS_LOG_LEVEL", "debug")

        config = MigrationConfig.from_env()

        assert config.migrations_dir == tmp_path
        assert config.ledger_table_name == "schema_versions"
        assert config.database_url == "sqlite+aiosqlite:///app.db"
        assert config.run_exclusively is False
        assert config.lock_dir == tmp_path
        assert config.lock_name == "app-migrations"
        assert config.log_level == LogLevel.DEBUG

    @pytest.mark.parametrize("name", ["", "bad name", "../escape", "x;drop"])
    def test_invalid_names_are_rejected(self, name):
        with pytest.raises(ValidationError):
            MigrationConfig(lock_name=name)
        with pytest.raises(ValidationError):
            MigrationConfig(ledger_table_name=name)

    def test_validate_settings(self, tmp_path):
        config = MigrationConfig(migrations_dir=tmp_path, lock_dir=tmp_path)
        assert config.validate_settings() == []

    def test_validate_settings_reports_issues(self, tmp_path):
        config = MigrationConfig(migrations_dir=tmp_path / "missing", lock_dir=tmp_path / "nolock")

        issues = config.validate_settings()

        assert len(issues) == 2
        assert any("Migrations directory" in issue for issue in issues)
        assert any("Lock directory" in issue for issue in issues)

    def test_lock_dir_is_not_checked_when_not_exclusive(self, tmp_path):
        config = MigrationConfig(
            migrations_dir=tmp_path,
            lock_dir=tmp_path / "nolock",
            run_exclusively=False
        )
        assert config.validate_settings() == []
