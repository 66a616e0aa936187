"""
Migration registries.

A registry is the in-memory catalog of known migrations, keyed by version.
It is populated once, at a single composition point, and never mutated
afterwards. The directory-backed variant additionally checks that every
``version_<N>.py`` file in a migrations directory has a registered
counterpart and vice versa.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..exceptions import (
    DuplicateVersionError,
    InvalidVersionError,
    MigrationError,
    RegistryInconsistencyError,
)
from ..logging import MigrationEventType, MigrationLogger
from .base import Migration, is_valid_version

FILE_NAME_PREFIX = "version"
FILE_NAME_SEPARATOR = "_"
FILE_NAME_SUFFIX = ".py"

_FILE_NAME_PATTERN = re.compile(
    rf"^{FILE_NAME_PREFIX}{FILE_NAME_SEPARATOR}(\d+){re.escape(FILE_NAME_SUFFIX)}$"
)


def migration_file_name(version: int) -> str:
    """Build the file name declaring ``version``."""
    return f"{FILE_NAME_PREFIX}{FILE_NAME_SEPARATOR}{version}{FILE_NAME_SUFFIX}"


def parse_migration_file_name(name: str) -> Optional[int]:
    """Extract the version from a migration file name, or None if it does not match."""
    match = _FILE_NAME_PATTERN.match(name)
    if not match:
        return None
    return int(match.group(1))


class MigrationRegistry:
    """Generic registry of migrations keyed by version."""

    def __init__(self, migrations: Optional[Iterable[Migration]] = None):
        self._migrations: Dict[int, Migration] = {}
        for migration in migrations or ():
            self.register(migration)

    def register(self, migration: Migration) -> None:
        """
        Add a migration to the registry.

        Raises:
            InvalidVersionError: If the migration's version is not an unsigned 64-bit int
            DuplicateVersionError: If the version is already registered
        """
        version = getattr(migration, "version", None)
        if not is_valid_version(version):
            raise InvalidVersionError(version)
        if version in self._migrations:
            raise DuplicateVersionError(version)
        self._migrations[version] = migration

    def ordered_versions(self) -> List[int]:
        return sorted(self._migrations)

    def ordered_migrations(self) -> List[Migration]:
        return [self._migrations[version] for version in self.ordered_versions()]

    def get(self, version: int) -> Optional[Migration]:
        return self._migrations.get(version)

    def count(self) -> int:
        return len(self._migrations)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, version: object) -> bool:
        return version in self._migrations


@dataclass
class RegistryValidation:
    """Outcome of comparing registered migrations with declared files."""
    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    @property
    def all_registered(self) -> bool:
        return not self.missing and not self.extra

    @property
    def missing_versions(self) -> List[int]:
        return [parse_migration_file_name(name) for name in self.missing]

    @property
    def extra_versions(self) -> List[int]:
        return [parse_migration_file_name(name) for name in self.extra]


class DirMigrationRegistry(MigrationRegistry):
    """
    Registry whose contents must match the migration files of a directory.

    ``missing`` lists declared files that have no registered migration;
    ``extra`` lists registered migrations that have no declared file. Both
    are computed in a single pass.
    """

    def __init__(
        self,
        migrations_dir: Union[str, Path],
        migrations: Optional[Iterable[Migration]] = None,
        validate: bool = True
    ):
        self.migrations_dir = Path(migrations_dir)
        self.logger = MigrationLogger("registry")
        super().__init__(migrations)
        if validate:
            self.assert_valid()

    def declared_versions(self) -> Dict[int, str]:
        """
        Map each version declared in the migrations directory to its file name.

        Raises:
            MigrationError: If the directory cannot be read
        """
        try:
            entries = list(self.migrations_dir.iterdir())
        except OSError as e:
            raise MigrationError(
                f"Failed to read migrations directory {self.migrations_dir}",
                original_error=e
            )

        declared = {}
        for entry in entries:
            if not entry.is_file():
                continue
            version = parse_migration_file_name(entry.name)
            if version is not None:
                declared[version] = entry.name
        return declared

    def check_registered(self) -> RegistryValidation:
        """Compare registered versions against the declared migration files."""
        declared = self.declared_versions()
        registered = set(self._migrations)

        missing = [declared[v] for v in sorted(declared) if v not in registered]
        extra = [migration_file_name(v) for v in sorted(registered) if v not in declared]
        return RegistryValidation(missing=missing, extra=extra)

    def assert_valid(self) -> None:
        """
        Fail unless every declared migration is registered and nothing else is.

        Raises:
            RegistryInconsistencyError: Listing both missing and extra migrations
        """
        validation = self.check_registered()
        if validation.all_registered:
            self.logger.debug(
                f"Registry matches {self.migrations_dir} ({self.count()} migrations)",
                event_type=MigrationEventType.REGISTRY
            )
            return

        not_registered = ", ".join(validation.missing) or "none"
        extra = ", ".join(validation.extra) or "none"
        self.logger.error(
            f"Registry does not match {self.migrations_dir}",
            event_type=MigrationEventType.REGISTRY,
            metadata={'missing': validation.missing, 'extra': validation.extra}
        )
        raise RegistryInconsistencyError(
            "Registry has invalid state. You must register all migrations before running "
            f"migrations. Not registered: {not_registered}. Extra migrations: {extra}",
            missing=validation.missing,
            extra=validation.extra
        )
