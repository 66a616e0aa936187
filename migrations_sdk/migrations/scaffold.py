"""
Blank migration file generation.
"""

import time
from pathlib import Path
from typing import Optional, Union

from ..exceptions import MigrationError
from .registry import migration_file_name

BLANK_MIGRATION_TEMPLATE = '''"""
Migration {version}.
"""

from migrations_sdk import Migration


class Migration{version}(Migration):
    """Describe what this migration changes."""

    version = {version}

    async def up(self, context):
        raise NotImplementedError

    async def down(self, context):
        raise NotImplementedError
'''


def create_blank_migration(directory: Union[str, Path], version: Optional[int] = None) -> Path:
    """
    Write a new ``version_<N>.py`` skeleton into ``directory``.

    Args:
        directory: Migrations directory (created if missing)
        version: Version to stamp; the current unix time in seconds if None

    Returns:
        Path of the created file

    Raises:
        MigrationError: If a file for that version already exists
    """
    if version is None:
        version = int(time.time())

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / migration_file_name(version)

    try:
        with path.open("x", encoding="utf-8") as fp:
            fp.write(BLANK_MIGRATION_TEMPLATE.format(version=version))
    except FileExistsError as e:
        raise MigrationError(
            f"Migration file already exists: {path}",
            version=version,
            original_error=e
        )
    return path
