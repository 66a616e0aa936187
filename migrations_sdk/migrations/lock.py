"""
Host-local exclusivity guard for migration runs.

The lock is advisory and file based (``flock``). It only prevents two
processes on the same host from running the same migration set at once; it
gives no guarantee across hosts.
"""

import fcntl
import os
from pathlib import Path
from typing import Optional, Union

from ..exceptions import MigrationLockError
from ..logging import MigrationEventType, MigrationLogger


class ProcessLock:
    """
    Non-blocking advisory lock on ``<lock_dir>/<name>.lock``.

    Acquisition fails immediately with ``MigrationLockError`` when another
    holder exists. Use it as a context manager so it is released on every
    exit path::

        with ProcessLock("/tmp", "my-app-migrations"):
            ...
    """

    def __init__(self, lock_dir: Union[str, Path], name: str = "migrations"):
        self.lock_path = Path(lock_dir) / f"{name}.lock"
        self.logger = MigrationLogger("lock")
        self._fd: Optional[int] = None

    @property
    def acquired(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """
        Take the lock without waiting.

        Raises:
            MigrationLockError: If the lock is held elsewhere or cannot be created
        """
        if self._fd is not None:
            return

        try:
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise MigrationLockError(
                f"Failed to open lock file {self.lock_path}",
                lock_path=str(self.lock_path),
                original_error=e
            )

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            holder = self._read_holder(fd)
            os.close(fd)
            self.logger.warning(
                f"Migrations are already running (lock {self.lock_path} held by {holder or 'unknown'})",
                event_type=MigrationEventType.LOCK,
                status="contended"
            )
            raise MigrationLockError(
                "Migrations are already running: "
                f"lock {self.lock_path} is held by pid {holder or 'unknown'}",
                lock_path=str(self.lock_path),
                lock_holder=holder
            )
        except OSError as e:
            os.close(fd)
            raise MigrationLockError(
                f"Failed to lock {self.lock_path}",
                lock_path=str(self.lock_path),
                original_error=e
            )

        try:
            os.ftruncate(fd, 0)
            os.write(fd, str(os.getpid()).encode())
        except OSError as e:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)
            raise MigrationLockError(
                f"Failed to record lock holder in {self.lock_path}",
                lock_path=str(self.lock_path),
                original_error=e
            )

        self._fd = fd
        self.logger.debug(
            f"Acquired lock {self.lock_path}",
            event_type=MigrationEventType.LOCK,
            status="acquired"
        )

    def release(self) -> None:
        """Release the lock if held."""
        if self._fd is None:
            return

        fd, self._fd = self._fd, None
        try:
            os.ftruncate(fd, 0)
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
        self.logger.debug(
            f"Released lock {self.lock_path}",
            event_type=MigrationEventType.LOCK,
            status="released"
        )

    @staticmethod
    def _read_holder(fd: int) -> Optional[str]:
        try:
            os.lseek(fd, 0, os.SEEK_SET)
            content = os.read(fd, 32).decode(errors="ignore").strip()
        except OSError:
            return None
        return content or None

    def __enter__(self) -> 'ProcessLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"ProcessLock(path='{self.lock_path}', acquired={self.acquired})"
