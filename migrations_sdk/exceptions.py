"""
Exceptions for the Migrations SDK.

This module defines the exception hierarchy used by the registry, the
execution ledger, the runner and the exclusivity guard. Every error carries
the migration version it relates to (when there is one) and the original
exception that caused it.

Author: Migrations SDK
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional


class MigrationError(Exception):
    """Base exception for all migration-related errors."""

    def __init__(
        self,
        message: str,
        version: Optional[int] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.version = version
        self.original_error = original_error
        self.context = context or {}

    def __str__(self) -> str:
        base_msg = self.message
        if self.original_error is not None:
            base_msg += f" (Caused by: {self.original_error})"
        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for structured logging."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'version': self.version,
            'original_error': str(self.original_error) if self.original_error else None,
            'context': self.context
        }


class MigrationRegistrationError(MigrationError):
    """Exception raised when a migration cannot be registered."""


class DuplicateVersionError(MigrationRegistrationError):
    """Exception raised when a version is registered twice."""

    def __init__(self, version: int, **kwargs):
        super().__init__(
            f"Failed to register migration {version}: the version is already registered",
            version=version,
            **kwargs
        )


class InvalidVersionError(MigrationRegistrationError):
    """Exception raised when a migration exposes an unusable version."""

    def __init__(self, version: Any, **kwargs):
        super().__init__(
            f"Invalid migration version {version!r}: "
            "versions must be unsigned 64-bit integers",
            **kwargs
        )
        self.invalid_version = version


class RegistryInconsistencyError(MigrationError):
    """Exception raised when registered migrations differ from declared files."""

    def __init__(
        self,
        message: str,
        missing: Optional[List[str]] = None,
        extra: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.missing = missing or []
        self.extra = extra or []


class MigrationNotFoundError(MigrationError):
    """Exception raised when a version is not known to the registry."""

    def __init__(self, version: int, **kwargs):
        super().__init__(f"Migration {version} is not registered", version=version, **kwargs)


class LedgerError(MigrationError):
    """Exception raised when the execution ledger storage fails."""


class LedgerReadError(LedgerError):
    """
    Exception raised when stored executions cannot be decoded.

    The executions decoded before the failure are kept in
    ``partial_executions``; callers must treat them as incomplete.
    """

    def __init__(self, message: str, partial_executions: Optional[List[Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.partial_executions = partial_executions or []


class LedgerInconsistencyError(MigrationError):
    """Exception raised when the ledger references unregistered migrations."""

    def __init__(self, unknown_versions: List[int], **kwargs):
        versions = ", ".join(str(v) for v in unknown_versions)
        super().__init__(
            "Ledger contains executions with no registered migration: "
            f"{versions}. Ordered runs are refused until this is resolved",
            **kwargs
        )
        self.unknown_versions = list(unknown_versions)


class MigrationStepError(MigrationError):
    """Exception describing a failed migration step."""

    def __init__(self, version: int, direction: str, original_error: BaseException, **kwargs):
        super().__init__(
            f"Migration {version} failed while running {direction}",
            version=version,
            original_error=original_error,
            **kwargs
        )
        self.direction = direction


class MigrationLockError(MigrationError):
    """Exception raised when the migrations lock is held by another process."""

    def __init__(
        self,
        message: str,
        lock_path: Optional[str] = None,
        lock_holder: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.lock_path = lock_path
        self.lock_holder = lock_holder
