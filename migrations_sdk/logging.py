"""
Migration Logging for the Migrations SDK.

This module provides structured logging for migration runs with run ID
correlation, so every event emitted while applying or reverting one batch of
migrations can be grouped together.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .exceptions import MigrationError


class MigrationEventType(str, Enum):
    """Types of migration events."""
    RUN_STARTED = "run_started"
    RUN_FINISHED = "run_finished"
    STEP_STARTED = "step_started"
    STEP_APPLIED = "step_applied"
    STEP_REVERTED = "step_reverted"
    STEP_FAILED = "step_failed"
    LEDGER = "ledger"
    LOCK = "lock"
    REGISTRY = "registry"
    ERROR = "error"
    GENERAL = "general"


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class MigrationEvent:
    """Migration event for structured logging."""
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: MigrationEventType = MigrationEventType.GENERAL
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    run_id: Optional[str] = None
    component: Optional[str] = None
    version: Optional[int] = None
    direction: Optional[str] = None
    status: Optional[str] = None
    duration_ms: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        data = asdict(self)
        data['event_type'] = self.event_type.value
        data['timestamp'] = self.timestamp.isoformat()
        return data

    def to_json(self) -> str:
        """Convert event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


# Context variable for run correlation
run_id_context: ContextVar[Optional[str]] = ContextVar('migration_run_id', default=None)


def new_run_id() -> str:
    """Start a new run correlation scope and return its ID."""
    run_id = uuid.uuid4().hex[:12]
    run_id_context.set(run_id)
    return run_id


class MigrationLogger:
    """
    Structured logger for migration events.

    Wraps a standard library logger and attaches a ``MigrationEvent`` to each
    record under the ``migration_event`` extra key.
    """

    def __init__(self, name: str = "runner", level: Optional[LogLevel] = None):
        self.name = name
        self.logger = logging.getLogger(f"migrations_sdk.{name}")
        if level is not None:
            self.logger.setLevel(getattr(logging, level.value))

        self._event_handlers: List[Callable[[MigrationEvent], None]] = []

    def add_event_handler(self, handler: Callable[[MigrationEvent], None]) -> None:
        """Register a callback invoked with every emitted event."""
        self._event_handlers.append(handler)

    def _create_event(self, event_type: MigrationEventType, message: str, **kwargs) -> MigrationEvent:
        return MigrationEvent(
            event_type=event_type,
            run_id=run_id_context.get(),
            component=self.name,
            version=kwargs.get('version'),
            direction=kwargs.get('direction'),
            status=kwargs.get('status'),
            duration_ms=kwargs.get('duration_ms'),
            metadata={
                'message': message,
                **kwargs.get('metadata', {})
            }
        )

    def _log_event(self, event: MigrationEvent, level: LogLevel) -> None:
        prefix = f"[{event.run_id}] " if event.run_id else ""
        self.logger.log(
            getattr(logging, level.value),
            f"{prefix}{event.metadata.get('message', '')}",
            extra={'migration_event': event.to_dict()}
        )

        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Event handler error: {e}")

    def debug(self, message: str, event_type: MigrationEventType = MigrationEventType.GENERAL, **kwargs):
        """Log debug message."""
        self._log_event(self._create_event(event_type, message, **kwargs), LogLevel.DEBUG)

    def info(self, message: str, event_type: MigrationEventType = MigrationEventType.GENERAL, **kwargs):
        """Log info message."""
        self._log_event(self._create_event(event_type, message, **kwargs), LogLevel.INFO)

    def warning(self, message: str, event_type: MigrationEventType = MigrationEventType.GENERAL, **kwargs):
        """Log warning message."""
        self._log_event(self._create_event(event_type, message, **kwargs), LogLevel.WARNING)

    def error(self, message: str, event_type: MigrationEventType = MigrationEventType.GENERAL, **kwargs):
        """Log error message."""
        self._log_event(self._create_event(event_type, message, **kwargs), LogLevel.ERROR)

    def log_step_started(self, version: int, direction: str) -> None:
        self.debug(
            f"Running {direction} for migration {version}",
            event_type=MigrationEventType.STEP_STARTED,
            version=version,
            direction=direction,
            status="running"
        )

    def log_step_succeeded(self, version: int, direction: str, duration_ms: float) -> None:
        event_type = (
            MigrationEventType.STEP_APPLIED if direction == "up"
            else MigrationEventType.STEP_REVERTED
        )
        verb = "applied" if direction == "up" else "reverted"
        self.info(
            f"Migration {version} {verb} ({duration_ms:.2f}ms)",
            event_type=event_type,
            version=version,
            direction=direction,
            status="success",
            duration_ms=duration_ms
        )

    def log_step_failed(self, version: int, direction: str, error: MigrationError) -> None:
        self.error(
            f"Migration {version} failed during {direction}: {error}",
            event_type=MigrationEventType.STEP_FAILED,
            version=version,
            direction=direction,
            status="failure",
            metadata={'error': error.to_dict()}
        )

    def log_run_started(self, direction: str, planned: int, forced: bool = False) -> None:
        self.info(
            f"Starting {'forced ' if forced else ''}{direction} run with {planned} planned step(s)",
            event_type=MigrationEventType.RUN_STARTED,
            direction=direction,
            status="running",
            metadata={'planned': planned, 'forced': forced}
        )

    def log_run_finished(self, direction: str, completed: int, success: bool) -> None:
        level_method = self.info if success else self.error
        level_method(
            f"Finished {direction} run: {completed} step(s) completed"
            + ("" if success else ", run halted"),
            event_type=MigrationEventType.RUN_FINISHED,
            direction=direction,
            status="success" if success else "failure",
            metadata={'completed': completed}
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command line usage."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )
