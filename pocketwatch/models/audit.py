"""
Session Event Models

Every significant thing the coordinator does is described by a
SessionEvent and handed to the event logger. This provides:
1. A trace of which backend served each operation
2. Debugging information when a store fails silently
3. Visibility into discarded reloads

DESIGN DECISION: Events are only logged, never persisted. Store failures are
already absorbed at the store boundary; the log is where they stay visible.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SessionEventType(str, Enum):
    """Types of events we log."""
    # Identity
    SESSION_STARTED = "session_started"
    IDENTITY_RESOLVED = "identity_resolved"
    IDENTITY_TIMEOUT = "identity_timeout"
    IDENTITY_CHANGED = "identity_changed"

    # Reloads
    RELOAD_COMPLETED = "reload_completed"
    RELOAD_DISCARDED = "reload_discarded"

    # Mutations
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SETTINGS_UPDATED = "settings_updated"
    VALIDATION_REJECTED = "validation_rejected"
    STORE_FAILURE = "store_failure"


class EventSeverity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SessionEvent(BaseModel):
    """A single logged event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)",
    )
    event_type: SessionEventType
    severity: EventSeverity = EventSeverity.INFO
    backend: Optional[str] = Field(
        default=None,
        description="Backend that served the operation ('local' or 'remote')",
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id or user id the event relates to",
    )
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "backend": self.backend,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }


class SessionEventBuilder:
    """
    Helper class to build session events with common patterns.

    Usage:
        event = SessionEventBuilder.identity_changed("signed_in", user_id)
        event = SessionEventBuilder.reload_discarded("remote", token, latest)
    """

    @staticmethod
    def session_started(backend: str) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.SESSION_STARTED,
            backend=backend,
            description=f"Session started on {backend} storage",
        )

    @staticmethod
    def identity_resolved(user_id: Optional[str]) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.IDENTITY_RESOLVED,
            entity_id=user_id,
            description=(
                f"Signed in as {user_id}" if user_id else "No identity, using local storage"
            ),
        )

    @staticmethod
    def identity_timeout(timeout_seconds: float) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.IDENTITY_TIMEOUT,
            severity=EventSeverity.WARNING,
            backend="local",
            description="Identity check took too long, forcing local load",
            details={"timeout_seconds": timeout_seconds},
        )

    @staticmethod
    def identity_changed(event: str, user_id: Optional[str]) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.IDENTITY_CHANGED,
            entity_id=user_id,
            description=f"Identity state changed: {event}",
            details={"event": event},
        )

    @staticmethod
    def reload_completed(backend: str, token: int, count: int) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.RELOAD_COMPLETED,
            backend=backend,
            description=f"Loaded {count} transactions from {backend} storage",
            details={"token": token, "transaction_count": count},
        )

    @staticmethod
    def reload_discarded(backend: str, token: int, latest: int) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.RELOAD_DISCARDED,
            severity=EventSeverity.DEBUG,
            backend=backend,
            description="Discarded stale reload result",
            details={"token": token, "latest_token": latest},
        )

    @staticmethod
    def transaction_created(backend: str, transaction_id: str, amount: str) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.TRANSACTION_CREATED,
            backend=backend,
            entity_id=transaction_id,
            description=f"Transaction created: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def transaction_updated(backend: str, transaction_id: str, fields: list[str]) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.TRANSACTION_UPDATED,
            backend=backend,
            entity_id=transaction_id,
            description="Transaction updated",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_deleted(backend: str, transaction_id: str) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.TRANSACTION_DELETED,
            backend=backend,
            entity_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def settings_updated(backend: str, fields: list[str]) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.SETTINGS_UPDATED,
            backend=backend,
            description="Settings updated",
            details={"fields": fields},
        )

    @staticmethod
    def validation_rejected(issues: list[dict]) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.VALIDATION_REJECTED,
            severity=EventSeverity.WARNING,
            description=f"Input rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def store_failure(
        backend: str,
        operation: str,
        entity_id: Optional[str] = None,
    ) -> SessionEvent:
        return SessionEvent(
            event_type=SessionEventType.STORE_FAILURE,
            severity=EventSeverity.ERROR,
            backend=backend,
            entity_id=entity_id,
            description=f"Store failed during {operation}",
            details={"operation": operation},
        )
