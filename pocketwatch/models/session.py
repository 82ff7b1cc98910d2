"""
Session Models

Identity and mutation outcomes as seen by the session coordinator.

DESIGN DECISION: Mutations never raise to the presentation layer. They
return a MutationResult saying where the change landed, so the caller can
decide whether to roll back its own view.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pocketwatch.models.transaction import (
    BudgetSettings,
    Transaction,
    ValidationIssue,
)


class Identity(BaseModel):
    """An authenticated user principal. Its absence means local mode."""

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    provider: Optional[str] = None


class IdentityEvent(str, Enum):
    """State-change events emitted by an identity provider."""
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


class StorageBackend(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class MutationOutcome(str, Enum):
    """
    Where a mutation landed.

    APPLIED_LOCALLY:     saved to the on-device document (anonymous mode)
    PERSISTED_REMOTELY:  written to the identity's remote rows
    FAILED:              rejected by validation or by the store
    """
    APPLIED_LOCALLY = "applied_locally"
    PERSISTED_REMOTELY = "persisted_remotely"
    FAILED = "failed"


class MutationResult(BaseModel):
    """
    Result of a create/update/delete/settings call on the coordinator.

    view_updated tells whether the in-memory list was changed. A failed
    delete still removes the record from the view (optimistic) and the
    coordinator does not roll it back. A store call that completes after
    the view was reloaded (sign-in or sign-out) keeps its outcome but
    leaves the view alone.
    """

    outcome: MutationOutcome
    backend: StorageBackend
    view_updated: bool = False
    transaction: Optional[Transaction] = None
    transaction_id: Optional[str] = None
    settings: Optional[BudgetSettings] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome != MutationOutcome.FAILED
