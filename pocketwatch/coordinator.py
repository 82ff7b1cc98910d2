"""
Session-Aware Coordinator for PocketWatch

This module ties the stores, the identity provider and the aggregation
engine together:
1. Startup (bounded identity check → load from the matching backend)
2. Identity transitions (signed in → remote, signed out → local)
3. Mutations (validate → dispatch to one store → update the in-memory view)
4. Derived views for the presentation layer

DESIGN DECISION: The coordinator enforces the boundaries:
- Backend selection happens in exactly one place (the `storage` property)
- The in-memory list is a cache of ONE backend at a time
- Only the most recently issued reload may replace the in-memory list
- Nothing raises to the presentation layer; mutations return a MutationResult
"""

import asyncio
from datetime import date
from typing import Optional, Union

import structlog

from pocketwatch.aggregation import (
    monthly_aggregates,
    monthly_summary,
    savings_goal_progress,
)
from pocketwatch.audit import EventLogger, configure_logging
from pocketwatch.classification import get_categories, suggest_category
from pocketwatch.config import Settings, get_settings
from pocketwatch.models.session import (
    Identity,
    IdentityEvent,
    MutationOutcome,
    MutationResult,
    StorageBackend,
)
from pocketwatch.models.summary import MonthlyAggregate, MonthlySummary, SavingsGoalProgress
from pocketwatch.models.transaction import (
    BudgetSettings,
    Category,
    SettingsPatch,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    ValidationResult,
    merge_settings,
)
from pocketwatch.services.identity import IdentityError, IdentityProviderInterface
from pocketwatch.services.storage import (
    DocumentMedium,
    FileDocumentMedium,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    LocalDocumentStore,
    LocalTransactionStorage,
    TransactionStorageInterface,
)
from pocketwatch.validation import TransactionValidator


logger = structlog.get_logger(__name__)


class SessionCoordinator:
    """
    Routes every read and write to the local or remote store.

    State:
        current_identity: None (local mode) or the signed-in Identity
        transactions:     in-memory view of the authoritative store
        settings:         in-memory budget settings

    Identity flips can race: each reload takes a sequence token and only
    the newest token may write the in-memory view. Older results that
    arrive late are discarded.
    """

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        local_storage: TransactionStorageInterface,
        remote_storage: Optional[TransactionStorageInterface] = None,
        validator: Optional[TransactionValidator] = None,
        event_logger: Optional[EventLogger] = None,
        identity_timeout_seconds: float = 5.0,
        default_settings: Optional[BudgetSettings] = None,
    ):
        self._identity_provider = identity_provider
        self._local = local_storage
        self._remote = remote_storage
        self._validator = validator or TransactionValidator()
        self._events = event_logger or EventLogger()
        self._identity_timeout = identity_timeout_seconds
        self._default_settings = default_settings or BudgetSettings()

        self._identity: Optional[Identity] = None
        self._identity_version = 0
        self._transactions: list[Transaction] = []
        self._settings = self._default_settings
        self._loaded = False
        self._reload_seq = 0
        self._unsubscribe = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def settings(self) -> BudgetSettings:
        return self._settings

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def storage(self) -> TransactionStorageInterface:
        """
        The store that serves the current identity.

        This is the only place that branches on identity. Signed-in users
        fall back to the local store when no remote store is configured.
        """
        if self._identity is not None and self._remote is not None:
            return self._remote
        return self._local

    def _view_changed_since(self, seq: int, operation: str) -> bool:
        """True if a reload replaced the view while a store call was pending."""
        if seq == self._reload_seq:
            return False
        logger.info(
            "mutation_view_superseded",
            operation=operation,
            started_seq=seq,
            current_seq=self._reload_seq,
        )
        return True

    def _success(self, storage: TransactionStorageInterface) -> MutationOutcome:
        if storage.backend == StorageBackend.REMOTE:
            return MutationOutcome.PERSISTED_REMOTELY
        return MutationOutcome.APPLIED_LOCALLY

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Subscribe to identity changes and load the initial data.

        The identity provider gets a bounded wait. If it does not answer
        in time (or fails), the session starts anonymous on local data.
        """
        if self._unsubscribe is None:
            self._unsubscribe = self._identity_provider.on_state_change(
                self._on_state_change
            )

        version = self._identity_version
        try:
            identity = await asyncio.wait_for(
                self._identity_provider.get_current_identity(),
                timeout=self._identity_timeout,
            )
        except asyncio.TimeoutError:
            await self._events.log_identity_timeout(self._identity_timeout)
            identity = None
        except Exception as e:
            logger.error("identity_check_failed", error=str(e))
            identity = None

        # A state-change event that arrived while we waited is newer
        if self._identity_version == version:
            self._identity = identity
            await self._events.log_identity_resolved(
                identity.user_id if identity else None
            )
            await self.reload()

        await self._events.log_session_started(self.storage.backend.value)

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_state_change(
        self,
        event: IdentityEvent,
        identity: Optional[Identity],
    ) -> None:
        self._identity_version += 1
        self._identity = identity if event == IdentityEvent.SIGNED_IN else None
        await self._events.log_identity_changed(
            event.value,
            self._identity.user_id if self._identity else None,
        )
        await self.reload()

    async def reload(self) -> bool:
        """
        Replace the in-memory view with the current store's contents.

        Returns:
            True if this reload's result was applied, False if a newer
            reload was issued while it was in flight
        """
        self._reload_seq += 1
        token = self._reload_seq
        storage = self.storage

        transactions = await storage.list_transactions()
        settings = await storage.read_settings()

        if token != self._reload_seq:
            await self._events.log_reload_discarded(
                storage.backend.value, token, self._reload_seq
            )
            return False

        self._transactions = list(transactions)
        self._settings = settings or self._default_settings
        self._loaded = True
        await self._events.log_reload_completed(
            storage.backend.value, token, len(self._transactions)
        )
        return True

    async def sign_in(self, provider: str) -> Optional[Identity]:
        """Ask the identity provider to sign in; the reload follows its event."""
        try:
            return await self._identity_provider.sign_in(provider)
        except IdentityError as e:
            logger.warning("sign_in_failed", provider=provider, error=str(e))
            return None

    async def sign_out(self) -> None:
        await self._identity_provider.sign_out()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def _rejected(
        self,
        storage: TransactionStorageInterface,
        validation: ValidationResult,
    ) -> MutationResult:
        await self._events.log_validation_rejected(
            [issue.model_dump() for issue in validation.issues]
        )
        return MutationResult(
            outcome=MutationOutcome.FAILED,
            backend=storage.backend,
            issues=validation.issues,
        )

    async def add_transaction(
        self,
        data: Union[TransactionCreate, dict],
    ) -> MutationResult:
        """
        Validate, classify if needed, store, and prepend to the view.

        The view only changes when the store returned a record and no
        reload happened in the meantime.
        """
        storage = self.storage
        seq = self._reload_seq
        parsed, validation = self._validator.validate_create(data)
        if parsed is None:
            return await self._rejected(storage, validation)

        if parsed.category is None:
            parsed = parsed.model_copy(update={"category": suggest_category(parsed.title)})

        stored = await storage.create_transaction(parsed)
        if stored is None:
            await self._events.log_store_failure(storage.backend.value, "create")
            return MutationResult(
                outcome=MutationOutcome.FAILED,
                backend=storage.backend,
                issues=validation.issues,
            )

        view_updated = not self._view_changed_since(seq, "create")
        if view_updated:
            self._transactions.insert(0, stored)
        await self._events.log_transaction_created(
            storage.backend.value, stored.id, str(stored.amount)
        )
        return MutationResult(
            outcome=self._success(storage),
            backend=storage.backend,
            view_updated=view_updated,
            transaction=stored,
            transaction_id=stored.id,
            issues=validation.issues,
        )

    async def update_transaction(
        self,
        transaction_id: str,
        patch: Union[TransactionPatch, dict],
    ) -> MutationResult:
        storage = self.storage
        seq = self._reload_seq
        parsed, validation = self._validator.validate_patch(patch)
        if parsed is None:
            return await self._rejected(storage, validation)

        stored = await storage.update_transaction(transaction_id, parsed)
        if stored is None:
            await self._events.log_store_failure(
                storage.backend.value, "update", transaction_id
            )
            return MutationResult(
                outcome=MutationOutcome.FAILED,
                backend=storage.backend,
                transaction_id=transaction_id,
                issues=validation.issues,
            )

        view_updated = False
        if not self._view_changed_since(seq, "update"):
            for index, existing in enumerate(self._transactions):
                if existing.id == transaction_id:
                    self._transactions[index] = stored
                    view_updated = True
                    break

        await self._events.log_transaction_updated(
            storage.backend.value, transaction_id, sorted(parsed.changes())
        )
        return MutationResult(
            outcome=self._success(storage),
            backend=storage.backend,
            view_updated=view_updated,
            transaction=stored,
            transaction_id=transaction_id,
            issues=validation.issues,
        )

    async def delete_transaction(self, transaction_id: str) -> MutationResult:
        """
        Remove from the view immediately, then from the store.

        A store failure does not restore the record; the removed record is
        returned so the caller can put it back if it wants to.
        """
        storage = self.storage
        removed = next((t for t in self._transactions if t.id == transaction_id), None)
        self._transactions = [t for t in self._transactions if t.id != transaction_id]

        if not await storage.delete_transaction(transaction_id):
            await self._events.log_store_failure(
                storage.backend.value, "delete", transaction_id
            )
            outcome = MutationOutcome.FAILED
        else:
            await self._events.log_transaction_deleted(storage.backend.value, transaction_id)
            outcome = self._success(storage)

        return MutationResult(
            outcome=outcome,
            backend=storage.backend,
            view_updated=removed is not None,
            transaction=removed,
            transaction_id=transaction_id,
        )

    async def update_settings(self, patch: Union[SettingsPatch, dict]) -> MutationResult:
        """Apply settings to the view immediately, then persist them."""
        storage = self.storage
        seq = self._reload_seq
        parsed, validation = self._validator.validate_settings(patch)
        if parsed is None:
            return await self._rejected(storage, validation)

        self._settings = merge_settings(self._settings, parsed)
        stored = await storage.write_settings(parsed)
        if stored is None:
            await self._events.log_store_failure(storage.backend.value, "write_settings")
            return MutationResult(
                outcome=MutationOutcome.FAILED,
                backend=storage.backend,
                view_updated=True,
                settings=self._settings,
            )

        view_updated = not self._view_changed_since(seq, "write_settings")
        if view_updated:
            self._settings = stored
        await self._events.log_settings_updated(
            storage.backend.value, sorted(parsed.changes())
        )
        return MutationResult(
            outcome=self._success(storage),
            backend=storage.backend,
            view_updated=view_updated,
            settings=stored,
        )

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def categories(self) -> list[Category]:
        return get_categories()

    def monthly_summary(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> MonthlySummary:
        """Dashboard view for a month (0-11); defaults to the current month."""
        today = date.today()
        return monthly_summary(
            self._transactions,
            self._settings,
            year if year is not None else today.year,
            month if month is not None else today.month - 1,
        )

    def savings_projection(self, year: Optional[int] = None) -> list[MonthlyAggregate]:
        return monthly_aggregates(
            self._transactions,
            year if year is not None else date.today().year,
        )

    def savings_goal_progress(
        self,
        year: Optional[int] = None,
        through_month: Optional[int] = None,
    ) -> SavingsGoalProgress:
        today = date.today()
        return savings_goal_progress(
            self.savings_projection(year),
            self._settings.savings_goal,
            through_month if through_month is not None else today.month - 1,
        )


def create_session(
    identity_provider: IdentityProviderInterface,
    settings: Optional[Settings] = None,
    medium: Optional[DocumentMedium] = None,
    use_remote: bool = True,
) -> SessionCoordinator:
    """
    Factory function to build a session from configuration.

    Args:
        identity_provider: The authentication capability
        settings: Settings container (defaults to get_settings())
        medium: Local persistence medium. Defaults to a file in the
                configured data directory.
        use_remote: Whether to set up Google Sheets storage.
                    Set to False for local-only sessions.

    Returns:
        A coordinator that has not been started yet
    """
    settings = settings or get_settings()
    app = settings.app
    configure_logging(app.effective_log_level)

    local_config = settings.local_storage
    defaults = BudgetSettings(
        monthly_budget=app.default_monthly_budget,
        savings_goal=app.default_savings_goal,
    )
    local = LocalTransactionStorage(
        LocalDocumentStore(
            medium if medium is not None else FileDocumentMedium(local_config.data_dir),
            key=local_config.document_key,
            default_settings=defaults,
        )
    )

    remote = None
    if use_remote:
        try:
            remote = GoogleSheetsTransactionStorage(
                identity_provider,
                GoogleSheetsClient(settings.google_sheets),
            )
        except Exception as e:
            # Remote not configured - signed-in users stay on local storage
            logger.warning("remote_storage_not_configured", error=str(e))

    return SessionCoordinator(
        identity_provider,
        local,
        remote,
        validator=TransactionValidator(app),
        event_logger=EventLogger(),
        identity_timeout_seconds=app.identity_timeout_seconds,
        default_settings=defaults,
    )
