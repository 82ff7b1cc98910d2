"""
Abstract Storage Interface

DESIGN DECISION: Both backends sit behind one interface.
This allows us to:
1. Pick the backend once per call, in the coordinator, instead of at every call site
2. Use in-memory media for testing
3. Keep aggregation and views decoupled from where records live

CONTRACT: implementations absorb their own failures. A failed read returns
an empty list or None, a failed write returns None or False. Exceptions
defined below are raised inside adapters and caught at their boundary;
they never reach the coordinator.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pocketwatch.models.session import StorageBackend
from pocketwatch.models.transaction import (
    BudgetSettings,
    SettingsPatch,
    Transaction,
    TransactionCreate,
    TransactionPatch,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction and settings storage.

    Any storage implementation (local document, Google Sheets, etc.)
    must implement these methods.
    """

    backend: StorageBackend

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        List every transaction visible to this store, newest first.

        Returns:
            The transactions, or an empty list if the store is unavailable
        """
        pass

    @abstractmethod
    async def create_transaction(self, data: TransactionCreate) -> Optional[Transaction]:
        """
        Store a new transaction.

        The store assigns the id and resolves created_at.

        Args:
            data: Validated input; category already resolved

        Returns:
            The stored record, or None if the write failed
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        patch: TransactionPatch,
    ) -> Optional[Transaction]:
        """
        Merge a patch into an existing transaction.

        Returns:
            The updated record, or None if not found or the write failed
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by id.

        Deleting an id that does not exist is not an error.

        Returns:
            False only if the store failed
        """
        pass

    @abstractmethod
    async def read_settings(self) -> Optional[BudgetSettings]:
        """
        Read the budget settings.

        Returns:
            The settings, or None if this store has none yet
        """
        pass

    @abstractmethod
    async def write_settings(self, patch: SettingsPatch) -> Optional[BudgetSettings]:
        """
        Merge and persist settings.

        Returns:
            The merged settings, or None if the write failed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class PersistenceUnavailableError(StorageError):
    """The local persistence medium is missing or cannot be used."""
    pass
