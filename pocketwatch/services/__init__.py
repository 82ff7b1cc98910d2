"""Services package."""

from pocketwatch.services.identity import (
    IdentityError,
    IdentityProviderInterface,
    InMemoryIdentityProvider,
)
from pocketwatch.services.storage import (
    ConnectionError,
    FileDocumentMedium,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    LocalDocumentStore,
    LocalTransactionStorage,
    MemoryDocumentMedium,
    PersistenceUnavailableError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    # Identity services
    "IdentityError",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    # Storage services
    "ConnectionError",
    "FileDocumentMedium",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
    "LocalDocumentStore",
    "LocalTransactionStorage",
    "MemoryDocumentMedium",
    "PersistenceUnavailableError",
    "StorageError",
    "TransactionStorageInterface",
]
