"""
Storage Services Package

Provides the storage interface and its two implementations: the on-device
document store and the identity-scoped Google Sheets store.
"""

from pocketwatch.services.storage.interface import (
    ConnectionError,
    PersistenceUnavailableError,
    StorageError,
    TransactionStorageInterface,
)
from pocketwatch.services.storage.local import (
    DEFAULT_DOCUMENT_KEY,
    DocumentMedium,
    FileDocumentMedium,
    LocalDocumentStore,
    LocalTransactionStorage,
    MemoryDocumentMedium,
)
from pocketwatch.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interface
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "PersistenceUnavailableError",
    "StorageError",
    # Local implementation
    "DEFAULT_DOCUMENT_KEY",
    "DocumentMedium",
    "FileDocumentMedium",
    "LocalDocumentStore",
    "LocalTransactionStorage",
    "MemoryDocumentMedium",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
]
