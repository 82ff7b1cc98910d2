"""
Local Document Storage

All transactions and settings for a device live in ONE JSON document
stored under a single key ("pocketwatch_data" by default).

DESIGN DECISION: The local store never raises to its caller.
- Missing document       -> default document
- Corrupt document       -> default document (the bad copy is overwritten on next write)
- No persistence medium  -> default document, writes are dropped

A dropped write is still reported: mutations return None (or False for
delete) when the document could not be saved, so callers never claim a
change that the next read will not see.

TRADEOFFS:
- Every operation is a full read-modify-write of the document
- No locking: two processes writing the same document, last writer wins
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from pocketwatch.models.session import StorageBackend
from pocketwatch.models.transaction import (
    BudgetSettings,
    LocalDocument,
    SettingsPatch,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    apply_patch,
    merge_settings,
    resolve_created_at,
)
from pocketwatch.services.storage.interface import (
    PersistenceUnavailableError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)

DEFAULT_DOCUMENT_KEY = "pocketwatch_data"


# =============================================================================
# PERSISTENCE MEDIA
# =============================================================================

class DocumentMedium(ABC):
    """A string key-value medium, the device-storage analogue."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass


class FileDocumentMedium(DocumentMedium):
    """Stores each key as <directory>/<key>.json."""

    def __init__(self, directory: Path):
        self._directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceUnavailableError(f"Cannot read {path}: {e}")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            # Write then rename so a crash never leaves half a document
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot write {path}: {e}")


class MemoryDocumentMedium(DocumentMedium):
    """Keeps documents in process memory. Lost when the process exits."""

    def __init__(self, items: Optional[dict[str, str]] = None):
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


# =============================================================================
# SYNCHRONOUS DOCUMENT STORE
# =============================================================================

class LocalDocumentStore:
    """
    Synchronous CRUD over the persisted document.

    Transactions are kept newest-first by insertion order, not by date.
    """

    def __init__(
        self,
        medium: Optional[DocumentMedium],
        key: str = DEFAULT_DOCUMENT_KEY,
        default_settings: Optional[BudgetSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            medium: Where the document lives. None means no medium is
                    available (e.g. a non-interactive environment).
            key: Key of the document within the medium
            default_settings: Settings used when none are persisted
            clock: Source of "now" for undated transactions
        """
        self._medium = medium
        self._key = key
        self._default_settings = default_settings or BudgetSettings()
        self._clock = clock

    def default_document(self) -> LocalDocument:
        return LocalDocument(settings=self._default_settings.model_copy())

    def read(self) -> LocalDocument:
        """Read the document, degrading to defaults on any problem."""
        if self._medium is None:
            return self.default_document()

        try:
            raw = self._medium.get_item(self._key)
        except PersistenceUnavailableError as e:
            logger.warning("local_read_failed", key=self._key, error=str(e))
            return self.default_document()

        if not raw:
            return self.default_document()

        try:
            return LocalDocument.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "local_document_corrupt",
                key=self._key,
                error_count=e.error_count(),
            )
            return self.default_document()

    def save(self, document: LocalDocument) -> bool:
        if self._medium is None:
            logger.warning("local_medium_unavailable", key=self._key)
            return False
        try:
            self._medium.set_item(self._key, document.model_dump_json(by_alias=True))
            return True
        except PersistenceUnavailableError as e:
            logger.error("local_write_failed", key=self._key, error=str(e))
            return False

    def transactions(self) -> list[Transaction]:
        return self.read().transactions

    def _generate_id(self, document: LocalDocument) -> str:
        # Millisecond timestamp, bumped past any id already taken
        taken = {t.id for t in document.transactions}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def create(self, data: TransactionCreate) -> Optional[Transaction]:
        """Assign id and created_at, prepend, persist. None if not saved."""
        document = self.read()
        fields = data.model_dump()
        fields["category"] = fields["category"] or "Other"
        transaction = Transaction.model_validate({
            **fields,
            "id": self._generate_id(document),
            "created_at": resolve_created_at(data.tx_date, self._clock()),
        })
        document.transactions.insert(0, transaction)
        if not self.save(document):
            return None
        return transaction

    def delete(self, transaction_id: str) -> bool:
        """Remove by id. Deleting an unknown id is a successful no-op."""
        document = self.read()
        document.transactions = [
            t for t in document.transactions if t.id != transaction_id
        ]
        return self.save(document)

    def update(self, transaction_id: str, patch: TransactionPatch) -> Optional[Transaction]:
        """Merge a patch by id. Nothing is written when the id is unknown."""
        document = self.read()
        for index, existing in enumerate(document.transactions):
            if existing.id == transaction_id:
                updated = apply_patch(existing, patch)
                document.transactions[index] = updated
                if not self.save(document):
                    return None
                return updated
        return None

    def read_settings(self) -> BudgetSettings:
        return self.read().settings

    def write_settings(self, patch: SettingsPatch) -> Optional[BudgetSettings]:
        document = self.read()
        document.settings = merge_settings(document.settings, patch)
        if not self.save(document):
            return None
        return document.settings


# =============================================================================
# ASYNC ADAPTER
# =============================================================================

class LocalTransactionStorage(TransactionStorageInterface):
    """Exposes the synchronous document store through the storage interface."""

    backend = StorageBackend.LOCAL

    def __init__(self, store: LocalDocumentStore):
        self._store = store

    @property
    def store(self) -> LocalDocumentStore:
        return self._store

    async def list_transactions(self) -> list[Transaction]:
        return self._store.transactions()

    async def create_transaction(self, data: TransactionCreate) -> Optional[Transaction]:
        return self._store.create(data)

    async def update_transaction(
        self,
        transaction_id: str,
        patch: TransactionPatch,
    ) -> Optional[Transaction]:
        return self._store.update(transaction_id, patch)

    async def delete_transaction(self, transaction_id: str) -> bool:
        return self._store.delete(transaction_id)

    async def read_settings(self) -> Optional[BudgetSettings]:
        return self._store.read_settings()

    async def write_settings(self, patch: SettingsPatch) -> Optional[BudgetSettings]:
        return self._store.write_settings(patch)
