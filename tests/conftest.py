"""
Shared fixtures for PocketWatch tests.

No test touches the network: the Google Sheets store runs against an
in-memory worksheet fake, and identity comes from the in-process provider.
"""

from datetime import date
from decimal import Decimal

import pytest
from gspread.utils import a1_to_rowcol
from tenacity import wait_none

from pocketwatch.config.settings import AppSettings
from pocketwatch.coordinator import SessionCoordinator
from pocketwatch.models import (
    Identity,
    Transaction,
    TransactionType,
    resolve_created_at,
)
from pocketwatch.services.identity import InMemoryIdentityProvider
from pocketwatch.services.storage import (
    GoogleSheetsTransactionStorage,
    LocalDocumentStore,
    LocalTransactionStorage,
    MemoryDocumentMedium,
)
from pocketwatch.services.storage.google_sheets import SETTINGS_COLUMNS, TRANSACTION_COLUMNS
from pocketwatch.validation import TransactionValidator


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the remote store."""

    def __init__(self, header: list[str], rows=None):
        self.rows = [list(header)] + [list(row) for row in rows or []]
        self.fail = False
        self.calls = 0

    def _touch(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("sheets unavailable")

    def get_all_values(self):
        self._touch()
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self._touch()
        self.rows.append(list(row))

    def batch_update(self, data, value_input_option=None):
        self._touch()
        for item in data:
            row_number, _ = a1_to_rowcol(item["range"].split(":")[0])
            self.rows[row_number - 1] = list(item["values"][0])

    def delete_rows(self, index):
        self._touch()
        del self.rows[index - 1]

    @property
    def data_rows(self):
        return self.rows[1:]


class FakeSheetsClient:
    def __init__(self):
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)
        self.settings = FakeWorksheet(SETTINGS_COLUMNS)

    def get_transactions_sheet(self):
        return self.transactions

    def get_settings_sheet(self):
        return self.settings


def make_transaction(
    transaction_id: str,
    amount: str,
    tx_type: TransactionType = TransactionType.EXPENSE,
    category: str = "Other",
    day: date = date(2024, 3, 15),
    title: str = "Test",
) -> Transaction:
    return Transaction(
        id=transaction_id,
        title=title,
        amount=Decimal(amount),
        type=tx_type,
        category=category,
        tx_date=day,
        created_at=resolve_created_at(day),
    )


@pytest.fixture
def alice():
    return Identity(user_id="user-alice", email="alice@example.com")


@pytest.fixture
def identity_provider(alice):
    """Signed out, able to sign in as alice via "google"."""
    return InMemoryIdentityProvider({"google": alice})


@pytest.fixture
def medium():
    return MemoryDocumentMedium()


@pytest.fixture
def local_store(medium):
    return LocalDocumentStore(medium)


@pytest.fixture
def local_storage(local_store):
    return LocalTransactionStorage(local_store)


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture
def remote_storage(identity_provider, sheets_client):
    return GoogleSheetsTransactionStorage(
        identity_provider,
        sheets_client,
        max_attempts=1,
        retry_wait=wait_none(),
    )


@pytest.fixture
def app_settings():
    return AppSettings(_env_file=None)


@pytest.fixture
def validator(app_settings):
    return TransactionValidator(app_settings)


@pytest.fixture
def coordinator(identity_provider, local_storage, remote_storage, validator):
    return SessionCoordinator(
        identity_provider,
        local_storage,
        remote_storage,
        validator=validator,
        identity_timeout_seconds=0.2,
    )


@pytest.fixture
def make_tx():
    return make_transaction
