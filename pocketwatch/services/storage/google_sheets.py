"""
Google Sheets Remote Storage

The remote store is a spreadsheet with two worksheets that act as tables:

    transactions(id, user_id, title, amount, category, type, notes, tx_date, created_at)
    settings(user_id, monthly_budget, savings_goal)      -- one row per user_id

Every operation is scoped to the identity currently signed in. With no
identity, operations return their empty/failure result and never touch
the network.

DESIGN DECISION: Field names are normalized at this boundary in BOTH
directions. Rows use the remote schema (notes, tx_date, created_at);
everything returned is a Transaction with the same shape the local store
produces (comment, date, created_at). Updates go through the same mapping
as creates, so no raw column name ever leaks to callers.

TRADEOFFS:
- No server-side filtering (we filter by user_id in Python)
- No transactions (a row is located, then written)
- Calls are blocking, so they run in a worker thread
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import Retrying, stop_after_attempt, wait_exponential

from pocketwatch.config import get_settings
from pocketwatch.config.settings import GoogleSheetsSettings
from pocketwatch.models.session import Identity, StorageBackend
from pocketwatch.models.transaction import (
    BudgetSettings,
    SettingsPatch,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    apply_patch,
    merge_settings,
    resolve_created_at,
)
from pocketwatch.services.identity import IdentityProviderInterface
from pocketwatch.services.storage.interface import (
    ConnectionError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)


# Column mappings for the transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "title",
    "amount",
    "category",
    "type",
    "notes",
    "tx_date",
    "created_at",
]

# Column mappings for the settings sheet
SETTINGS_COLUMNS = [
    "user_id",
    "monthly_budget",
    "savings_goal",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and lazily creates the worksheets.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=1000
        )

    def get_settings_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.settings_sheet_name, SETTINGS_COLUMNS, rows=100
        )


def _row_dict(row: list, columns: list[str]) -> dict[str, str]:
    """Map a row onto column names, padding missing trailing cells."""
    padded = list(row) + [""] * (len(columns) - len(row))
    return dict(zip(columns, padded))


def _parse_server_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Identity-scoped transaction storage on Google Sheets.

    Failures are logged and converted to empty/None/False results;
    nothing is raised to the caller.
    """

    backend = StorageBackend.REMOTE

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        client: Optional[GoogleSheetsClient] = None,
        max_attempts: int = 3,
        retry_wait: Any = None,
    ):
        self._identity_provider = identity_provider
        self._client = client or GoogleSheetsClient()
        self._retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            wait=retry_wait or wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        )

    async def _call(self, fn: Callable, *args) -> Any:
        """Run a blocking sheets call in a worker thread, with retries."""
        return await asyncio.to_thread(self._retrying, fn, *args)

    async def _identity(self, operation: str) -> Optional[Identity]:
        """The signed-in identity, or None. A failing provider counts as None."""
        try:
            identity = await self._identity_provider.get_current_identity()
        except Exception as e:
            logger.error("identity_lookup_failed", operation=operation, error=str(e))
            return None
        if identity is None:
            logger.info("remote_skipped_no_identity", operation=operation)
        return identity

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    def _row_to_transaction(self, row: dict[str, str]) -> Transaction:
        """Normalize a remote row into the local record shape."""
        tx_date = date.fromisoformat(row["tx_date"]) if row["tx_date"] else None
        server_created = _parse_server_time(row["created_at"])
        return Transaction(
            id=row["id"],
            title=row["title"],
            amount=Decimal(row["amount"]),
            type=row["type"],
            category=row["category"] or "Other",
            comment=row["notes"] or None,
            tx_date=tx_date,
            # The user's date wins over the insert time, same as locally
            created_at=resolve_created_at(tx_date) if tx_date else server_created,
        )

    def _transaction_to_row(
        self,
        transaction: Transaction,
        user_id: str,
        server_created: str,
    ) -> list[str]:
        return [
            transaction.id,
            user_id,
            transaction.title,
            str(transaction.amount),
            transaction.category.value,
            transaction.type.value,
            transaction.comment or "",
            transaction.tx_date.isoformat() if transaction.tx_date else "",
            server_created,
        ]

    def _owned_rows(self, user_id: str) -> list[tuple[int, dict[str, str]]]:
        """(sheet row number, row) for every row owned by user_id."""
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()
        owned = []
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if not row or not row[0]:
                continue
            record = _row_dict(row, TRANSACTION_COLUMNS)
            if record["user_id"] == user_id:
                owned.append((idx, record))
        return owned

    def _find_row(self, user_id: str, transaction_id: str) -> Optional[tuple[int, dict[str, str]]]:
        for idx, record in self._owned_rows(user_id):
            if record["id"] == transaction_id:
                return idx, record
        return None

    # -------------------------------------------------------------------------
    # Blocking operations (run via _call)
    # -------------------------------------------------------------------------

    def _fetch_transactions(self, user_id: str) -> list[Transaction]:
        records = []
        for _, record in self._owned_rows(user_id):
            try:
                records.append((
                    _parse_server_time(record["created_at"]),
                    self._row_to_transaction(record),
                ))
            except Exception as e:
                logger.warning("remote_row_skipped", row_id=record["id"], error=str(e))
        # Newest first by server-recorded creation time
        records.sort(key=lambda pair: pair[0], reverse=True)
        return [transaction for _, transaction in records]

    def _insert_transaction(self, user_id: str, data: TransactionCreate) -> Transaction:
        server_created = datetime.now(timezone.utc).isoformat()
        fields = data.model_dump()
        fields["category"] = fields["category"] or "Other"
        transaction = Transaction.model_validate({
            **fields,
            "id": uuid4().hex,
            "created_at": resolve_created_at(data.tx_date),
        })
        row = self._transaction_to_row(transaction, user_id, server_created)
        self._client.get_transactions_sheet().append_row(row, value_input_option="RAW")
        return self._row_to_transaction(_row_dict(row, TRANSACTION_COLUMNS))

    def _patch_transaction(
        self,
        user_id: str,
        transaction_id: str,
        patch: TransactionPatch,
    ) -> Optional[Transaction]:
        found = self._find_row(user_id, transaction_id)
        if found is None:
            return None
        idx, record = found
        updated = apply_patch(self._row_to_transaction(record), patch)
        server_created = record["created_at"]
        if record["tx_date"] and updated.tx_date is None:
            # Cleared date: pin the effective time so later reads agree
            server_created = updated.created_at.astimezone(timezone.utc).isoformat()
        row = self._transaction_to_row(updated, user_id, server_created)
        cell_range = f"{rowcol_to_a1(idx, 1)}:{rowcol_to_a1(idx, len(TRANSACTION_COLUMNS))}"
        self._client.get_transactions_sheet().batch_update(
            [{"range": cell_range, "values": [row]}],
            value_input_option="RAW",
        )
        return self._row_to_transaction(_row_dict(row, TRANSACTION_COLUMNS))

    def _remove_transaction(self, user_id: str, transaction_id: str) -> None:
        found = self._find_row(user_id, transaction_id)
        if found is not None:
            self._client.get_transactions_sheet().delete_rows(found[0])

    def _settings_row(self, user_id: str) -> Optional[tuple[int, dict[str, str]]]:
        sheet = self._client.get_settings_sheet()
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            record = _row_dict(row, SETTINGS_COLUMNS)
            if record["user_id"] == user_id:
                return idx, record
        return None

    def _fetch_settings(self, user_id: str) -> Optional[BudgetSettings]:
        found = self._settings_row(user_id)
        if found is None:
            return None
        return BudgetSettings.model_validate(found[1])

    def _upsert_settings(self, user_id: str, patch: SettingsPatch) -> BudgetSettings:
        found = self._settings_row(user_id)
        current = BudgetSettings.model_validate(found[1]) if found else BudgetSettings()
        merged = merge_settings(current, patch)
        row = [user_id, str(merged.monthly_budget), str(merged.savings_goal)]
        sheet = self._client.get_settings_sheet()
        if found is None:
            sheet.append_row(row, value_input_option="RAW")
        else:
            idx = found[0]
            cell_range = f"{rowcol_to_a1(idx, 1)}:{rowcol_to_a1(idx, len(SETTINGS_COLUMNS))}"
            sheet.batch_update(
                [{"range": cell_range, "values": [row]}],
                value_input_option="RAW",
            )
        return merged

    # -------------------------------------------------------------------------
    # Storage interface
    # -------------------------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        """List the identity's transactions, newest first."""
        identity = await self._identity("list")
        if identity is None:
            return []
        try:
            return await self._call(self._fetch_transactions, identity.user_id)
        except Exception as e:
            logger.error("remote_fetch_failed", user_id=identity.user_id, error=str(e))
            return []

    async def create_transaction(self, data: TransactionCreate) -> Optional[Transaction]:
        identity = await self._identity("create")
        if identity is None:
            return None
        try:
            return await self._call(self._insert_transaction, identity.user_id, data)
        except Exception as e:
            logger.error("remote_save_failed", user_id=identity.user_id, error=str(e))
            return None

    async def update_transaction(
        self,
        transaction_id: str,
        patch: TransactionPatch,
    ) -> Optional[Transaction]:
        identity = await self._identity("update")
        if identity is None:
            return None
        try:
            return await self._call(
                self._patch_transaction, identity.user_id, transaction_id, patch
            )
        except Exception as e:
            logger.error(
                "remote_update_failed",
                transaction_id=transaction_id,
                error=str(e),
            )
            return None

    async def delete_transaction(self, transaction_id: str) -> bool:
        identity = await self._identity("delete")
        if identity is None:
            return False
        try:
            await self._call(self._remove_transaction, identity.user_id, transaction_id)
            return True
        except Exception as e:
            logger.error(
                "remote_delete_failed",
                transaction_id=transaction_id,
                error=str(e),
            )
            return False

    async def read_settings(self) -> Optional[BudgetSettings]:
        """Settings row for the identity; None without identity or row."""
        identity = await self._identity("read_settings")
        if identity is None:
            return None
        try:
            return await self._call(self._fetch_settings, identity.user_id)
        except Exception as e:
            logger.error("remote_settings_fetch_failed", user_id=identity.user_id, error=str(e))
            return None

    async def write_settings(self, patch: SettingsPatch) -> Optional[BudgetSettings]:
        identity = await self._identity("write_settings")
        if identity is None:
            return None
        try:
            return await self._call(self._upsert_settings, identity.user_id, patch)
        except Exception as e:
            logger.error("remote_settings_save_failed", user_id=identity.user_id, error=str(e))
            return None
