"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the deployable storage backend because:
1. Non-technical family members can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for one household)
- No transactions (a batch is applied row by row)
- Limited query capabilities (we filter in Python)

Every document lives in one worksheet as a row of
(collection, id, updated_at, data_json). The implementation follows the
abstract interface, so we can swap to Firestore later without changing
budget logic.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Sequence

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from family_budget.config import get_settings
from family_budget.services.storage.interface import (
    BatchOperation,
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    QueryFilter,
    StorageError,
    resolve_server_timestamps,
    run_query,
)


# Column mappings for the Documents sheet
DOCUMENT_COLUMNS = [
    "collection",
    "id",
    "updated_at",
    "data_json",
]

_DATETIME_KEY = "$datetime"


def _encode(value: Any) -> Any:
    """Make a document JSON-safe, tagging datetimes so they round-trip."""
    if isinstance(value, datetime):
        return {_DATETIME_KEY: value.isoformat()}
    if isinstance(value, date):
        return {_DATETIME_KEY: datetime.combine(value, datetime.min.time()).isoformat()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_DATETIME_KEY}:
            return datetime.fromisoformat(value[_DATETIME_KEY])
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


def encode_document(data: dict) -> str:
    return json.dumps(_encode(data), ensure_ascii=False, sort_keys=True)


def decode_document(data_json: str) -> dict:
    return _decode(json.loads(data_json)) if data_json else {}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for the connection.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
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

    def get_documents_sheet(self) -> gspread.Worksheet:
        """Get or create the Documents worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.documents_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.documents_sheet_name,
                rows=5000,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Documents are stored one per row; the document body is JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _load_rows(self) -> list[list]:
        try:
            return self._client.get_documents_sheet().get_all_values()[1:]
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read documents: {e}")

    @staticmethod
    def _row_to_document(row: list) -> dict:
        data = decode_document(row[3] if len(row) > 3 else "")
        data["id"] = row[1]
        return data

    def _find_row(self, rows: list[list], collection: str, document_id: str) -> Optional[int]:
        """Return the 1-based sheet row number of a document."""
        for index, row in enumerate(rows):
            if len(row) > 1 and row[0] == collection and row[1] == document_id:
                return index + 2  # +1 for header, +1 for 1-indexing
        return None

    async def get_document(self, collection: str, document_id: str) -> Optional[dict]:
        for row in self._load_rows():
            if len(row) > 1 and row[0] == collection and row[1] == document_id:
                return self._row_to_document(row)
        return None

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        documents = [
            self._row_to_document(row)
            for row in self._load_rows()
            if len(row) > 1 and row[0] == collection
        ]
        return run_query(documents, filters, order_by, descending, limit)

    async def apply_batch(self, operations: Sequence[BatchOperation]) -> None:
        rows = self._load_rows()
        now = datetime.now()

        for op in operations:
            if op.kind == "update" and self._find_row(rows, op.collection, op.document_id) is None:
                raise NotFoundError(
                    f"Document not found: {op.collection}/{op.document_id}"
                )

        try:
            sheet = self._client.get_documents_sheet()
            deletions: list[int] = []

            for op in operations:
                row_number = self._find_row(rows, op.collection, op.document_id)
                if op.kind == "delete":
                    if row_number is not None:
                        deletions.append(row_number)
                    continue

                data = resolve_server_timestamps(op.data, now)
                data.pop("id", None)
                if row_number is not None and (op.kind == "update" or op.merge):
                    existing = self._row_to_document(rows[row_number - 2])
                    existing.pop("id", None)
                    data = {**existing, **data}

                row = [op.collection, op.document_id, now.isoformat(), encode_document(data)]
                if row_number is None:
                    sheet.append_row(row, value_input_option="RAW")
                    rows.append(row)
                else:
                    sheet.update(range_name=f"A{row_number}:D{row_number}", values=[row])
                    rows[row_number - 2] = row

            # Delete bottom-up so earlier row numbers stay valid
            for row_number in sorted(deletions, reverse=True):
                sheet.delete_rows(row_number)
        except (NotFoundError, ConnectionError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to apply batch: {e}")
