"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a hosted backend because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (last write wins)
- Limited query capabilities (we filter in Python)

Each collection is one worksheet. Every row holds one document:
[user_id, id, document_json]. The implementation follows the abstract
interface, so the registry and ledger never know they are talking to Sheets.
"""

import json
from typing import Any, Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from fintrack.config import GoogleSheetsSettings, get_settings
from fintrack.services.storage.interface import (
    ConnectionError,
    DocumentStore,
    DuplicateError,
    NotFoundError,
    StorageError,
    split_key,
)


DOCUMENT_COLUMNS = ["user_id", "id", "document_json"]
DOCUMENT_JSON_COLUMN = DOCUMENT_COLUMNS.index("document_json") + 1  # 1-based for gspread


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

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

    def worksheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet for a collection."""
        spreadsheet = self.get_spreadsheet()
        title = self._settings.sheet_for(collection)
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        return sheet


class GoogleSheetsDocumentStore(DocumentStore):
    """
    Google Sheets implementation of the document store.

    Documents are JSON-serialized into a single cell; user_id and id get
    their own columns so rows can be located without parsing JSON.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rows(self, collection: str) -> tuple[gspread.Worksheet, list[list[str]]]:
        """Worksheet plus its data rows (header excluded)."""
        sheet = self._client.worksheet(collection)
        return sheet, sheet.get_all_values()[1:]

    def _find_row(
        self,
        rows: list[list[str]],
        user_id: str,
        document_id: str,
    ) -> Optional[int]:
        """1-based sheet row number of a document, or None."""
        for idx, row in enumerate(rows, start=2):  # Row 1 is the header
            if len(row) >= 2 and row[0] == user_id and row[1] == document_id:
                return idx
        return None

    async def put(
        self,
        collection_key: str,
        value: dict[str, Any],
        new_id: Optional[str] = None,
    ) -> str:
        """Append a document row. Writes are not retried."""
        collection, user_id, _ = split_key(collection_key)
        document_id = new_id or uuid4().hex
        try:
            sheet, rows = self._rows(collection)
            if new_id and self._find_row(rows, user_id, new_id) is not None:
                raise DuplicateError(f"Document already exists: {collection_key}/{new_id}")
            sheet.append_row(
                [user_id, document_id, json.dumps(value)],
                value_input_option="RAW",
            )
            return document_id
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save document: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def get(self, collection_key: str) -> dict[str, dict[str, Any]]:
        """Read all of one user's documents in a collection."""
        collection, user_id, _ = split_key(collection_key)
        try:
            _, rows = self._rows(collection)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read documents: {e}")

        documents = {}
        for row in rows:
            if len(row) < 3 or row[0] != user_id or not row[1]:
                continue  # Skip other users and empty rows
            try:
                documents[row[1]] = json.loads(row[2])
            except json.JSONDecodeError:
                continue  # Skip malformed rows
        return documents

    async def patch(self, entity_key: str, partial: dict[str, Any]) -> None:
        """Merge fields into a document row."""
        collection, user_id, document_id = split_key(entity_key)
        if document_id is None:
            raise ValueError(f"Expected an entity key, got {entity_key!r}")
        try:
            sheet, rows = self._rows(collection)
            idx = self._find_row(rows, user_id, document_id)
            if idx is None:
                raise NotFoundError(f"Document not found: {entity_key}")

            document = json.loads(rows[idx - 2][2] or "{}")
            document.update(partial)
            sheet.update_cell(idx, DOCUMENT_JSON_COLUMN, json.dumps(document))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update document: {e}")

    async def delete(self, entity_key: str) -> bool:
        """Delete a document row."""
        collection, user_id, document_id = split_key(entity_key)
        if document_id is None:
            raise ValueError(f"Expected an entity key, got {entity_key!r}")
        try:
            sheet, rows = self._rows(collection)
            idx = self._find_row(rows, user_id, document_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete document: {e}")
