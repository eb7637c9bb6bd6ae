"""
Tests for the document stores.

The Google Sheets store runs against in-memory worksheet doubles; no real
API calls are made.
"""

from unittest.mock import MagicMock

import gspread
import pytest

from factories import run
from fintrack.config import GoogleSheetsSettings
from fintrack.services.storage import (
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    StorageError,
    collection_key,
    entity_key,
    split_key,
)
from fintrack.services.storage.google_sheets import DOCUMENT_COLUMNS


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the document store."""

    def __init__(self):
        self.rows = [list(DOCUMENT_COLUMNS)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


@pytest.fixture
def sheets():
    return {}


@pytest.fixture
def sheets_store(sheets):
    client = MagicMock(spec=GoogleSheetsClient)
    client.worksheet.side_effect = lambda collection: sheets.setdefault(collection, FakeWorksheet())
    return GoogleSheetsDocumentStore(client)


@pytest.fixture(params=["memory", "sheets"])
def any_store(request, sheets_store):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return sheets_store


class TestKeys:
    """Tests for key helpers."""

    def test_build_keys(self):
        assert collection_key("transactions", "u1") == "transactions/u1"
        assert entity_key("transactions", "u1", "t1") == "transactions/u1/t1"

    def test_split_keys(self):
        assert split_key("categories/u1") == ("categories", "u1", None)
        assert split_key("categories/u1/c1") == ("categories", "u1", "c1")

    @pytest.mark.parametrize("key", ["categories", "a/b/c/d", "categories//c1", ""])
    def test_malformed_keys(self, key):
        with pytest.raises(ValueError):
            split_key(key)


class TestDocumentStoreContract:
    """Behaviour every DocumentStore implementation shares."""

    def test_put_then_get(self, any_store):
        document_id = run(any_store.put("categories/u1", {"name": "Food"}))
        assert run(any_store.get("categories/u1")) == {document_id: {"name": "Food"}}

    def test_get_missing_collection_is_empty(self, any_store):
        assert run(any_store.get("categories/nobody")) == {}

    def test_put_with_explicit_id(self, any_store):
        assert run(any_store.put("audit/u1", {"a": 1}, new_id="e1")) == "e1"
        with pytest.raises(DuplicateError):
            run(any_store.put("audit/u1", {"a": 2}, new_id="e1"))

    def test_collections_scoped_by_user(self, any_store):
        run(any_store.put("categories/u1", {"name": "Food"}))
        run(any_store.put("categories/u2", {"name": "Rent"}))
        assert list(run(any_store.get("categories/u2")).values()) == [{"name": "Rent"}]

    def test_patch_merges(self, any_store):
        document_id = run(any_store.put("categories/u1", {"name": "Food", "color": "#fff"}))
        run(any_store.patch(f"categories/u1/{document_id}", {"color": "#000"}))
        assert run(any_store.get("categories/u1"))[document_id] == {"name": "Food", "color": "#000"}

    def test_patch_missing(self, any_store):
        with pytest.raises(NotFoundError):
            run(any_store.patch("categories/u1/missing", {"color": "#000"}))

    def test_delete(self, any_store):
        document_id = run(any_store.put("categories/u1", {"name": "Food"}))
        assert run(any_store.delete(f"categories/u1/{document_id}")) is True
        assert run(any_store.delete(f"categories/u1/{document_id}")) is False
        assert run(any_store.get("categories/u1")) == {}

    def test_entity_operations_need_entity_key(self, any_store):
        with pytest.raises(ValueError):
            run(any_store.delete("categories/u1"))


class TestInMemoryDocumentStore:
    """Tests specific to the in-memory store."""

    def test_returned_documents_are_copies(self):
        store = InMemoryDocumentStore()
        document = {"tags": ["a"]}
        document_id = run(store.put("categories/u1", document))
        document["tags"].append("b")

        fetched = run(store.get("categories/u1"))
        fetched[document_id]["tags"].append("c")
        assert run(store.get("categories/u1"))[document_id] == {"tags": ["a"]}


class TestGoogleSheetsDocumentStore:
    """Tests specific to the Sheets layout."""

    def test_row_layout(self, sheets_store, sheets):
        document_id = run(sheets_store.put("transactions/u1", {"amount": "10.00"}))
        assert sheets["transactions"].rows[1] == ["u1", document_id, '{"amount": "10.00"}']

    def test_malformed_rows_skipped(self, sheets_store, sheets):
        run(sheets_store.put("transactions/u1", {"amount": "10.00"}))
        sheets["transactions"].rows.append(["u1", "broken", "{not json"])
        sheets["transactions"].rows.append(["u1", "", ""])
        assert len(run(sheets_store.get("transactions/u1"))) == 1

    def test_write_failure_wrapped(self):
        client = MagicMock(spec=GoogleSheetsClient)
        worksheet = FakeWorksheet()
        worksheet.append_row = MagicMock(side_effect=RuntimeError("quota"))
        client.worksheet.return_value = worksheet
        store = GoogleSheetsDocumentStore(client)

        with pytest.raises(StorageError):
            run(store.put("transactions/u1", {"amount": "10.00"}))


class TestGoogleSheetsClient:
    """Tests for worksheet provisioning."""

    @pytest.fixture
    def settings(self, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        return GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-123",
            categories_sheet_name="Categorias",
        )

    def test_creates_missing_worksheet_with_header(self, settings):
        client = GoogleSheetsClient(settings)
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("Categorias")
        client._spreadsheet = spreadsheet

        sheet = client.worksheet("categories")

        spreadsheet.add_worksheet.assert_called_once_with(
            title="Categorias", rows=1000, cols=len(DOCUMENT_COLUMNS)
        )
        sheet.append_row.assert_called_once_with(DOCUMENT_COLUMNS)

    def test_reuses_existing_worksheet(self, settings):
        client = GoogleSheetsClient(settings)
        spreadsheet = MagicMock()
        client._spreadsheet = spreadsheet

        client.worksheet("transactions")

        spreadsheet.worksheet.assert_called_once_with("transactions")
        spreadsheet.add_worksheet.assert_not_called()
