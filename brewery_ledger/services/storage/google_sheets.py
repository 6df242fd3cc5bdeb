"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the remote copy of the ledger
because:
1. The owner can open the ledger in a spreadsheet without the app
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Works from any device the service account credentials reach

Each of the four documents is one row of a worksheet:

    name | version | content_json | updated_at | change_description

TRADEOFFS:
- A cell holds at most 50,000 characters; a ledger with thousands of
  records will outgrow a single cell per collection
- No transactions: the version check and the write are two API calls,
  so a concurrent writer can slip in between them (single-user tool)
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from brewery_ledger.config import GoogleSheetsSettings, get_settings
from brewery_ledger.log import get_logger
from brewery_ledger.models.snapshot import CollectionName
from brewery_ledger.services.storage.interface import (
    ConflictError,
    ConnectionError,
    DocumentStoreInterface,
    StorageError,
    StoredDocument,
    content_version,
    serialize_content,
)


logger = get_logger(__name__)

# Column mappings for the documents sheet
DOCUMENT_COLUMNS = [
    "name",
    "version",
    "content_json",
    "updated_at",
    "change_description",
]


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
    
    def get_documents_sheet(self) -> gspread.Worksheet:
        """Get or create the documents worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.documents_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.documents_sheet_name,
                rows=10,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of ledger document storage.
    
    One row per document; the body is stored as JSON text.
    """
    
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
    
    def _find_row(
        self,
        sheet: gspread.Worksheet,
        name: CollectionName,
    ) -> tuple[Optional[int], Optional[list]]:
        """Return (1-based row index, row values) for a document, or (None, None)."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if row and row[0] == name.value:
                return idx, row
        return None, None
    
    def _document_to_row(
        self,
        name: CollectionName,
        text: str,
        change_description: str,
    ) -> list:
        return [
            name.value,
            content_version(text),
            text,
            datetime.now(timezone.utc).isoformat(),
            change_description,
        ]
    
    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read(self, name: CollectionName) -> tuple[Optional[int], Optional[list]]:
        sheet = self._client.get_documents_sheet()
        return self._find_row(sheet, name)
    
    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write(self, row_index: Optional[int], row: list) -> None:
        sheet = self._client.get_documents_sheet()
        if row_index is None:
            sheet.append_row(row, value_input_option="RAW")
        else:
            sheet.update(
                range_name=f"A{row_index}:E{row_index}",
                values=[row],
                value_input_option="RAW",
            )
    
    async def load(self, name: Union[CollectionName, str]) -> StoredDocument:
        """Read a document row and decode its JSON body."""
        name = CollectionName(name)
        try:
            _, row = self._read(name)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load {name.value}: {e}")
        
        if row is None or len(row) < 3 or not row[2]:
            return StoredDocument(name=name)
        
        try:
            content = json.loads(row[2])
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON in sheet row '{name.value}': {e}")
        
        return StoredDocument(
            name=name,
            content=content,
            version=row[1] or content_version(row[2]),
        )
    
    async def save(
        self,
        name: Union[CollectionName, str],
        content: Any,
        change_description: str,
        expected_version: Optional[str] = None,
    ) -> StoredDocument:
        """Write a document row, checking the stored version first."""
        name = CollectionName(name)
        text = serialize_content(content)
        try:
            row_index, current = self._read(name)
            current_version = current[1] if current and len(current) > 1 and current[1] else None
            if expected_version is not None and expected_version != current_version:
                raise ConflictError(name.value, expected_version, current_version)
            
            row = self._document_to_row(name, text, change_description)
            self._write(row_index, row)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {name.value}: {e}")
        
        logger.info(
            "sheet_document_saved",
            document=name.value,
            change=change_description,
        )
        return StoredDocument(
            name=name,
            content=content,
            version=content_version(text),
        )
