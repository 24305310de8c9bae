"""Transport layer for reading and writing spreadsheet values.

Defines the Transport protocol and implementations:
- GoogleSheetsTransport: Production transport using Google Sheets API
- LocalFileTransport: Test transport reading from local golden files
"""

from __future__ import annotations

import copy
import json
import ssl
import urllib.parse
from abc import ABC, abstractmethod
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

import certifi
import httpx

from sheetwatch.exceptions import SheetwatchError

# API constants
API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_TIMEOUT = 60

Grid = list[list[Any]]


class TransportError(SheetwatchError):
    """Base exception for transport errors."""


class AuthenticationError(TransportError):
    """Raised when authentication fails (401/403)."""


class NotFoundError(TransportError):
    """Raised when the spreadsheet is not found (404)."""


class SheetNotFoundError(TransportError):
    """Raised when a sheet does not exist in the spreadsheet."""


class APIError(TransportError):
    """Raised when the API returns an error."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class Transport(ABC):
    """Abstract base class for spreadsheet value transport.

    Grids are lists of rows; rows may differ in length and trailing empty
    rows/cells may be missing.
    """

    @abstractmethod
    async def get_sheet_names(self, spreadsheet_id: str) -> list[str]:
        """Return sheet titles in spreadsheet order."""
        ...

    @abstractmethod
    async def get_values(self, spreadsheet_id: str, sheet_name: str) -> Grid:
        """Read all values of a sheet.

        Raises:
            SheetNotFoundError: If the sheet does not exist.
        """
        ...

    @abstractmethod
    async def add_sheet(
        self, spreadsheet_id: str, sheet_name: str, *, right_to_left: bool = False
    ) -> dict[str, Any]:
        """Create a new empty sheet and return the API reply."""
        ...

    @abstractmethod
    async def clear_values(self, spreadsheet_id: str, sheet_name: str) -> None:
        """Clear all values of a sheet."""
        ...

    @abstractmethod
    async def update_values(
        self, spreadsheet_id: str, sheet_name: str, values: Grid
    ) -> None:
        """Write values starting at A1, stored as-is (no parsing)."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class GoogleSheetsTransport(Transport):
    """Production transport that talks to the Google Sheets API.

    Handles authentication, SSL, and HTTP communication.
    """

    def __init__(
        self,
        access_token: str,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            access_token: OAuth2 access token with spreadsheets scope
            timeout: Request timeout in seconds
        """
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=ssl_context,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    async def get_sheet_names(self, spreadsheet_id: str) -> list[str]:
        """Fetch sheet titles from spreadsheet metadata."""
        url = f"{API_BASE}/{spreadsheet_id}"
        response = await self._request(
            "GET", url, params={"fields": "sheets.properties.title"}
        )
        return [
            sheet.get("properties", {}).get("title", "")
            for sheet in response.get("sheets", [])
        ]

    async def get_values(self, spreadsheet_id: str, sheet_name: str) -> Grid:
        """Read a sheet's values; empty sheets yield an empty grid."""
        url = _values_url(spreadsheet_id, sheet_name)
        response = await self._request("GET", url, sheet_name=sheet_name)
        values: Grid = response.get("values", [])
        return values

    async def add_sheet(
        self, spreadsheet_id: str, sheet_name: str, *, right_to_left: bool = False
    ) -> dict[str, Any]:
        """Add a sheet through a batchUpdate addSheet request."""
        url = f"{API_BASE}/{spreadsheet_id}:batchUpdate"
        body = {
            "requests": [
                {
                    "addSheet": {
                        "properties": {
                            "title": sheet_name,
                            "rightToLeft": right_to_left,
                        }
                    }
                }
            ]
        }
        return await self._request("POST", url, body=body)

    async def clear_values(self, spreadsheet_id: str, sheet_name: str) -> None:
        """Clear the sheet through values:batchClear."""
        url = f"{API_BASE}/{spreadsheet_id}/values:batchClear"
        body = {"ranges": [_escape_sheet_title(sheet_name)]}
        await self._request("POST", url, body=body, sheet_name=sheet_name)

    async def update_values(
        self, spreadsheet_id: str, sheet_name: str, values: Grid
    ) -> None:
        """Write values with valueInputOption=RAW."""
        url = _values_url(spreadsheet_id, sheet_name)
        body = {"range": _escape_sheet_title(sheet_name), "values": values}
        await self._request(
            "PUT",
            url,
            params={"valueInputOption": "RAW"},
            body=body,
            sheet_name=sheet_name,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
        sheet_name: str | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and map HTTP errors."""
        try:
            response = await self._client.request(method, url, params=params, json=body)
            response.raise_for_status()
            result: dict[str, Any] = response.json() if response.content else {}
            return result
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            text = e.response.text
            if status == 400 and sheet_name is not None and "Unable to parse range" in text:
                raise SheetNotFoundError(f"Sheet not found: {sheet_name}") from e
            if status == 401:
                raise AuthenticationError("Invalid or expired access token") from e
            if status == 403:
                raise AuthenticationError(
                    "Access denied. Check your scopes and permissions."
                ) from e
            if status == 404:
                raise NotFoundError(
                    "Spreadsheet not found. Check the ID and sharing permissions."
                ) from e
            raise APIError(f"API error ({status}): {text}", status_code=status) from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class LocalFileTransport(Transport):
    """Test transport that reads from local golden files.

    Expected directory structure:
        golden_dir/
            <spreadsheet_id>.json   {"sheets": {"<title>": [[...], ...], ...}}

    Spreadsheets are loaded lazily and kept in memory; writes only change
    the in-memory copy. Every mutating call is recorded in ``calls``.
    """

    def __init__(self, golden_dir: Path) -> None:
        """Initialize the transport.

        Args:
            golden_dir: Directory containing golden test files
        """
        self._golden_dir = golden_dir
        self._spreadsheets: dict[str, dict[str, Grid]] = {}
        self.calls: list[dict[str, Any]] = []

    def _load(self, spreadsheet_id: str) -> dict[str, Grid]:
        if spreadsheet_id not in self._spreadsheets:
            path = self._golden_dir / f"{spreadsheet_id}.json"
            if not path.exists():
                raise NotFoundError(f"Golden file not found: {path}")
            data = json.loads(path.read_text(encoding="utf-8"))
            self._spreadsheets[spreadsheet_id] = dict(data.get("sheets", {}))
        return self._spreadsheets[spreadsheet_id]

    def _sheet(self, spreadsheet_id: str, sheet_name: str) -> Grid:
        sheets = self._load(spreadsheet_id)
        if sheet_name not in sheets:
            raise SheetNotFoundError(f"Sheet not found: {sheet_name}")
        return sheets[sheet_name]

    async def get_sheet_names(self, spreadsheet_id: str) -> list[str]:
        """List sheet titles in file order."""
        return list(self._load(spreadsheet_id))

    async def get_values(self, spreadsheet_id: str, sheet_name: str) -> Grid:
        """Return a copy of the sheet's values."""
        return copy.deepcopy(self._sheet(spreadsheet_id, sheet_name))

    async def add_sheet(
        self, spreadsheet_id: str, sheet_name: str, *, right_to_left: bool = False
    ) -> dict[str, Any]:
        """Add an empty sheet to the in-memory spreadsheet."""
        sheets = self._load(spreadsheet_id)
        if sheet_name in sheets:
            raise APIError(
                f"A sheet with the name \"{sheet_name}\" already exists.",
                status_code=400,
            )
        sheets[sheet_name] = []
        self.calls.append(
            {
                "method": "add_sheet",
                "spreadsheet_id": spreadsheet_id,
                "sheet_name": sheet_name,
                "right_to_left": right_to_left,
            }
        )
        return {
            "replies": [
                {"addSheet": {"properties": {"title": sheet_name, "rightToLeft": right_to_left}}}
            ]
        }

    async def clear_values(self, spreadsheet_id: str, sheet_name: str) -> None:
        """Empty the sheet in memory."""
        self._sheet(spreadsheet_id, sheet_name)
        self._spreadsheets[spreadsheet_id][sheet_name] = []
        self.calls.append(
            {
                "method": "clear_values",
                "spreadsheet_id": spreadsheet_id,
                "sheet_name": sheet_name,
            }
        )

    async def update_values(
        self, spreadsheet_id: str, sheet_name: str, values: Grid
    ) -> None:
        """Replace the sheet's values in memory."""
        self._sheet(spreadsheet_id, sheet_name)
        self._spreadsheets[spreadsheet_id][sheet_name] = copy.deepcopy(values)
        self.calls.append(
            {
                "method": "update_values",
                "spreadsheet_id": spreadsheet_id,
                "sheet_name": sheet_name,
                "values": values,
            }
        )

    async def close(self) -> None:
        """No-op for local file transport."""
        pass


def _values_url(spreadsheet_id: str, sheet_name: str) -> str:
    escaped = urllib.parse.quote(_escape_sheet_title(sheet_name), safe="")
    return f"{API_BASE}/{spreadsheet_id}/values/{escaped}"


def _escape_sheet_title(title: str) -> str:
    """Quote a sheet title for use as an A1 range.

    Titles are always wrapped in single quotes, with embedded quotes
    doubled. Unquoted titles such as ``Day1`` would be read as cell
    references on the first sheet.
    """
    escaped = title.replace("'", "''")
    return f"'{escaped}'"
