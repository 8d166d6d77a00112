"""Google Sheets REST v4 backed store."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession, Request
from google.oauth2 import service_account

from ..errors import InputValidationError, UpstreamError, UpstreamTimeoutError, upstream_status
from ..logging import get_logger
from ..schema import CMS_SCHEMA, get_schema, last_column
from .base import TabularStore

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
SCOPES = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
)

HEADER_FORMAT = {
    "backgroundColor": {"red": 0.15, "green": 0.15, "blue": 0.15},
    "textFormat": {"bold": True, "foregroundColor": {"red": 1, "green": 1, "blue": 1}},
}


def decode_service_account_key(key: str) -> Dict[str, Any]:
    """Decode a base64 service-account JSON key into its credential mapping."""
    try:
        info = json.loads(base64.b64decode(key, validate=False).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise InputValidationError("Invalid service account JSON: could not decode base64") from exc
    if not isinstance(info, dict):
        raise InputValidationError("Invalid service account JSON: expected an object")
    if not info.get("client_email"):
        raise InputValidationError("Invalid service account JSON: no client_email found")
    return info


def credentials_from_key(key: str) -> service_account.Credentials:
    info = decode_service_account_key(key)
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=list(SCOPES))
    except ValueError as exc:
        raise InputValidationError(f"Invalid service account JSON: {exc}") from exc


def validate_credentials(key: str, *, request: Any | None = None) -> str:
    """Obtain an access token with ``key`` and return the service account e-mail."""
    credentials = credentials_from_key(key)
    try:
        credentials.refresh(request or Request())
    except GoogleAuthError as exc:
        raise UpstreamError(f"Google credentials rejected: {exc}") from exc
    return credentials.service_account_email


def a1_range(table: str, start: str, end: str | None = None) -> str:
    # Table names such as 0n_events need quoting in A1 notation.
    ref = f"'{table}'!{start}"
    return f"{ref}:{end}" if end else ref


class GoogleSheetsStore(TabularStore):
    """Reads and writes one spreadsheet through an authorized session."""

    def __init__(
        self,
        spreadsheet_id: str,
        session: Any,
        *,
        request_timeout: float = 30.0,
        base_url: str = SHEETS_API,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.session = session
        self.request_timeout = request_timeout
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("sheets")

    @classmethod
    def from_credentials_key(
        cls,
        credentials_key: str,
        spreadsheet_id: str,
        *,
        request_timeout: float = 30.0,
    ) -> "GoogleSheetsStore":
        if not credentials_key:
            raise InputValidationError("Missing googleKey")
        session = AuthorizedSession(credentials_from_key(credentials_key))
        return cls(spreadsheet_id, session, request_timeout=request_timeout)

    def read_values(self, table: str) -> List[List[str]]:
        get_schema(table)
        payload = self._call("GET", self._values_url(a1_range(table, "A", last_column(table))))
        return [[str(cell) for cell in row] for row in payload.get("values", [])]

    def append_values(self, table: str, rows: Sequence[Sequence[str]]) -> None:
        get_schema(table)
        url = self._values_url(a1_range(table, "A1")) + ":append"
        self._call(
            "POST",
            url,
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [list(row) for row in rows]},
        )

    def update_values(self, table: str, start_row: int, rows: Sequence[Sequence[str]]) -> None:
        get_schema(table)
        self._call(
            "PUT",
            self._values_url(a1_range(table, f"A{start_row}")),
            params={"valueInputOption": "RAW"},
            json={"values": [list(row) for row in rows]},
        )

    def clear_values(self, table: str, start_row: int, end_row: Optional[int] = None) -> None:
        get_schema(table)
        end = f"{last_column(table)}{end_row}" if end_row is not None else last_column(table)
        self._call("POST", self._values_url(a1_range(table, f"A{start_row}", end)) + ":clear")

    def create_spreadsheet(self, title: str) -> Dict[str, str]:
        names = list(CMS_SCHEMA)
        created = self._call(
            "POST",
            self.base_url,
            json={
                "properties": {"title": title},
                "sheets": [
                    {
                        "properties": {
                            "title": name,
                            "index": index,
                            "gridProperties": {"frozenRowCount": 1},
                        }
                    }
                    for index, name in enumerate(names)
                ],
            },
        )
        self.spreadsheet_id = created["spreadsheetId"]
        self._call(
            "POST",
            f"{self.base_url}/{self.spreadsheet_id}/values:batchUpdate",
            json={
                "valueInputOption": "RAW",
                "data": [
                    {"range": a1_range(name, "A1"), "values": [list(CMS_SCHEMA[name].columns)]}
                    for name in names
                ],
            },
        )
        sheet_ids = [
            sheet.get("properties", {}).get("sheetId")
            for sheet in created.get("sheets", [])
        ]
        requests_body = [
            {
                "repeatCell": {
                    "range": {"sheetId": sheet_id, "startRowIndex": 0, "endRowIndex": 1},
                    "cell": {"userEnteredFormat": HEADER_FORMAT},
                    "fields": "userEnteredFormat(backgroundColor,textFormat)",
                }
            }
            for sheet_id in sheet_ids
            if sheet_id is not None
        ]
        if requests_body:
            self._call(
                "POST",
                f"{self.base_url}/{self.spreadsheet_id}:batchUpdate",
                json={"requests": requests_body},
            )
        self.logger.info("Created spreadsheet %s with %d tabs", self.spreadsheet_id, len(names))
        return {
            "spreadsheetId": self.spreadsheet_id,
            "spreadsheetUrl": created.get("spreadsheetUrl", ""),
        }

    def _values_url(self, a1: str) -> str:
        if not self.spreadsheet_id:
            raise InputValidationError("Missing spreadsheetId")
        return f"{self.base_url}/{self.spreadsheet_id}/values/{quote(a1, safe='')}"

    def _call(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.request_timeout, **kwargs)
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(f"Google Sheets request timed out: {method} {url}") from exc
        except (requests.RequestException, GoogleAuthError) as exc:
            raise UpstreamError(f"Google Sheets request failed: {exc}") from exc
        if not response.ok:
            raise UpstreamError(
                _error_message(response),
                status_code=upstream_status(response.status_code),
            )
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Google Sheets returned a non-JSON response") from exc
        return payload if isinstance(payload, dict) else {}


def _error_message(response: Any) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
    return f"Google Sheets returned HTTP {response.status_code}"


__all__ = [
    "GoogleSheetsStore",
    "SCOPES",
    "a1_range",
    "credentials_from_key",
    "decode_service_account_key",
    "validate_credentials",
]
