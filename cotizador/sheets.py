"""
Google Sheets persistence for generated quotes.

A quote is written once and never updated. Two strategies, selected by
SHEETS_MODE:

    append  — one row appended to a fixed tab (SHEETS_APPEND_TAB)
    new_tab — a new tab per quote, header row + data row

Neither strategy retries nor rolls back: a failure after the tab is
created in new_tab mode leaves an empty tab behind. Saving the same
project twice writes it twice.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .errors import PersistenceError
from .schemas import Project

logger = logging.getLogger(__name__)

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
TOKEN_URI = "https://oauth2.googleapis.com/token"

QUOTE_HEADERS = [
    "timestamp",
    "projectId",
    "material",
    "medidas",
    "description",
    "pieces_count",
    "pieces_json",
    "status",
]
STATUS_PENDING = "Pendiente"


def _iso_timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _blank(value) -> str:
    return "" if value is None else str(value)


def build_quote_record(project: Project, now: Optional[datetime] = None) -> list:
    """One spreadsheet row, in QUOTE_HEADERS order."""
    now = now or datetime.now(timezone.utc)
    pieces = project.pieces or []
    return [
        _iso_timestamp(now),
        _blank(project.id),
        _blank(project.material),
        "%sx%sx%s" % (_blank(project.width), _blank(project.height), _blank(project.depth)),
        _blank(project.description),
        len(pieces),
        json.dumps(pieces, ensure_ascii=False),
        STATUS_PENDING,
    ]


def parse_pieces_json(value: str) -> List[dict]:
    """Inverse of the pieces_json column."""
    return json.loads(value) if value else []


def get_sheets_service(settings: Settings):
    if not settings.sheets_configured:
        raise PersistenceError(
            "Error al guardar en Google Sheets",
            details="Google Sheets credentials or GOOGLE_SHEET_ID not configured",
        )

    service_account_info = {
        "type": "service_account",
        "client_email": settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
        "private_key": settings.private_key,
        "token_uri": TOKEN_URI,
    }
    try:
        creds = Credentials.from_service_account_info(service_account_info, scopes=[SHEETS_SCOPE])
        return build("sheets", "v4", credentials=creds, cache_discovery=False)
    except Exception as exc:
        raise PersistenceError(
            "No se pudo autenticar con Google Sheets",
            details=str(exc),
        ) from exc


class QuoteWriter:
    """
    Writes one Quote Record to the spreadsheet and returns an acknowledgment
    (tab title or updated range).

    The Sheets client is built on first write so missing credentials only
    fail the save call, not the app.
    """

    def __init__(self, settings: Settings, service=None):
        self.settings = settings
        self._service = service

    @property
    def service(self):
        if self._service is None:
            self._service = get_sheets_service(self.settings)
        return self._service

    @property
    def spreadsheet_id(self) -> str:
        return self.settings.GOOGLE_SHEET_ID

    def write(self, record: list) -> str:
        try:
            return self._write(record)
        except PersistenceError:
            raise
        except HttpError as exc:
            logger.error("Sheets API error: %s", exc)
            raise PersistenceError("Error al guardar en Google Sheets", details=str(exc)) from exc
        except Exception as exc:
            logger.error("Sheets write failed: %s", exc)
            raise PersistenceError("Error al guardar en Google Sheets", details=str(exc)) from exc

    def _write(self, record: list) -> str:
        raise NotImplementedError


class AppendRowWriter(QuoteWriter):
    """Append the record as one row of the configured tab."""

    def _write(self, record: list) -> str:
        tab = self.settings.SHEETS_APPEND_TAB
        response = (
            self.service.spreadsheets()
            .values()
            .append(
                spreadsheetId=self.spreadsheet_id,
                range=f"{tab}!A:H",
                valueInputOption="USER_ENTERED",
                insertDataOption="INSERT_ROWS",
                body={"values": [record]},
            )
            .execute()
        )
        return (response or {}).get("updates", {}).get("updatedRange") or tab


class NewTabWriter(QuoteWriter):
    """Create a tab named after the save time and write header + record into it."""

    def __init__(self, settings: Settings, service=None, clock=None):
        super().__init__(settings, service)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _write(self, record: list) -> str:
        metadata = (
            self.service.spreadsheets()
            .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties.title")
            .execute()
        )
        existing = {
            sheet.get("properties", {}).get("title", "")
            for sheet in (metadata or {}).get("sheets", [])
        }
        title = _unique_title(tab_title(self._clock()), existing)

        (
            self.service.spreadsheets()
            .batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
            )
            .execute()
        )
        (
            self.service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{title}!A1:H2",
                valueInputOption="USER_ENTERED",
                body={"values": [QUOTE_HEADERS, record]},
            )
            .execute()
        )
        return title


def tab_title(now: datetime) -> str:
    """e.g. 'Presupuesto 2026-10-19 14:03:22' (UTC)."""
    return "Presupuesto " + now.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _unique_title(base: str, existing: set) -> str:
    # Two saves within the same second would otherwise collide on addSheet
    if base not in existing:
        return base
    n = 2
    while f"{base} ({n})" in existing:
        n += 1
    return f"{base} ({n})"


WRITERS = {
    "append": AppendRowWriter,
    "new_tab": NewTabWriter,
}


def make_writer(settings: Settings, service=None) -> QuoteWriter:
    mode = (settings.SHEETS_MODE or "new_tab").strip().lower()
    if mode not in WRITERS:
        raise PersistenceError(
            "Error al guardar en Google Sheets",
            details="Unknown SHEETS_MODE %r (expected one of: %s)" % (mode, ", ".join(sorted(WRITERS))),
        )
    return WRITERS[mode](settings, service=service)
