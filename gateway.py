"""
gateway.py — The record store behind the app.
A tiny CRUD surface (list / create / update / delete per collection) plus
login state. Google Sheets is the hosted backend; the in-memory store keeps
the app usable offline and backs the tests.
"""

import copy
from contextlib import contextmanager
from typing import Callable, Optional

import gspread
import pandas as pd
import structlog
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from errors import GatewayError, NotAuthenticated
from models import COLLECTION_FIELDS

logger = structlog.get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


# ─────────────────────────────────────────────
# Auth
# ─────────────────────────────────────────────

class Auth:
    """Who is using the app right now. Listeners hear about every change."""

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id
        self._listeners: list[Callable[[Optional[str]], None]] = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def me(self) -> str:
        if not self._user_id:
            raise NotAuthenticated()
        return self._user_id

    def login(self, user_id: str) -> None:
        self._user_id = user_id
        logger.info("auth.login", user_id=user_id)
        self._notify()

    def logout(self) -> None:
        logger.info("auth.logout", user_id=self._user_id)
        self._user_id = None
        self._notify()

    def on_auth_state_changed(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        """Subscribe; the callback fires right away with the current user.
        Returns an unsubscribe function."""
        self._listeners.append(callback)
        callback(self._user_id)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self._user_id)


# ─────────────────────────────────────────────
# Store interface
# ─────────────────────────────────────────────

class Gateway:
    """
    where:    {field: value} equality filter
    order_by: {field: "asc" | "desc"}, applied in key order
    limit:    max rows returned
    Records are plain dicts keyed by the field names in models.COLLECTION_FIELDS.
    """

    def __init__(self, auth: Optional[Auth] = None):
        self.auth = auth or Auth()

    def list(self, collection: str, where: Optional[dict] = None,
             order_by: Optional[dict] = None, limit: Optional[int] = None) -> list[dict]:
        raise NotImplementedError

    def create(self, collection: str, record: dict) -> dict:
        raise NotImplementedError

    def update(self, collection: str, record_id: str, changes: dict) -> dict:
        raise NotImplementedError

    def delete(self, collection: str, record_id: str) -> None:
        raise NotImplementedError


def _check_collection(collection: str):
    if collection not in COLLECTION_FIELDS:
        raise GatewayError("access", collection, "unknown collection")


def _sort_key(value):
    # None sorts last ascending, first descending
    return (value is None or value == "", value if value is not None else "")


class InMemoryGateway(Gateway):
    def __init__(self, auth: Optional[Auth] = None):
        super().__init__(auth)
        self._tables: dict[str, list[dict]] = {name: [] for name in COLLECTION_FIELDS}

    def list(self, collection, where=None, order_by=None, limit=None):
        _check_collection(collection)
        rows = [
            r for r in self._tables[collection]
            if all(r.get(k) == v for k, v in (where or {}).items())
        ]
        # Stable sorts, least significant key first
        for key, direction in reversed(list((order_by or {}).items())):
            rows.sort(key=lambda r: _sort_key(r.get(key)), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def create(self, collection, record):
        _check_collection(collection)
        if not record.get("id"):
            raise GatewayError("create", collection, "record has no id")
        row = {name: record.get(name) for name in COLLECTION_FIELDS[collection]}
        self._tables[collection].append(row)
        logger.debug("gateway.create", collection=collection, record_id=row["id"])
        return copy.deepcopy(row)

    def update(self, collection, record_id, changes):
        _check_collection(collection)
        for row in self._tables[collection]:
            if row["id"] == record_id:
                row.update({k: v for k, v in changes.items() if k in row and k != "id"})
                logger.debug("gateway.update", collection=collection, record_id=record_id)
                return copy.deepcopy(row)
        raise GatewayError("update", collection, f"no record with id {record_id}")

    def delete(self, collection, record_id):
        _check_collection(collection)
        rows = self._tables[collection]
        for i, row in enumerate(rows):
            if row["id"] == record_id:
                del rows[i]
                logger.debug("gateway.delete", collection=collection, record_id=record_id)
                return
        raise GatewayError("delete", collection, f"no record with id {record_id}")


# ─────────────────────────────────────────────
# Google Sheets Backend
# ─────────────────────────────────────────────

def authorize(creds_dict: dict) -> gspread.Client:
    """Service-account login. Raises GatewayError on bad credentials."""
    try:
        creds = Credentials.from_service_account_info(creds_dict, scopes=SCOPES)
        return gspread.authorize(creds)
    except (GoogleAuthError, ValueError) as e:
        logger.exception("gateway.authorize_failed")
        raise GatewayError("connect to", "Google", str(e)) from e


def open_spreadsheet(client: gspread.Client, sheet_url: str = "", sheet_id: str = "",
                     title: str = "Lift Log Studio") -> gspread.Spreadsheet:
    try:
        if sheet_url:
            return client.open_by_url(sheet_url)
        elif sheet_id:
            return client.open_by_key(sheet_id)
        else:
            return client.open(title)
    except gspread.exceptions.GSpreadException as e:
        logger.exception("gateway.open_failed", sheet_url=sheet_url, sheet_id=sheet_id, title=title)
        raise GatewayError("open", "spreadsheet", str(e)) from e


def _cell(value):
    if value is None:
        return ""
    return value


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().upper() in ("TRUE", "1", "YES")
    return bool(value)


class SheetsGateway(Gateway):
    """One worksheet per collection, header row = field names, id in column A."""

    def __init__(self, spreadsheet: gspread.Spreadsheet, auth: Optional[Auth] = None):
        super().__init__(auth)
        self.spreadsheet = spreadsheet
        self._worksheets: dict[str, gspread.Worksheet] = {}

    @contextmanager
    def _guard(self, operation: str, collection: str):
        try:
            yield
        except (gspread.exceptions.GSpreadException, GoogleAuthError) as e:
            logger.exception("gateway.failed", operation=operation, collection=collection)
            raise GatewayError(operation, collection, str(e)) from e

    def ensure_worksheets(self):
        """Make sure every collection tab exists with its header row."""
        with self._guard("prepare", "worksheets"):
            existing = {ws.title: ws for ws in self.spreadsheet.worksheets()}
            for collection, headers in COLLECTION_FIELDS.items():
                if collection in existing:
                    self._worksheets[collection] = existing[collection]
                    continue
                ws = self.spreadsheet.add_worksheet(title=collection, rows=1000, cols=len(headers))
                ws.append_row(headers)
                self._worksheets[collection] = ws
                logger.info("gateway.worksheet_created", collection=collection)

    def _worksheet(self, collection: str) -> gspread.Worksheet:
        _check_collection(collection)
        if collection not in self._worksheets:
            self.ensure_worksheets()
        return self._worksheets[collection]

    def _frame(self, collection: str) -> pd.DataFrame:
        headers = COLLECTION_FIELDS[collection]
        records = self._worksheet(collection).get_all_records(expected_headers=headers)
        df = pd.DataFrame(records, columns=headers)
        # ids must compare as text even when a sheet numericised them
        for name in headers:
            if name == "id" or name.endswith("_id"):
                df[name] = df[name].astype(str)
        return df

    def list(self, collection, where=None, order_by=None, limit=None):
        with self._guard("list", collection):
            df = self._frame(collection)
        for key, value in (where or {}).items():
            if isinstance(value, bool):
                df = df[df[key].map(_truthy) == value]
            else:
                df = df[df[key].astype(str) == str(value)]
        if order_by:
            df = df.sort_values(
                by=list(order_by),
                ascending=[direction != "desc" for direction in order_by.values()],
                kind="stable",
            )
        if limit is not None:
            df = df.head(limit)
        return df.to_dict("records")

    def create(self, collection, record):
        if not record.get("id"):
            raise GatewayError("create", collection, "record has no id")
        headers = COLLECTION_FIELDS[collection]
        row = [_cell(record.get(name)) for name in headers]
        with self._guard("create", collection):
            self._worksheet(collection).append_row(row)
        logger.debug("gateway.create", collection=collection, record_id=record["id"])
        return dict(zip(headers, row))

    def _row_number(self, ws: gspread.Worksheet, collection: str, record_id: str, operation: str) -> int:
        cell = ws.find(str(record_id), in_column=1)
        if cell is None:
            raise GatewayError(operation, collection, f"no record with id {record_id}")
        return cell.row

    def update(self, collection, record_id, changes):
        headers = COLLECTION_FIELDS[collection]
        with self._guard("update", collection):
            ws = self._worksheet(collection)
            row_number = self._row_number(ws, collection, record_id, "update")
            current = ws.row_values(row_number)
            current += [""] * (len(headers) - len(current))
            record = dict(zip(headers, current))
            record.update({k: _cell(v) for k, v in changes.items() if k in record and k != "id"})
            ws.update(range_name=f"A{row_number}", values=[[record[name] for name in headers]])
        logger.debug("gateway.update", collection=collection, record_id=record_id)
        return record

    def delete(self, collection, record_id):
        with self._guard("delete", collection):
            ws = self._worksheet(collection)
            ws.delete_rows(self._row_number(ws, collection, record_id, "delete"))
        logger.debug("gateway.delete", collection=collection, record_id=record_id)
