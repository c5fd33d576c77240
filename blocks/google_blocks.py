"""
Google Sheets + Gmail blocks — imperative, backed by ``integrations``.

Inputs
------
spreadsheetId : from params, else credentials, else settings
recordId      : zero-based row index (update / delete)
fieldKeys     : column names for fetch, in column order
valuesArray   : row values for create / update
query         : Gmail search string
"""

from __future__ import annotations

from typing import Any, Dict

from blocks.models import Block, BlockCredentials, imperative
from config.settings import config
from integrations.gmail import gmail_service, search_messages
from integrations.google_sheets import (
    append_row,
    delete_row,
    read_rows,
    rows_to_records,
    sheets_service,
    update_row,
)
from utils.errors import AuthError, MissingInputError


def _access_token(credentials: BlockCredentials) -> str:
    if not credentials.access_token:
        raise AuthError("Access token missing")
    return credentials.access_token


def _spreadsheet_id(inputs: Dict[str, Any]) -> str:
    spreadsheet_id = inputs.get("spreadsheetId") or config.spreadsheet_id
    if not spreadsheet_id:
        raise MissingInputError("Missing spreadsheetId")
    return spreadsheet_id


def _row_index(inputs: Dict[str, Any]) -> int:
    raw = inputs.get("recordId")
    if raw is None or isinstance(raw, bool):
        raise MissingInputError("Invalid or missing recordId")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise MissingInputError("Invalid or missing recordId") from None


async def _sheets(credentials: BlockCredentials) -> Any:
    return await sheets_service(
        _access_token(credentials), credentials.client_id, credentials.client_secret
    )


# ── Google Sheets ────────────────────────────────────────────────────────


@imperative("googlesheets", "GET")
async def sheets_fetch(credentials: BlockCredentials, inputs: Dict[str, Any]) -> Dict[str, Any]:
    spreadsheet_id = _spreadsheet_id(inputs)
    service = await _sheets(credentials)
    rows = await read_rows(service, spreadsheet_id, config.sheet_read_range)
    field_keys = inputs.get("fieldKeys") or []
    return {"data": rows_to_records(rows, field_keys, decode_json=True)}


@imperative("googlesheets", "POST")
async def sheets_create(credentials: BlockCredentials, inputs: Dict[str, Any]) -> Dict[str, Any]:
    spreadsheet_id = _spreadsheet_id(inputs)
    service = await _sheets(credentials)
    await append_row(service, spreadsheet_id, inputs.get("valuesArray") or [])
    return {"status": "success"}


@imperative("googlesheets", "PUT")
async def sheets_update(credentials: BlockCredentials, inputs: Dict[str, Any]) -> Dict[str, Any]:
    spreadsheet_id = _spreadsheet_id(inputs)
    row_index = _row_index(inputs)
    service = await _sheets(credentials)
    await update_row(service, spreadsheet_id, row_index, inputs.get("valuesArray") or [])
    return {"status": "updated"}


@imperative("googlesheets", "DELETE")
async def sheets_delete(credentials: BlockCredentials, inputs: Dict[str, Any]) -> Dict[str, Any]:
    spreadsheet_id = _spreadsheet_id(inputs)
    row_index = _row_index(inputs)
    service = await _sheets(credentials)
    await delete_row(service, spreadsheet_id, row_index)
    return {"status": "deleted"}


# ── Gmail ────────────────────────────────────────────────────────────────


@imperative("gmail", "POST")
async def gmail_search(credentials: BlockCredentials, inputs: Dict[str, Any]) -> Dict[str, Any]:
    query = inputs.get("query")
    if not query:
        raise MissingInputError("Search query missing")
    service = await gmail_service(
        _access_token(credentials), credentials.client_id, credentials.client_secret
    )
    return {"records": await search_messages(service, query)}


BLOCKS = [
    Block(
        block_id="gmail_search_emails",
        operations={"fetch": gmail_search},
    ),
    Block(
        block_id="google-sheets-crud",
        operations={
            "fetch": sheets_fetch,
            "create": sheets_create,
            "update": sheets_update,
            "delete": sheets_delete,
        },
    ),
]
