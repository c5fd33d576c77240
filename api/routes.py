"""
REST API routes — direct Sheets / Gmail endpoints, block execution, health.

The direct endpoints and the ``google-sheets-crud`` / ``gmail_search_emails``
blocks share the functions in ``integrations``; only argument plumbing
and error wording differ.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_block_dispatcher, require_access_token
from blocks.dispatcher import BlockDispatcher
from config.settings import config
from integrations.gmail import gmail_service, search_messages
from integrations.google_api import translate_google_error
from integrations.google_sheets import (
    append_row,
    delete_row,
    read_rows,
    rows_to_records,
    sheets_service,
    update_row,
)
from utils.errors import GatewayError, MissingInputError
from utils.schemas import (
    AddEntryRequest,
    AuthorizedContext,
    BlockExecuteRequest,
    DeleteEntryRequest,
    GmailSearchRequest,
    UpdateEntryRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ENTRY_FIELDS = ["name", "email"]


def _spreadsheet_id() -> str:
    if not config.spreadsheet_id:
        raise GatewayError("Spreadsheet id is not configured")
    return config.spreadsheet_id


# ── Health ─────────────────────────────────────────────────────────────


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ── Google Sheets entries ──────────────────────────────────────────────


@router.post("/add-entry")
async def add_entry(
    body: Optional[AddEntryRequest] = None,
    ctx: AuthorizedContext = Depends(require_access_token),
) -> Dict[str, str]:
    """Append one row (``values``) to the configured sheet."""
    if body is None or body.values is None:
        raise MissingInputError("Missing values")
    spreadsheet_id = _spreadsheet_id()
    try:
        service = await sheets_service(ctx.access_token)
        await append_row(service, spreadsheet_id, body.values)
    except Exception as exc:
        logger.error("Add entry error: %s", exc)
        raise translate_google_error(exc, "Error adding entry") from exc
    return {"status": "success"}


@router.get("/get-entries")
async def get_entries(
    ctx: AuthorizedContext = Depends(require_access_token),
) -> Dict[str, List[Dict[str, Any]]]:
    """All non-blank rows as ``{id, fields: {name, email}}``."""
    spreadsheet_id = _spreadsheet_id()
    try:
        service = await sheets_service(ctx.access_token)
        rows = await read_rows(service, spreadsheet_id, config.entries_range)
    except Exception as exc:
        logger.error("Get entries error: %s", exc)
        raise translate_google_error(exc, "Failed to fetch entries") from exc
    return {"data": rows_to_records(rows, ENTRY_FIELDS)}


@router.put("/update-entry")
async def update_entry(
    body: Optional[UpdateEntryRequest] = None,
    ctx: AuthorizedContext = Depends(require_access_token),
) -> Dict[str, str]:
    if body is None or body.row_index is None or body.values is None:
        raise MissingInputError("Missing data")
    spreadsheet_id = _spreadsheet_id()
    try:
        service = await sheets_service(ctx.access_token)
        await update_row(service, spreadsheet_id, body.row_index, body.values)
    except Exception as exc:
        logger.error("Update entry error: %s", exc)
        raise translate_google_error(exc, "Error updating entry") from exc
    return {"status": "updated"}


@router.delete("/delete-entry")
async def delete_entry(
    body: Optional[DeleteEntryRequest] = None,
    ctx: AuthorizedContext = Depends(require_access_token),
) -> Dict[str, str]:
    if body is None or body.row_index is None:
        raise MissingInputError("Missing rowIndex")
    spreadsheet_id = _spreadsheet_id()
    try:
        service = await sheets_service(ctx.access_token)
        await delete_row(service, spreadsheet_id, body.row_index)
    except Exception as exc:
        logger.error("Delete entry error: %s", exc)
        raise translate_google_error(exc, "Error deleting entry") from exc
    return {"status": "deleted"}


# ── Gmail ──────────────────────────────────────────────────────────────


@router.post("/gmail/search")
async def gmail_search(
    body: Optional[GmailSearchRequest] = None,
    ctx: AuthorizedContext = Depends(require_access_token),
) -> Dict[str, List[Dict[str, Any]]]:
    if body is None or not body.query:
        raise MissingInputError("Search query missing")
    try:
        service = await gmail_service(ctx.access_token)
        records = await search_messages(service, body.query)
    except Exception as exc:
        logger.error("Gmail search error: %s", exc)
        raise translate_google_error(exc, "Error searching emails") from exc
    return {"records": records}


# ── Blocks ─────────────────────────────────────────────────────────────


@router.post("/block/execute")
async def execute_block(
    body: BlockExecuteRequest,
    dispatcher: BlockDispatcher = Depends(get_block_dispatcher),
) -> Any:
    """Generic ``blockId + operation`` entry point used by the front-end."""
    return await dispatcher.execute(
        body.block_id or "",
        body.operation or "",
        body.params,
        body.credentials,
    )


@router.get("/blocks")
async def list_blocks(
    dispatcher: BlockDispatcher = Depends(get_block_dispatcher),
) -> List[Dict[str, Any]]:
    return dispatcher.registry.list_blocks()
