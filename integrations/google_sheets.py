"""
Google Sheets row CRUD.

Rows are addressed by a zero-based ``row_index`` as shown in the UI.
Writes land on sheet row ``row_index + 1`` (A1 notation is one-based);
deletes remove the dimension range ``[row_index, row_index + 1)``.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from config.settings import config
from integrations.google_api import build_credentials, build_service, execute

logger = logging.getLogger(__name__)


async def sheets_service(
    access_token: str,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> Any:
    creds = build_credentials(access_token, client_id, client_secret)
    return await build_service("sheets", "v4", creds)


def _a1(cell_range: str, sheet_name: Optional[str] = None) -> str:
    return f"{sheet_name or config.sheet_name}!{cell_range}"


async def append_row(
    service: Any,
    spreadsheet_id: str,
    values: Sequence[Any],
    *,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Append ``values`` as one new row after the last non-empty row."""
    result = await execute(
        service.spreadsheets()
        .values()
        .append(
            spreadsheetId=spreadsheet_id,
            range=_a1("A1", sheet_name),
            valueInputOption="RAW",
            body={"values": [list(values)]},
        )
    )
    logger.info("append_row → spreadsheet=%s cells=%d", spreadsheet_id, len(values))
    return result


async def read_rows(
    service: Any,
    spreadsheet_id: str,
    cell_range: str,
    *,
    sheet_name: Optional[str] = None,
) -> List[List[Any]]:
    result = await execute(
        service.spreadsheets()
        .values()
        .get(spreadsheetId=spreadsheet_id, range=_a1(cell_range, sheet_name))
    )
    return result.get("values", []) or []


async def update_row(
    service: Any,
    spreadsheet_id: str,
    row_index: int,
    values: Sequence[Any],
    *,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Overwrite the row starting at column A of sheet row ``row_index + 1``."""
    result = await execute(
        service.spreadsheets()
        .values()
        .update(
            spreadsheetId=spreadsheet_id,
            range=_a1(f"A{row_index + 1}", sheet_name),
            valueInputOption="RAW",
            body={"values": [list(values)]},
        )
    )
    logger.info("update_row → spreadsheet=%s row=%d", spreadsheet_id, row_index)
    return result


def delete_row_request(row_index: int, sheet_id: Optional[int] = None) -> Dict[str, Any]:
    """batchUpdate body removing exactly one row."""
    return {
        "requests": [
            {
                "deleteDimension": {
                    "range": {
                        "sheetId": config.sheet_id if sheet_id is None else sheet_id,
                        "dimension": "ROWS",
                        "startIndex": row_index,
                        "endIndex": row_index + 1,
                    }
                }
            }
        ]
    }


async def delete_row(
    service: Any,
    spreadsheet_id: str,
    row_index: int,
    *,
    sheet_id: Optional[int] = None,
) -> Dict[str, Any]:
    result = await execute(
        service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body=delete_row_request(row_index, sheet_id),
        )
    )
    logger.info("delete_row → spreadsheet=%s row=%d", spreadsheet_id, row_index)
    return result


def _is_blank_row(row: Sequence[Any]) -> bool:
    if not row:
        return True
    first = row[0]
    return first is None or str(first).strip() == ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite JSON literal: {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite JSON number: {text}")
    return value


def _decode_cell(cell: Any) -> Any:
    if not cell:
        return ""
    if not isinstance(cell, str):
        return cell
    try:
        return json.loads(cell, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError:
        return cell


def rows_to_records(
    rows: Sequence[Sequence[Any]],
    field_keys: Sequence[str],
    *,
    decode_json: bool = False,
) -> List[Dict[str, Any]]:
    """
    Turn raw sheet rows into ``{"id", "fields"}`` records.

    Rows whose first cell is blank are dropped before ids are assigned,
    so ``id`` is the position among the remaining rows.  With
    ``decode_json`` cells holding JSON literals (numbers, booleans,
    objects) are decoded; anything else is kept as text.
    """
    kept = [row for row in rows if not _is_blank_row(row)]
    records: List[Dict[str, Any]] = []
    for index, row in enumerate(kept):
        fields: Dict[str, Any] = {}
        for i, key in enumerate(field_keys):
            cell = row[i] if i < len(row) else None
            fields[key] = _decode_cell(cell) if decode_json else (cell or "")
        records.append({"id": index, "fields": fields})
    return records
