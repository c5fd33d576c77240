"""
Gmail message search.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from config.settings import config
from integrations.google_api import build_credentials, build_service, execute

logger = logging.getLogger(__name__)

METADATA_HEADERS = ["From", "Subject", "Date"]


async def gmail_service(
    access_token: str,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> Any:
    creds = build_credentials(access_token, client_id, client_secret)
    return await build_service("gmail", "v1", creds)


def _message_record(msg: Dict[str, Any]) -> Dict[str, Any]:
    """Keep From / Subject / Date headers plus the snippet."""
    fields: Dict[str, Any] = {"Snippet": msg.get("snippet")}
    for header in msg.get("payload", {}).get("headers", []) or []:
        if header.get("name") in METADATA_HEADERS:
            fields[header["name"]] = header.get("value")
    return {"id": msg.get("id"), "fields": fields}


async def search_messages(
    service: Any,
    query: str,
    max_results: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Search Gmail with the regular search-bar syntax.

    Returns
    -------
    list of ``{"id", "fields": {From, Subject, Date, Snippet}}``
    """
    results = await execute(
        service.users()
        .messages()
        .list(userId="me", q=query, maxResults=max_results or config.gmail_max_results)
    )
    messages = results.get("messages", []) or []
    if not messages:
        return []

    async def _detail(meta: Dict[str, Any]) -> Dict[str, Any]:
        msg = await execute(
            service.users()
            .messages()
            .get(
                userId="me",
                id=meta["id"],
                format="metadata",
                metadataHeaders=METADATA_HEADERS,
            )
        )
        record = _message_record(msg)
        record["id"] = meta["id"]
        return record

    records = await asyncio.gather(*(_detail(m) for m in messages))
    logger.info("search_messages → query=%s  found=%d", query, len(records))
    return list(records)
