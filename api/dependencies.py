"""
FastAPI dependencies (shared across routes).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request, Response

from blocks.dispatcher import BlockDispatcher
from config.settings import config
from connectors.base import BaseConnector
from connectors.google import GoogleConnector
from connectors.token_manager import (
    NEW_ACCESS_TOKEN_HEADER,
    TOKEN_REFRESHED_HEADER,
    authorize,
)
from connectors.token_store import TokenStore
from utils.schemas import AuthorizedContext

logger = logging.getLogger(__name__)


def get_token_store(request: Request) -> TokenStore:
    """The application-owned token store (see ``main.create_app``)."""
    return request.app.state.token_store


def get_block_dispatcher(request: Request) -> BlockDispatcher:
    return request.app.state.block_dispatcher


def get_google_connector() -> BaseConnector:
    return GoogleConnector()


async def get_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """
    Identify whose tokens this request uses.

    Falls back to the configured single-user id when the front-end does
    not send ``X-User-Id``.
    """
    user_id = (x_user_id or "").strip()
    return user_id or config.default_user_id


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Request body as a dict; empty / non-JSON / non-object bodies → {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def require_access_token(
    request: Request,
    response: Response,
    store: TokenStore = Depends(get_token_store),
    user_id: str = Depends(get_user_id),
    connector: BaseConnector = Depends(get_google_connector),
) -> AuthorizedContext:
    """
    Guard for protected routes: validate the access token, refresh it if
    it is about to expire and advertise the new one in response headers.
    """
    body = await read_json_body(request)
    ctx = await authorize(request.headers, body, store, user_id, connector)
    if ctx.refreshed:
        response.headers[NEW_ACCESS_TOKEN_HEADER] = ctx.access_token
        response.headers[TOKEN_REFRESHED_HEADER] = "true"
    return ctx
