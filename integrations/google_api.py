"""
Shared plumbing for Google API clients.

``googleapiclient`` is synchronous: service discovery and every
``.execute()`` call are offloaded with ``asyncio.to_thread`` so they
never block the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config.settings import config
from utils.errors import AuthError, GatewayError, UpstreamError

logger = logging.getLogger(__name__)


def build_credentials(
    access_token: str,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
) -> Credentials:
    """Wrap a bare access token; refreshing is handled by the token manager."""
    return Credentials(
        token=access_token,
        client_id=client_id or config.google_client_id or None,
        client_secret=client_secret or config.google_client_secret or None,
    )


async def build_service(api: str, version: str, credentials: Credentials) -> Any:
    """Build a discovery-based Google API service in a worker thread."""
    return await asyncio.to_thread(
        build, api, version, credentials=credentials, cache_discovery=False
    )


async def execute(request: Any) -> Any:
    """Run ``request.execute()`` off the event loop."""
    return await asyncio.to_thread(request.execute)


def google_status(exc: BaseException) -> Optional[int]:
    """HTTP status of a Google client error, if it carries one."""
    if isinstance(exc, HttpError):
        status = getattr(exc, "status_code", None) or getattr(exc.resp, "status", None)
        try:
            return int(status) if status is not None else None
        except (TypeError, ValueError):
            return None
    code = getattr(exc, "code", None)
    return code if isinstance(code, int) else None


def translate_google_error(exc: BaseException, message: str) -> GatewayError:
    """
    Map a Google client failure onto the gateway error taxonomy.

    401/403 (and credential refresh failures) ask the front-end to
    re-authenticate; everything else is an upstream failure reported
    with ``message``.
    """
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, RefreshError) or google_status(exc) in (401, 403):
        return AuthError("Authentication failed", requires_reauth=True)
    return UpstreamError(message)
