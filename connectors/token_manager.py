"""
Token manager — validate / refresh / store per-user OAuth tokens.

``authorize`` is the single entry point used before every protected
handler: it pulls the tokens out of the request, refreshes the access
token when it is about to expire, and records the result in the
``TokenStore`` that was passed in.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from config.settings import config
from connectors.base import BaseConnector
from connectors.token_store import TokenStore
from utils.errors import AuthError
from utils.schemas import AuthorizedContext, TokenData, now_ms

logger = logging.getLogger(__name__)

REFRESH_TOKEN_HEADER = "x-refresh-token"
NEW_ACCESS_TOKEN_HEADER = "X-New-Access-Token"
TOKEN_REFRESHED_HEADER = "X-Token-Refreshed"


def is_token_expired(
    token: TokenData,
    *,
    now: Optional[int] = None,
    buffer_seconds: Optional[int] = None,
) -> bool:
    """
    True if the token expires within the refresh buffer (5 min by default).

    A token without ``expires_at`` is never considered expired — there is
    nothing to compare against, so the upstream API gets to decide.
    """
    if not token.expires_at:
        return False
    if buffer_seconds is None:
        buffer_seconds = config.token_refresh_buffer_seconds
    current = now_ms() if now is None else now
    return current > token.expires_at - buffer_seconds * 1000


async def refresh_and_store(
    store: TokenStore,
    connector: BaseConnector,
    refresh_token: str,
    user_id: str,
) -> TokenData:
    """
    Mint a new access token and replace the user's stored token with it.

    Raises whatever the connector raises; the store is left untouched on
    failure.
    """
    logger.info("Attempting to refresh token for user %s", user_id)
    token = await connector.refresh_access_token(refresh_token)
    store.set(user_id, token)
    logger.info("Token refreshed successfully for user %s", user_id)
    return token


def _bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    auth = headers.get("authorization") or ""
    if auth.startswith("Bearer "):
        return auth[7:].strip() or None
    return None


def _token_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _as_epoch_ms(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


async def authorize(
    headers: Mapping[str, str],
    body: Mapping[str, Any],
    store: TokenStore,
    user_id: str,
    connector: BaseConnector,
) -> AuthorizedContext:
    """
    Resolve a usable access token for this request.

    Lookup order
    ------------
    access token  : ``Authorization: Bearer`` header → ``body.access_token``
    refresh token : ``X-Refresh-Token`` header → stored token → ``body.refresh_token``
    expires_at    : ``body.expires_at`` → stored token

    Raises
    ------
    AuthError
        No access token at all, or the refresh attempt failed
        (``requires_reauth=True``).
    """
    stored = store.get(user_id)

    access_token = _bearer_token(headers) or _token_str(body.get("access_token"))
    refresh_token = (
        headers.get(REFRESH_TOKEN_HEADER)
        or (stored.refresh_token if stored else None)
        or _token_str(body.get("refresh_token"))
    )
    expires_at = _as_epoch_ms(body.get("expires_at"))
    if expires_at is None and stored is not None:
        expires_at = stored.expires_at

    if not access_token:
        raise AuthError("Access token missing")

    token = TokenData(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
    )

    if refresh_token and is_token_expired(token):
        logger.info("Token expired for user %s, attempting refresh…", user_id)
        try:
            token = await refresh_and_store(store, connector, refresh_token, user_id)
        except Exception as exc:
            logger.warning("Token refresh failed for user %s: %s", user_id, exc)
            raise AuthError("Token refresh failed", requires_reauth=True) from exc
        return AuthorizedContext(user_id=user_id, token=token, refreshed=True)

    if refresh_token:
        store.set(user_id, token)

    return AuthorizedContext(user_id=user_id, token=token)
