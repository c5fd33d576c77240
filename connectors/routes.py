"""
OAuth API routes — code exchange, token refresh, config debug.

Route prefix: /oauth
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_token_store, get_user_id
from config.settings import config
from connectors.google import GoogleConnector
from connectors.token_manager import refresh_and_store
from connectors.token_store import TokenStore
from utils.errors import AuthError, GatewayError, MissingInputError, UpstreamError
from utils.schemas import OAuthCallbackRequest, OAuthRefreshRequest
from utils.validators import clean_secret

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])


def _connector_for(client_id: Any, client_secret: Any) -> GoogleConnector:
    """Body-supplied client credentials win over the configured app."""
    connector = GoogleConnector(clean_secret(client_id), clean_secret(client_secret))
    if not connector.is_configured():
        raise MissingInputError("Missing client_id or client_secret")
    return connector


@router.post("/callback")
async def oauth_callback(
    body: Optional[OAuthCallbackRequest] = None,
    store: TokenStore = Depends(get_token_store),
    user_id: str = Depends(get_user_id),
) -> Dict[str, Any]:
    """
    Exchange the authorization code the front-end received from Google
    for tokens, remember them for ``user_id`` and hand them back.
    """
    body = body or OAuthCallbackRequest()
    redirect_uri = body.redirect_uri or config.oauth_redirect_uri
    if not body.code or not redirect_uri:
        raise MissingInputError("Missing authorization code or redirect_uri")

    connector = _connector_for(body.client_id, body.client_secret)
    logger.info(
        "OAuth callback received: code=%s… redirect_uri=%s client_id=%s…",
        body.code[:20],
        redirect_uri,
        connector.client_id[:10],
    )

    try:
        token = await connector.exchange_code(body.code, redirect_uri)
    except Exception as exc:
        logger.error("OAuth exchange failed: %s", exc)
        debug = None
        if config.is_development and isinstance(exc, GatewayError):
            debug = exc.extra.get("response")
        raise UpstreamError("OAuth exchange failed", details=str(exc), debug=debug) from exc

    logger.info(
        "Tokens received: has_access_token=%s has_refresh_token=%s expires_at=%s",
        bool(token.access_token),
        bool(token.refresh_token),
        token.expires_at,
    )
    store.set(user_id, token)
    return token.model_dump()


@router.post("/refresh")
async def oauth_refresh(
    body: Optional[OAuthRefreshRequest] = None,
    store: TokenStore = Depends(get_token_store),
    user_id: str = Depends(get_user_id),
) -> Dict[str, Any]:
    """Mint a new access token; the refresh token is kept unless Google rotates it."""
    body = body or OAuthRefreshRequest()
    if not body.refresh_token:
        raise MissingInputError("Refresh token missing")

    connector = _connector_for(body.client_id, body.client_secret)
    try:
        token = await refresh_and_store(store, connector, body.refresh_token, user_id)
    except Exception as exc:
        logger.error("Token refresh failed: %s", exc)
        raise AuthError(
            "Token refresh failed",
            requires_reauth=True,
            status_code=400,
            details=str(exc),
        ) from exc
    return token.model_dump()


@router.get("/debug")
async def oauth_debug() -> Dict[str, Any]:
    """Redacted view of the OAuth configuration."""
    connector = GoogleConnector()
    client_id = config.google_client_id
    client_secret = config.google_client_secret
    return {
        "provider": connector.provider_name,
        "scopes": connector.scopes,
        "client_id": f"{client_id[:20]}..." if client_id else "NOT_SET",
        "client_secret": f"SET (length: {len(client_secret)})" if client_secret else "NOT_SET",
        "spreadsheet_id": "SET" if config.spreadsheet_id else "NOT_SET",
        "environment": config.environment,
    }
