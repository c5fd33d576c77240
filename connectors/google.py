"""
GoogleConnector — OAuth2 code exchange and refresh-token grant for Google.

Client credentials default to the configured app, but the front-end may
supply its own (``client_id`` / ``client_secret`` in the request body).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from config.settings import config
from connectors.base import BaseConnector
from utils.errors import UpstreamError
from utils.schemas import TokenData, now_ms

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class GoogleConnector(BaseConnector):
    """OAuth2 connector for Google Sheets + Gmail."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.client_id = client_id or config.google_client_id
        self.client_secret = client_secret or config.google_client_secret
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def scopes(self) -> List[str]:
        return [
            "https://www.googleapis.com/auth/spreadsheets",
            "https://www.googleapis.com/auth/gmail.readonly",
        ]

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def exchange_code(self, code: str, redirect_uri: Optional[str]) -> TokenData:
        """Exchange auth code for tokens."""
        data = await self._token_request(
            {
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": redirect_uri or "",
                "grant_type": "authorization_code",
            }
        )
        return TokenData(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=self._expires_at(data),
            token_type=data.get("token_type") or "Bearer",
        )

    async def refresh_access_token(self, refresh_token: str) -> TokenData:
        """Use refresh token to get a new access token."""
        data = await self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )
        return TokenData(
            access_token=data["access_token"],
            # Google only returns a refresh_token when it rotates it
            refresh_token=data.get("refresh_token") or refresh_token,
            expires_at=self._expires_at(data),
            token_type=data.get("token_type") or "Bearer",
        )

    # ── internals ───────────────────────────────────────────────────────

    async def _token_request(self, form: Dict[str, str]) -> Dict[str, Any]:
        if self._http_client is not None:
            resp = await self._http_client.post(_GOOGLE_TOKEN_URL, data=form)
        else:
            async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
                resp = await client.post(_GOOGLE_TOKEN_URL, data=form)

        if resp.is_error:
            body = _safe_json(resp)
            message = body.get("error_description") or body.get("error") or resp.text
            logger.warning(
                "Google token endpoint returned %s (%s): %s",
                resp.status_code,
                form.get("grant_type"),
                message,
            )
            raise UpstreamError(
                str(message) or f"HTTP {resp.status_code}",
                upstream_status=resp.status_code,
                response=body or None,
            )
        return resp.json()

    @staticmethod
    def _expires_at(data: Dict[str, Any]) -> int:
        expires_in = data.get("expires_in") or config.default_token_lifetime_seconds
        return now_ms() + int(expires_in) * 1000


def _safe_json(resp: httpx.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
