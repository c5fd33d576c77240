"""
BaseConnector — abstract interface for OAuth2 token providers.

A connector knows how to turn an authorization code into tokens and how
to mint a new access token from a refresh token.  Everything else
(storage, expiry checks, HTTP surface) lives outside the connector.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from utils.schemas import TokenData


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug, e.g. 'google'."""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes the front-end is expected to request."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    async def exchange_code(self, code: str, redirect_uri: Optional[str]) -> TokenData:
        """
        Exchange the authorization code for tokens.

        Parameters
        ----------
        code : str
            Authorization code from the OAuth redirect.
        redirect_uri : str
            Must match the redirect URI used to obtain the code.

        Returns
        -------
        TokenData with ``expires_at`` in epoch milliseconds.
        """
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> TokenData:
        """
        Refresh an expired access token.

        The returned ``refresh_token`` is the rotated one when the provider
        issued a new token, otherwise the one passed in.
        """
        ...

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """Return True if client id / secret are available."""
        return True
