"""
Pydantic schemas for request bodies, tokens and records.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════════════
# OAuth tokens
# ═══════════════════════════════════════════════════════════════════════════════


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class TokenData(BaseModel):
    """
    OAuth2 token bundle as exchanged with the front-end.

    ``expires_at`` is epoch **milliseconds**; ``None`` means unknown.
    """

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: str = "Bearer"


class OAuthCallbackRequest(BaseModel):
    code: Optional[str] = None
    redirect_uri: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None


class OAuthRefreshRequest(BaseModel):
    refresh_token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None


class AuthorizedContext(BaseModel):
    """Outcome of a successful token check for one request."""

    user_id: str
    token: TokenData
    refreshed: bool = False

    @property
    def access_token(self) -> str:
        return self.token.access_token


# ═══════════════════════════════════════════════════════════════════════════════
# Direct endpoints
# ═══════════════════════════════════════════════════════════════════════════════


class AddEntryRequest(BaseModel):
    values: Optional[List[Any]] = None


class UpdateEntryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row_index: Optional[int] = Field(default=None, alias="rowIndex")
    values: Optional[List[Any]] = None


class DeleteEntryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row_index: Optional[int] = Field(default=None, alias="rowIndex")


class GmailSearchRequest(BaseModel):
    query: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Block execution
# ═══════════════════════════════════════════════════════════════════════════════


class BlockExecuteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    block_id: Optional[str] = Field(default=None, alias="blockId")
    operation: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)
    credentials: Dict[str, Any] = Field(default_factory=dict)
