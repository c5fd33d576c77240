"""
In-memory OAuth token store.

One ``TokenStore`` is created per application (``app.state.token_store``)
and handed to handlers through ``api.dependencies.get_token_store``.
Entries live for the lifetime of the process; there is no persistence
and no locking, so concurrent refreshes for the same user are
last-writer-wins.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from utils.schemas import TokenData

logger = logging.getLogger(__name__)


class TokenStore:
    def __init__(self):
        self._tokens: Dict[str, TokenData] = {}

    def get(self, user_id: str) -> Optional[TokenData]:
        return self._tokens.get(user_id)

    def set(self, user_id: str, token: TokenData) -> None:
        # Whole-record replacement; callers never patch individual fields.
        self._tokens[user_id] = token.model_copy()
        logger.debug("Stored token for user=%s", user_id)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
