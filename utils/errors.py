"""
Error taxonomy shared by the token layer, the block dispatcher and the
direct endpoints.

Every error carries the HTTP status it maps to and the extra JSON fields
the front-end relies on (``requiresReauth``, ``details``).  The handler
registered in ``api.middleware`` renders them as ``{"error": ..., ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base class — one failed request, never fatal to the process."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        **extra: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = {k: v for k, v in extra.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class MissingInputError(GatewayError):
    status_code = 400


class AuthError(GatewayError):
    status_code = 401

    def __init__(self, message: str, *, requires_reauth: bool = False, **extra: Any) -> None:
        if requires_reauth:
            extra["requiresReauth"] = True
        super().__init__(message, **extra)
        self.requires_reauth = requires_reauth


class BlockNotFoundError(GatewayError):
    status_code = 404

    def __init__(self, block_id: str) -> None:
        super().__init__("Block not found")
        self.block_id = block_id


class OperationNotFoundError(GatewayError):
    status_code = 404

    def __init__(self, block_id: str, operation: str) -> None:
        super().__init__("Operation not found")
        self.block_id = block_id
        self.operation = operation


class UpstreamError(GatewayError):
    """A third-party API (Google, Airtable, OAuth endpoint) call failed."""

    status_code = 500
