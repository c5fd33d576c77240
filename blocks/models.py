"""
Block catalog types.

An operation is a tagged union on ``kind``:

* ``DeclarativeOperation`` — URL / header / payload builders plus
  metadata; the dispatcher performs the HTTP call itself.
* ``ImperativeOperation`` — an async ``execute(credentials, inputs)``
  with full control over the third-party call.

Builders never see the raw request; they receive the normalised
``inputs`` dict, the block ``config`` and ``BlockCredentials``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Any, Awaitable, Callable, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.validators import clean_secret

# snake_case first, then the camelCase spellings the front-end sends
_CREDENTIAL_KEYS: Dict[str, Tuple[str, ...]] = {
    "client_id": ("client_id", "clientId"),
    "client_secret": ("client_secret", "clientSecret", "secretId"),
    "access_token": ("access_token", "accessToken"),
    "api_key": ("api_key", "apiKey"),
    "spreadsheet_id": ("spreadsheet_id", "spreadsheetId"),
}


class BlockCredentials(BaseModel):
    """Credentials supplied with a block call, key variants folded together."""

    model_config = ConfigDict(frozen=True)

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    access_token: Optional[str] = None
    api_key: Optional[str] = None
    spreadsheet_id: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Optional[Mapping[str, Any]]) -> "BlockCredentials":
        raw = raw or {}
        values: Dict[str, Optional[str]] = {}
        for field, keys in _CREDENTIAL_KEYS.items():
            for key in keys:
                value = clean_secret(raw.get(key))
                if value:
                    values[field] = value
                    break
        return cls(**values)


class DeclarativeOperation(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["declarative"] = "declarative"
    service: str
    method: str
    build_url: Callable[[Dict[str, Any], Mapping[str, Any]], str]
    build_headers: Callable[[BlockCredentials], Dict[str, str]]
    build_payload: Optional[Callable[[Dict[str, Any]], Any]] = None
    required_fields: Tuple[str, ...] = ()
    response_field: Optional[str] = None
    transform: Optional[Callable[[Any], Any]] = None


class ImperativeOperation(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["imperative"] = "imperative"
    service: str
    method: str
    execute: Callable[[BlockCredentials, Dict[str, Any]], Awaitable[Any]]


Operation = Annotated[
    Union[DeclarativeOperation, ImperativeOperation],
    Field(discriminator="kind"),
]


class Block(BaseModel):
    """A named integration target and its operations; read-only once built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    block_id: str
    operations: Mapping[str, Operation]
    config: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("operations", "config", mode="after")
    @classmethod
    def freeze_mappings(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))


def imperative(service: str, method: str) -> Callable:
    """
    Decorator that wraps an async handler into an ``ImperativeOperation``.

    Usage:
        @imperative("googlesheets", "GET")
        async def sheets_fetch(credentials, inputs):
            ...
    """

    def decorator(func: Callable[[BlockCredentials, Dict[str, Any]], Awaitable[Any]]) -> ImperativeOperation:
        return ImperativeOperation(service=service, method=method, execute=func)

    return decorator
