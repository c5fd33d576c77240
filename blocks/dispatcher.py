"""
BlockDispatcher — resolves ``(block_id, operation)`` and runs it.

Resolution order
----------------
1. unknown block id      → BlockNotFoundError
2. unknown operation     → OperationNotFoundError
3. imperative operation  → ``await op.execute(credentials, inputs)``
4. declarative operation → required-field check, build URL / headers /
   payload, one HTTP call, ``response_field`` extraction, ``transform``

Nothing touches the network before steps 1, 2 and the required-field
check have passed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from blocks.models import Block, BlockCredentials, DeclarativeOperation
from blocks.registry import BlockRegistry
from config.settings import config
from integrations.google_api import translate_google_error
from utils.errors import GatewayError, MissingInputError, UpstreamError

logger = logging.getLogger(__name__)

# Keys that steer an operation rather than being row / record data.
_CONTROL_KEYS = frozenset(
    {
        "baseId",
        "tableName",
        "recordId",
        "spreadsheetId",
        "fieldKeys",
        "query",
        "dataFields",
        "fields",
        "valuesArray",
    }
)

_BODYLESS_METHODS = frozenset({"GET", "DELETE"})


def normalize_inputs(
    params: Optional[Mapping[str, Any]],
    credentials: BlockCredentials,
) -> Dict[str, Any]:
    """
    Build the ``inputs`` dict handed to builders and executors.

    * ``spreadsheetId`` falls back to the one carried by the credentials.
    * ``dataFields`` is ``params.dataFields``, else ``params.fields``,
      else every non-control param.
    * ``valuesArray`` is ``params.valuesArray``, else the values of
      ``dataFields`` in insertion order.

    ``params`` itself is never mutated.
    """
    params = dict(params or {})
    inputs = dict(params)

    if not inputs.get("spreadsheetId") and credentials.spreadsheet_id:
        inputs["spreadsheetId"] = credentials.spreadsheet_id

    data_fields = params.get("dataFields") or params.get("fields")
    if not data_fields:
        data_fields = {k: v for k, v in params.items() if k not in _CONTROL_KEYS}
    inputs["dataFields"] = data_fields

    values = params.get("valuesArray")
    if values is None:
        if isinstance(data_fields, Mapping):
            values = list(data_fields.values())
        elif isinstance(data_fields, (list, tuple)):
            values = list(data_fields)
        else:
            values = [data_fields]
    inputs["valuesArray"] = values
    return inputs


def missing_required_fields(op: DeclarativeOperation, inputs: Mapping[str, Any]) -> list[str]:
    """Required inputs that are absent, None or the empty string; 0 and False count as present."""
    return [f for f in op.required_fields if inputs.get(f) is None or inputs.get(f) == ""]


class BlockDispatcher:
    """Strategy-table executor over the frozen ``BlockRegistry``."""

    def __init__(
        self,
        registry: Optional[BlockRegistry] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.registry = registry or BlockRegistry()
        self._http_client = http_client

    async def execute(
        self,
        block_id: str,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        credentials: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Run one block operation and return its JSON-able result.

        Raises
        ------
        BlockNotFoundError, OperationNotFoundError, MissingInputError,
        AuthError, UpstreamError
        """
        block = self.registry.get_block(block_id)
        op = self.registry.get_operation(block_id, operation)

        creds = BlockCredentials.from_raw(credentials)
        inputs = normalize_inputs(params, creds)

        logger.info("Executing block=%s operation=%s (%s)", block_id, operation, op.kind)
        try:
            if op.kind == "imperative":
                return await op.execute(creds, inputs)
            return await self._run_declarative(block, op, creds, inputs)
        except GatewayError:
            raise
        except httpx.HTTPError as exc:
            logger.error("Block %s/%s HTTP failure: %s", block_id, operation, exc)
            raise UpstreamError(str(exc) or "Block execution failed") from exc
        except Exception as exc:
            logger.exception("Block execution error for %s/%s", block_id, operation)
            raise translate_google_error(exc, str(exc) or "Block execution failed") from exc

    async def _run_declarative(
        self,
        block: Block,
        op: DeclarativeOperation,
        credentials: BlockCredentials,
        inputs: Dict[str, Any],
    ) -> Any:
        missing = missing_required_fields(op, inputs)
        if missing:
            raise MissingInputError("Missing required fields", missing=missing)

        url = op.build_url(inputs, block.config)
        headers = op.build_headers(credentials)
        payload = op.build_payload(inputs) if op.build_payload else None

        method = op.method.upper()
        if method in _BODYLESS_METHODS and not payload:
            payload = None

        response = await self._send(method, url, headers, payload)

        if response.is_error:
            raise UpstreamError(
                _upstream_message(response),
                upstream_status=response.status_code,
            )

        out: Any = response.json() if response.content else None
        if op.response_field:
            out = out.get(op.response_field) if isinstance(out, Mapping) else None
        if op.transform:
            out = op.transform(out)
        return out

    async def _send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        payload: Any,
    ) -> httpx.Response:
        kwargs: Dict[str, Any] = {"headers": headers}
        if payload is not None:
            kwargs["json"] = payload

        if self._http_client is not None:
            return await self._http_client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
            return await client.request(method, url, **kwargs)


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort error text from a failed third-party response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        err = body.get("error")
        if isinstance(err, Mapping):
            return str(err.get("message") or err.get("type") or response.status_code)
        if err:
            return str(err)
    return f"Request failed with status code {response.status_code}"
