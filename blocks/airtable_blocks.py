"""
Airtable record CRUD — purely declarative, executed by the dispatcher.

Docs: https://airtable.com/developers/web/api/introduction
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from blocks.models import Block, BlockCredentials, DeclarativeOperation
from config.settings import config


def _table_url(inputs: Dict[str, Any], block_config: Mapping[str, Any]) -> str:
    return f"{block_config['base_url']}/{inputs['baseId']}/{inputs['tableName']}"


def _record_url(inputs: Dict[str, Any], block_config: Mapping[str, Any]) -> str:
    return f"{_table_url(inputs, block_config)}/{inputs['recordId']}"


def _auth_headers(credentials: BlockCredentials) -> Dict[str, str]:
    return {"Authorization": f"Bearer {credentials.api_key or ''}"}


def _json_headers(credentials: BlockCredentials) -> Dict[str, str]:
    return {**_auth_headers(credentials), "Content-Type": "application/json"}


def _fields_payload(inputs: Dict[str, Any]) -> Dict[str, Any]:
    return {"fields": dict(inputs.get("dataFields") or {})}


BLOCKS = [
    Block(
        block_id="airtable-crud",
        operations={
            "fetch": DeclarativeOperation(
                service="airtable",
                method="GET",
                build_url=_table_url,
                build_headers=_auth_headers,
                required_fields=("baseId", "tableName"),
                response_field="records",
            ),
            "create": DeclarativeOperation(
                service="airtable",
                method="POST",
                build_url=_table_url,
                build_headers=_json_headers,
                build_payload=_fields_payload,
                required_fields=("baseId", "tableName"),
            ),
            "update": DeclarativeOperation(
                service="airtable",
                method="PATCH",
                build_url=_record_url,
                build_headers=_json_headers,
                build_payload=_fields_payload,
                required_fields=("baseId", "tableName", "recordId"),
            ),
            "delete": DeclarativeOperation(
                service="airtable",
                method="DELETE",
                build_url=_record_url,
                build_headers=_auth_headers,
                required_fields=("baseId", "tableName", "recordId"),
            ),
        },
        config={"base_url": config.airtable_base_url.rstrip("/")},
    ),
]
