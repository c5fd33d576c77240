"""
HTTP-level tests for the direct endpoints, block execution and health.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from googleapiclient.errors import HttpError
from unittest.mock import AsyncMock, MagicMock, patch

from api.dependencies import get_google_connector
from blocks.registry import BlockRegistry
from config.settings import config
from main import create_app
from utils.schemas import TokenData, now_ms

AUTH = {"Authorization": "Bearer at-valid"}


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(config, "spreadsheet_id", "sheet-123")
    BlockRegistry.reset()
    application = create_app()
    yield application
    BlockRegistry.reset()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def sheets():
    service = MagicMock()
    with patch("api.routes.sheets_service", new=AsyncMock(return_value=service)) as build:
        yield SimpleNamespace(service=service, build=build)


def _http_error(status: int) -> HttpError:
    return HttpError(SimpleNamespace(status=status, reason="error"), b"{}")


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["timestamp"]
        assert "X-Process-Time" in resp.headers


class TestSheetEntries:
    def test_add_entry(self, client, sheets):
        resp = client.post("/add-entry", json={"values": ["Alice", "a@x.com"]}, headers=AUTH)

        assert resp.status_code == 200
        assert resp.json() == {"status": "success"}
        sheets.build.assert_awaited_once_with("at-valid")
        append = sheets.service.spreadsheets.return_value.values.return_value.append
        append.assert_called_once_with(
            spreadsheetId="sheet-123",
            range=f"{config.sheet_name}!A1",
            valueInputOption="RAW",
            body={"values": [["Alice", "a@x.com"]]},
        )

    def test_add_entry_without_token(self, client, sheets):
        resp = client.post("/add-entry", json={"values": ["Alice"]})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Access token missing"}
        sheets.build.assert_not_awaited()

    def test_access_token_from_body(self, client, sheets):
        resp = client.post("/add-entry", json={"values": ["A"], "access_token": "body-token"})
        assert resp.status_code == 200
        sheets.build.assert_awaited_once_with("body-token")

    def test_non_string_body_token_is_json_401(self, client, sheets):
        resp = client.post("/add-entry", json={"values": ["A"], "access_token": 12345})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Access token missing"}
        sheets.build.assert_not_awaited()

    def test_add_entry_without_values(self, client, sheets):
        resp = client.post("/add-entry", json={}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing values"}

    def test_get_entries_filters_blank_rows(self, client, sheets):
        values = sheets.service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.return_value = {
            "values": [["Alice", "a@x.com"], ["", ""]]
        }

        resp = client.get("/get-entries", headers=AUTH)

        assert resp.status_code == 200
        assert resp.json() == {
            "data": [{"id": 0, "fields": {"name": "Alice", "email": "a@x.com"}}]
        }
        values.get.assert_called_once_with(
            spreadsheetId="sheet-123",
            range=f"{config.sheet_name}!{config.entries_range}",
        )

    def test_update_entry(self, client, sheets):
        resp = client.put(
            "/update-entry",
            json={"rowIndex": 1, "values": ["Bob", "b@x.com"]},
            headers=AUTH,
        )
        assert resp.status_code == 200
        assert resp.json() == {"status": "updated"}
        update = sheets.service.spreadsheets.return_value.values.return_value.update
        assert update.call_args.kwargs["range"] == f"{config.sheet_name}!A2"

    def test_update_entry_missing_data(self, client, sheets):
        resp = client.put("/update-entry", json={"values": ["x"]}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing data"}

    def test_delete_entry_targets_row_range(self, client, sheets):
        resp = client.request("DELETE", "/delete-entry", json={"rowIndex": 2}, headers=AUTH)

        assert resp.status_code == 200
        assert resp.json() == {"status": "deleted"}
        batch = sheets.service.spreadsheets.return_value.batchUpdate
        body = batch.call_args.kwargs["body"]
        rng = body["requests"][0]["deleteDimension"]["range"]
        assert (rng["startIndex"], rng["endIndex"]) == (2, 3)
        assert rng["dimension"] == "ROWS"

    def test_delete_entry_missing_row_index(self, client, sheets):
        resp = client.request("DELETE", "/delete-entry", json={}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing rowIndex"}

    def test_google_auth_failure_requires_reauth(self, client, sheets):
        values = sheets.service.spreadsheets.return_value.values.return_value
        values.append.return_value.execute.side_effect = _http_error(401)

        resp = client.post("/add-entry", json={"values": ["A"]}, headers=AUTH)

        assert resp.status_code == 401
        assert resp.json() == {"error": "Authentication failed", "requiresReauth": True}

    def test_other_google_failure_is_generic_500(self, client, sheets):
        values = sheets.service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.side_effect = _http_error(500)

        resp = client.get("/get-entries", headers=AUTH)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch entries"}


class TestGmailSearchRoute:
    def test_search(self, client):
        with patch(
            "api.routes.search_messages",
            new=AsyncMock(return_value=[{"id": "m1", "fields": {"Subject": "Hi"}}]),
        ) as search, patch("api.routes.gmail_service", new=AsyncMock(return_value="svc")):
            resp = client.post("/gmail/search", json={"query": "is:unread"}, headers=AUTH)

        assert resp.status_code == 200
        assert resp.json() == {"records": [{"id": "m1", "fields": {"Subject": "Hi"}}]}
        search.assert_awaited_once_with("svc", "is:unread")

    def test_search_without_query(self, client):
        resp = client.post("/gmail/search", json={}, headers=AUTH)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Search query missing"}


class TestTokenRefreshOnProtectedRoutes:
    def test_expired_token_is_refreshed_and_advertised(self, app, client, sheets):
        connector = MagicMock()
        connector.refresh_access_token = AsyncMock(
            return_value=TokenData(access_token="at-new", refresh_token="rt", expires_at=now_ms() + 3_600_000)
        )
        app.dependency_overrides[get_google_connector] = lambda: connector

        resp = client.post(
            "/add-entry",
            json={"values": ["A"], "expires_at": now_ms() - 1000},
            headers={"Authorization": "Bearer at-old", "X-Refresh-Token": "rt"},
        )

        assert resp.status_code == 200
        assert resp.headers["X-New-Access-Token"] == "at-new"
        assert resp.headers["X-Token-Refreshed"] == "true"
        sheets.build.assert_awaited_once_with("at-new")
        assert app.state.token_store.get("default").access_token == "at-new"

    def test_refresh_failure_requires_reauth(self, app, client, sheets):
        connector = MagicMock()
        connector.refresh_access_token = AsyncMock(side_effect=RuntimeError("invalid_grant"))
        values = sheets.service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.return_value = {"values": []}
        app.dependency_overrides[get_google_connector] = lambda: connector

        resp = client.get(
            "/get-entries",
            headers={"Authorization": "Bearer at-old", "X-Refresh-Token": "rt"},
        )
        # no expires_at known → no refresh attempted
        assert resp.status_code == 200

        app.state.token_store.set(
            "default", TokenData(access_token="at-old", refresh_token="rt", expires_at=now_ms() - 1)
        )
        resp = client.get("/get-entries", headers={"Authorization": "Bearer at-old"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Token refresh failed", "requiresReauth": True}

    def test_user_id_header_selects_store_entry(self, app, client, sheets):
        client.post(
            "/add-entry",
            json={"values": ["A"]},
            headers={**AUTH, "X-Refresh-Token": "rt-alice", "X-User-Id": "alice"},
        )
        store = app.state.token_store
        assert store.get("alice").refresh_token == "rt-alice"
        assert "default" not in store


class TestBlockExecuteRoute:
    def test_unknown_block_no_network(self, client):
        with patch("blocks.dispatcher.httpx.AsyncClient") as http_client:
            resp = client.post(
                "/block/execute",
                json={"blockId": "missing", "operation": "fetch", "params": {}, "credentials": {}},
            )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Block not found"}
        http_client.assert_not_called()

    def test_unknown_operation(self, client):
        resp = client.post("/block/execute", json={"blockId": "airtable-crud", "operation": "nuke"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Operation not found"}

    def test_missing_required_fields(self, client):
        with patch("blocks.dispatcher.httpx.AsyncClient") as http_client:
            resp = client.post(
                "/block/execute",
                json={
                    "blockId": "airtable-crud",
                    "operation": "fetch",
                    "params": {"baseId": "app1"},
                    "credentials": {"apiKey": "k"},
                },
            )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required fields"
        http_client.assert_not_called()

    def test_imperative_block(self, client):
        service = MagicMock()
        with patch("blocks.google_blocks.sheets_service", new=AsyncMock(return_value=service)):
            resp = client.post(
                "/block/execute",
                json={
                    "blockId": "google-sheets-crud",
                    "operation": "delete",
                    "params": {"recordId": "3"},
                    "credentials": {"accessToken": "tok", "spreadsheetId": "s-9"},
                },
            )
        assert resp.status_code == 200
        assert resp.json() == {"status": "deleted"}
        kwargs = service.spreadsheets.return_value.batchUpdate.call_args.kwargs
        assert kwargs["spreadsheetId"] == "s-9"
        rng = kwargs["body"]["requests"][0]["deleteDimension"]["range"]
        assert (rng["startIndex"], rng["endIndex"]) == (3, 4)

    def test_list_blocks(self, client):
        resp = client.get("/blocks")
        assert resp.status_code == 200
        ids = {b["blockId"] for b in resp.json()}
        assert ids == {"airtable-crud", "gmail_search_emails", "google-sheets-crud"}

    def test_malformed_body(self, client):
        resp = client.post("/block/execute", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"
