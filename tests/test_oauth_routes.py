"""
Tests for /oauth/callback, /oauth/refresh and /oauth/debug.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from blocks.registry import BlockRegistry
from config.settings import config
from connectors.google import GoogleConnector
from main import create_app
from utils.errors import UpstreamError


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(config, "google_client_id", "cfg-client.apps.googleusercontent.com")
    monkeypatch.setattr(config, "google_client_secret", "cfg-secret")
    BlockRegistry.reset()
    application = create_app()
    yield application
    BlockRegistry.reset()


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRefresh:
    def test_missing_refresh_token(self, client):
        resp = client.post("/oauth/refresh", json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Refresh token missing"}

    def test_refresh_keeps_refresh_token_and_stores(self, app, client):
        token_request = AsyncMock(return_value={"access_token": "at-2", "expires_in": 3599})
        with patch.object(GoogleConnector, "_token_request", token_request):
            resp = client.post(
                "/oauth/refresh",
                json={"refresh_token": "rt-1"},
                headers={"X-User-Id": "alice"},
            )

        assert resp.status_code == 200
        body = resp.json()
        assert body["access_token"] == "at-2"
        assert body["refresh_token"] == "rt-1"
        assert body["token_type"] == "Bearer"
        assert app.state.token_store.get("alice").access_token == "at-2"

        form = token_request.call_args.args[0]
        assert form["client_id"] == "cfg-client.apps.googleusercontent.com"
        assert form["grant_type"] == "refresh_token"

    def test_refresh_failure_requires_reauth(self, app, client):
        failure = AsyncMock(side_effect=UpstreamError("Token has been expired or revoked."))
        with patch.object(GoogleConnector, "_token_request", failure):
            resp = client.post("/oauth/refresh", json={"refresh_token": "rt-dead"})

        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Token refresh failed",
            "requiresReauth": True,
            "details": "Token has been expired or revoked.",
        }
        assert len(app.state.token_store) == 0


class TestCallback:
    def test_missing_code(self, client):
        resp = client.post("/oauth/callback", json={"redirect_uri": "http://localhost/cb"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing authorization code or redirect_uri"}

    def test_missing_client_credentials(self, client, monkeypatch):
        monkeypatch.setattr(config, "google_client_id", "")
        monkeypatch.setattr(config, "google_client_secret", "")
        resp = client.post(
            "/oauth/callback",
            json={"code": "4/abc", "redirect_uri": "http://localhost/cb", "client_secret": "\u200b"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing client_id or client_secret"}

    def test_success_cleans_body_credentials_and_stores(self, app, client):
        token_request = AsyncMock(
            return_value={"access_token": "at", "refresh_token": "rt", "expires_in": 3600}
        )
        with patch.object(GoogleConnector, "_token_request", token_request):
            resp = client.post(
                "/oauth/callback",
                json={
                    "code": "4/abc",
                    "redirect_uri": "http://localhost/cb",
                    "client_id": "\ufeffbody-client\u200b",
                    "client_secret": " body-secret ",
                },
            )

        assert resp.status_code == 200
        assert resp.json()["access_token"] == "at"
        form = token_request.call_args.args[0]
        assert form["client_id"] == "body-client"
        assert form["client_secret"] == "body-secret"
        assert form["code"] == "4/abc"
        assert form["redirect_uri"] == "http://localhost/cb"

        stored = app.state.token_store.get("default")
        assert stored.refresh_token == "rt"

    def test_exchange_failure(self, client):
        failure = AsyncMock(side_effect=UpstreamError("invalid_grant", response={"error": "invalid_grant"}))
        with patch.object(GoogleConnector, "_token_request", failure):
            resp = client.post(
                "/oauth/callback",
                json={"code": "4/used", "redirect_uri": "http://localhost/cb"},
            )

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "OAuth exchange failed"
        assert body["details"] == "invalid_grant"


class TestDebug:
    def test_debug_is_redacted(self, client, monkeypatch):
        monkeypatch.setattr(config, "spreadsheet_id", "")
        resp = client.get("/oauth/debug")
        assert resp.status_code == 200
        body = resp.json()
        assert body["client_id"] == "cfg-client.apps.goog..."
        assert body["client_secret"] == "SET (length: 10)"
        assert body["spreadsheet_id"] == "NOT_SET"
        assert body["provider"] == "google"
        assert "https://www.googleapis.com/auth/spreadsheets" in body["scopes"]
        assert "cfg-secret" not in resp.text
