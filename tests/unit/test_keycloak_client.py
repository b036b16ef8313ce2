"""Tests for the low-level Keycloak HTTP client."""
from datetime import datetime, timedelta

import pytest
import requests

from admin_gateway.core.keycloak import client as client_module
from admin_gateway.core.keycloak import KeycloakAPIError, KeycloakClient, connect


class StubResponse:
    def __init__(self, status_code=200, payload=None, text="", url="http://kc/x"):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.url = url

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def token_calls(monkeypatch):
    calls = []

    def fake_post(url, data=None, timeout=None):
        calls.append({"url": url, "data": data, "timeout": timeout})
        return StubResponse(payload={"access_token": f"token-{len(calls)}", "expires_in": 300})

    monkeypatch.setattr(client_module.requests, "post", fake_post)
    return calls


def test_authenticate_password_posts_password_grant(token_calls):
    kc = KeycloakClient("http://kc/")
    token = kc.authenticate_password("master", "admin-cli", "", "admin", "secret")

    assert token == "token-1"
    assert kc.is_authenticated
    call = token_calls[0]
    assert call["url"] == "http://kc/realms/master/protocol/openid-connect/token"
    assert call["data"]["grant_type"] == "password"
    assert call["data"]["username"] == "admin"
    assert "client_secret" not in call["data"]
    assert call["timeout"] == client_module.REQUEST_TIMEOUT


def test_authenticate_password_sends_client_secret_when_set(token_calls):
    KeycloakClient("http://kc").authenticate_password("master", "gateway", "s3cr3t", "admin", "pw")
    assert token_calls[0]["data"]["client_secret"] == "s3cr3t"


def test_authenticate_rejected_raises_api_error(monkeypatch):
    monkeypatch.setattr(
        client_module.requests, "post",
        lambda url, data=None, timeout=None: StubResponse(401, text="invalid_grant"),
    )
    with pytest.raises(KeycloakAPIError) as exc:
        KeycloakClient("http://kc").authenticate_admin("admin", "wrong")
    assert exc.value.status_code == 401


def test_request_attaches_bearer_and_timeout(monkeypatch, token_calls):
    seen = {}

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        seen.update(method=method, url=url, headers=headers, timeout=timeout, kwargs=kwargs)
        return StubResponse(payload=[{"name": "demo"}])

    monkeypatch.setattr(client_module.requests, "request", fake_request)
    kc = KeycloakClient("http://kc")
    kc.authenticate_admin("admin", "admin")

    resp = kc.get("/admin/realms")

    assert resp.json() == [{"name": "demo"}]
    assert seen["method"] == "GET"
    assert seen["url"] == "http://kc/admin/realms"
    assert seen["headers"]["Authorization"] == "Bearer token-1"
    assert seen["timeout"] == client_module.REQUEST_TIMEOUT


def test_delete_forwards_json_body(monkeypatch, token_calls):
    seen = {}

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        seen.update(kwargs)
        return StubResponse(204)

    monkeypatch.setattr(client_module.requests, "request", fake_request)
    kc = KeycloakClient("http://kc")
    kc.authenticate_admin("admin", "admin")
    kc.delete("/admin/realms/demo/users/u1/role-mappings/realm", json=[{"id": "r", "name": "x"}])

    assert seen["json"] == [{"id": "r", "name": "x"}]


def test_error_status_uses_keycloak_error_message(monkeypatch, token_calls):
    monkeypatch.setattr(
        client_module.requests, "request",
        lambda *a, **k: StubResponse(409, payload={"errorMessage": "User exists with same username"}),
    )
    kc = KeycloakClient("http://kc")
    kc.authenticate_admin("admin", "admin")

    with pytest.raises(KeycloakAPIError) as exc:
        kc.post("/admin/realms/demo/users", json={"username": "alice"})

    assert exc.value.status_code == 409
    assert exc.value.message == "User exists with same username"


def test_transport_error_becomes_status_zero(monkeypatch, token_calls):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(client_module.requests, "request", boom)
    kc = KeycloakClient("http://kc")
    kc.authenticate_admin("admin", "admin")

    with pytest.raises(KeycloakAPIError) as exc:
        kc.get("/admin/realms")
    assert exc.value.status_code == 0


def test_request_without_authentication_fails():
    with pytest.raises(KeycloakAPIError) as exc:
        KeycloakClient("http://kc").get("/admin/realms")
    assert exc.value.status_code == 401


def test_token_refreshed_when_close_to_expiry(monkeypatch, token_calls):
    monkeypatch.setattr(client_module.requests, "request", lambda *a, **k: StubResponse(payload=[]))
    kc = KeycloakClient("http://kc")
    kc.authenticate_admin("admin", "admin")
    kc._token_expires_at = datetime.now() + timedelta(seconds=client_module.TOKEN_REFRESH_LEEWAY - 1)

    kc.get("/admin/realms")

    assert len(token_calls) == 2
    assert kc._token == "token-2"


def test_connect_returns_authenticated_client(token_calls):
    kc = connect("http://kc", "master", "admin-cli", "", "admin", "admin")
    assert kc.is_authenticated
    assert kc.base_url == "http://kc"
