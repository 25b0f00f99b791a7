import base64
import hashlib
import hmac
import json
import re
from unittest.mock import AsyncMock
from urllib.parse import urlencode

import pytest
from fastapi import BackgroundTasks, Request
from httpx import AsyncClient, ASGITransport

from app.api.routes.deletion_callback import handle
from app.main import create_app
from app.services.callback import DeletionCallbackService
from app.services.signed_request import sign_request
from conftest import SECRET, FailingStore

def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")

def signed_for(user_id: str, secret: str = SECRET) -> str:
    payload = b64url(json.dumps({"user_id": user_id}).encode())
    sig = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()
    return f"{b64url(sig)}.{payload}"

@pytest.mark.asyncio
async def test_liveness(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.text

@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.json() == {"ok": True}

@pytest.mark.asyncio
async def test_end_to_end(client, store):
    await store.put_user("u1", {"name": "Ada"})

    r = await client.post("/fb-deletion-callback", data={"signed_request": signed_for("u1")})
    assert r.status_code == 200
    body = r.json()
    code = body["confirmation_code"]
    assert re.fullmatch(r"del_\d+_[a-z0-9]{6}", code)
    assert body["url"] == f"https://deletion.example.com/deletion-status?code={code}"

    status = await client.get("/deletion-status", params={"code": code})
    assert status.status_code == 200
    assert "completed" in status.text
    assert "u1" in status.text
    assert await store.get_user("u1") is None

@pytest.mark.asyncio
async def test_json_body(client):
    r = await client.post("/fb-deletion-callback", json={"signed_request": signed_for("u2")})
    assert r.status_code == 200
    code = r.json()["confirmation_code"]

    status = await client.get("/deletion-status", params={"code": code})
    assert "not_found" in status.text
    assert "No user data found" in status.text

@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [
    {"data": {}},
    {"data": {"signed_request": ""}},
    {"json": {}},
    {"json": ["signed_request"]},
    {"content": b"{not json", "headers": {"content-type": "application/json"}},
])
async def test_missing_signed_request(client, kwargs):
    r = await client.post("/fb-deletion-callback", **kwargs)
    assert r.status_code == 400
    assert r.json() == {"error": "No signed_request"}

@pytest.mark.asyncio
async def test_malformed_signed_request(client):
    r = await client.post("/fb-deletion-callback", data={"signed_request": "no-separator"})
    assert r.status_code == 400
    assert "error" in r.json()

@pytest.mark.asyncio
async def test_invalid_signature(client, store):
    await store.put_user("u1", {"name": "Ada"})
    r = await client.post("/fb-deletion-callback", data={"signed_request": signed_for("u1", "wrong")})
    assert r.status_code == 403
    assert r.json() == {"error": "Invalid signature"}
    # rejected requests delete nothing
    assert await store.get_user("u1") == {"name": "Ada"}

@pytest.mark.asyncio
async def test_missing_user_id(client):
    r = await client.post("/fb-deletion-callback", data={"signed_request": sign_request({"algorithm": "HMAC-SHA256"}, SECRET)})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing user_id in payload"}

@pytest.mark.asyncio
async def test_store_failure_does_not_fail_callback(settings):
    app = create_app(settings, FailingStore())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/fb-deletion-callback", data={"signed_request": signed_for("u1")})
    assert r.status_code == 200
    assert r.json()["confirmation_code"].startswith("del_")

@pytest.mark.asyncio
async def test_unexpected_error_is_500(app, client, monkeypatch):
    def boom(signed_request):
        raise RuntimeError("boom")

    monkeypatch.setattr(app.state.service, "accept", boom)
    r = await client.post("/fb-deletion-callback", data={"signed_request": signed_for("u1")})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}

@pytest.mark.asyncio
async def test_response_is_built_before_deletion_runs(store):
    store.get_user = AsyncMock(return_value={"name": "Ada"})
    store.delete_user = AsyncMock()
    service = DeletionCallbackService(store, SECRET, "https://deletion.example.com")

    body = urlencode({"signed_request": signed_for("u1")}).encode()

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    request = Request({
        "type": "http",
        "method": "POST",
        "path": "/fb-deletion-callback",
        "query_string": b"",
        "headers": [(b"content-type", b"application/x-www-form-urlencoded")],
    }, receive)
    background = BackgroundTasks()

    result = await handle(request, background, service)

    assert result["url"].endswith(f"?code={result['confirmation_code']}")
    assert len(background.tasks) == 1
    store.get_user.assert_not_awaited()
    store.delete_user.assert_not_awaited()

    await background()
    store.get_user.assert_awaited_once_with("u1")
    store.delete_user.assert_awaited_once_with("u1")
    record = await store.get_deletion_log(result["confirmation_code"])
    assert record.status == "completed"
