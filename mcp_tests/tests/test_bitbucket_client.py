import httpx
import pytest

import core.retry as retry_mod
from clients.bitbucket import BitbucketClient
from core.auth import AuthContext
from core.errors import (
    AuthenticationError,
    BitbucketApiError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    WriteOperationError,
)
from core.retry import RetryPolicy


# ---------------------------
# GET-only enforcement
# ---------------------------

@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "post"])
def test_ensure_read_only_rejects_writes(method):
    with pytest.raises(WriteOperationError) as ei:
        BitbucketClient.ensure_read_only(method, "/repositories/ws/repo")
    assert method.upper() in str(ei.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["POST", "DELETE"])
async def test_write_request_fails_before_network(make_client, method):
    client, seen = make_client({"/repositories/ws/repo": {"slug": "repo"}})

    with pytest.raises(WriteOperationError):
        await client.request_json("/repositories/ws/repo", method=method)
    with pytest.raises(WriteOperationError):
        await client.request_text("/repositories/ws/repo", method=method)

    assert seen == []


# ---------------------------
# Headers / URLs
# ---------------------------

@pytest.mark.asyncio
async def test_request_json_sends_auth_and_standard_headers(make_client):
    auth = AuthContext(scheme="api-token", header_value="Basic abc")
    client, seen = make_client({"/repositories/ws/repo": {"slug": "repo"}}, auth=auth)

    data = await client.request_json("/repositories/ws/repo", params={"page": 2, "state": None})

    assert data == {"slug": "repo"}
    req = seen[0]
    assert req.method == "GET"
    assert req.headers["Authorization"] == "Basic abc"
    assert req.headers["Accept"] == "application/json"
    assert req.headers["User-Agent"].startswith("bitbucket-mcp-server/")
    assert req.url.params.get("page") == "2"
    assert "state" not in req.url.params


@pytest.mark.asyncio
async def test_anonymous_client_sends_no_authorization(make_client):
    client, seen = make_client({"/user": {"display_name": "x"}})
    await client.request_json("/user")
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_request_text_uses_plain_accept(make_client):
    client, seen = make_client({"/repositories/ws/repo/diff/abc": "diff --git a b\n"})

    text = await client.request_text("/repositories/ws/repo/diff/abc")

    assert text.startswith("diff --git")
    assert seen[0].headers["Accept"] == "text/plain"


@pytest.mark.asyncio
async def test_pagelen_is_clamped_on_the_wire(make_client):
    client, seen = make_client({"/workspaces": {"values": []}})
    await client.request_json("/workspaces", params={"pagelen": 500})
    assert seen[0].url.params.get("pagelen") == "100"


# ---------------------------
# Error classification
# ---------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, exc",
    [(401, AuthenticationError), (404, NotFoundError), (429, RateLimitError), (500, BitbucketApiError)],
)
async def test_non_2xx_become_typed_errors(make_client, status, exc):
    client, _ = make_client(lambda req: httpx.Response(status, json={"error": {"message": "boom"}}))

    with pytest.raises(exc) as ei:
        await client.request_json("/repositories/ws/repo")
    assert ei.value.status == status


@pytest.mark.asyncio
async def test_malformed_json_is_external_service_error(make_client):
    client, _ = make_client(lambda req: httpx.Response(200, content=b"<html>"))

    with pytest.raises(ExternalServiceError):
        await client.request_json("/repositories/ws/repo")


@pytest.mark.asyncio
async def test_timeout_is_reported_with_duration(make_client):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client, _ = make_client(handler)

    with pytest.raises(RequestTimeoutError) as ei:
        await client.request_json("/repositories/ws/repo")
    assert "5000ms" in str(ei.value)


@pytest.mark.asyncio
async def test_connection_error_is_external_service_error(make_client):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, _ = make_client(handler)

    with pytest.raises(ExternalServiceError):
        await client.request_json("/repositories/ws/repo")


# ---------------------------
# Retry policy
# ---------------------------

@pytest.mark.asyncio
async def test_no_retry_by_default(make_client):
    client, seen = make_client(lambda req: httpx.Response(503, text="unavailable"))

    with pytest.raises(BitbucketApiError):
        await client.request_json("/repositories/ws/repo")
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_retry_recovers_from_transient_failure(make_client, monkeypatch):
    sleeps = []

    async def fake_sleep(seconds: float):
        sleeps.append(seconds)

    monkeypatch.setattr(retry_mod.asyncio, "sleep", fake_sleep)

    responses = [
        httpx.Response(429, headers={"Retry-After": "7"}),
        httpx.Response(502),
        httpx.Response(200, json={"ok": True}),
    ]
    client, seen = make_client(lambda req: responses.pop(0), retry_policy=RetryPolicy(attempts=3))

    assert await client.request_json("/repositories/ws/repo") == {"ok": True}
    assert len(seen) == 3
    assert sleeps == [7.0, 2.0]


@pytest.mark.asyncio
async def test_retry_does_not_repeat_client_errors(make_client):
    client, seen = make_client(lambda req: httpx.Response(404), retry_policy=RetryPolicy(attempts=3))

    with pytest.raises(NotFoundError):
        await client.request_json("/repositories/ws/repo")
    assert len(seen) == 1


def test_retry_policy_delays_are_bounded():
    policy = RetryPolicy(attempts=5, base_delay=1.0, max_sleep_seconds=5.0)
    assert policy.enabled is True
    assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]
    assert policy.delay_for(1, {"Retry-After": "120"}) == 5.0
    assert policy.delay_for(2, {"Retry-After": "soon"}) == 2.0
    assert RetryPolicy().enabled is False
