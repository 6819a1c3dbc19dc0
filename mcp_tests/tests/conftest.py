import json

import httpx
import pytest

from clients.bitbucket import BitbucketClient

API_BASE = "https://api.example.test/2.0"


def raw_path(request: httpx.Request) -> str:
    """Request path relative to the API base, still percent-encoded."""
    path = request.url.raw_path.decode("ascii").split("?", 1)[0]
    prefix = httpx.URL(API_BASE).raw_path.decode("ascii")
    return path[len(prefix):] if path.startswith(prefix) else path


def patch_bitbucket_transport(monkeypatch, client: BitbucketClient, handler):
    """Patch BitbucketClient._create_client() to use httpx.MockTransport."""
    transport = httpx.MockTransport(handler)

    def _create_client(custom_headers=None):
        headers = {**client._headers, **(custom_headers or {})}
        return httpx.AsyncClient(
            base_url=client.base_url + "/",
            headers=headers,
            timeout=client._timeout,
            verify=client._verify,
            follow_redirects=True,
            transport=transport,
        )

    monkeypatch.setattr(client, "_create_client", _create_client)


def route_handler(routes: dict):
    """
    Build a transport handler from a routes dict.

    routes keys: raw path relative to the API base (no query string).
    values: httpx.Response, a dict/list (JSON 200), a str (text 200)
            or a callable taking the request.
    Unknown paths answer 404.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        val = routes.get(raw_path(request))
        if val is None:
            return httpx.Response(404, json={"type": "error", "error": {"message": "Resource not found"}})
        if callable(val):
            val = val(request)
        if isinstance(val, httpx.Response):
            return val
        if isinstance(val, str):
            return httpx.Response(200, text=val)
        return httpx.Response(200, content=json.dumps(val).encode(), headers={"Content-Type": "application/json"})

    return handler


@pytest.fixture
def make_client(monkeypatch):
    """Factory returning (client, seen_requests) wired to a mocked Bitbucket API."""

    def _make(routes_or_handler, **kwargs):
        handler = routes_or_handler if callable(routes_or_handler) else route_handler(routes_or_handler)
        seen = []

        def _recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = BitbucketClient(base_url=API_BASE, timeout=5.0, verify=False, **kwargs)
        patch_bitbucket_transport(monkeypatch, client, _recording)
        return client, seen

    return _make
