"""Bitbucket client module: read-only access to the Bitbucket Cloud REST API.

This module provides a small async client used by every tool handler. It
owns the cross-cutting HTTP concerns: GET-only enforcement, auth and
standard headers, timeouts, typed error classification, the optional
retry policy, pagination and ref resolution. There is no
response cache: every call goes to the network.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import httpx

from config import DEFAULT_API_BASE, VERSION
from core.auth import AuthContext
from core.errors import (
    BitbucketApiError,
    ExternalServiceError,
    RequestTimeoutError,
    WriteOperationError,
    create_api_error,
)
from core.retry import RetryPolicy

from .inputs import MAX_PAGES, build_params
from .pagination import fetch_all_pages
from .refs import resolve_default_branch, resolve_ref_to_commit

logger = logging.getLogger(__name__)


class BitbucketClient:
    """Async Bitbucket client.

    Purpose:
      - request_json(url, params=None) -> decoded JSON
      - request_text(url, params=None) -> response body as text
      - fetch_all_pages(url) -> items of every page, in server order
      - resolve_ref_to_commit(workspace, repo_slug, ref) -> commit hash or None

    Key behavior:
      - Only GET is allowed; anything else fails before a connection is made.
      - Non-2xx responses become typed errors (401/403/404/429/other).
      - Timeouts surface as RequestTimeoutError; retries only when enabled.
    """

    JSON_ACCEPT = "application/json"
    TEXT_ACCEPT = "text/plain"

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_API_BASE,
        auth: Optional[AuthContext] = None,
        timeout: float = 30.0,
        verify: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = float(timeout)
        self._verify = verify
        self._auth = auth or AuthContext(scheme="none")
        self._retry = retry_policy or RetryPolicy()

        self._headers = self._build_headers()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request_json(self, url: str, *, params: Optional[Mapping[str, Any]] = None, method: str = "GET") -> Any:
        resp = await self._request(url, params=params, accept=self.JSON_ACCEPT, method=method)
        try:
            return resp.json()
        except ValueError as e:
            raise ExternalServiceError(f"Bitbucket returned malformed JSON for {url}") from e

    async def request_text(self, url: str, *, params: Optional[Mapping[str, Any]] = None, method: str = "GET") -> str:
        resp = await self._request(url, params=params, accept=self.TEXT_ACCEPT, method=method)
        return resp.text or ""

    async def fetch_all_pages(self, url: str, *, max_pages: int = MAX_PAGES) -> List[Any]:
        return await fetch_all_pages(self.request_json, url, max_pages=max_pages)

    async def resolve_ref_to_commit(self, workspace: str, repo_slug: str, ref: str) -> Optional[str]:
        return await resolve_ref_to_commit(self.request_json, workspace=workspace, repo_slug=repo_slug, ref=ref)

    async def resolve_default_branch(self, workspace: str, repo_slug: str) -> str:
        return await resolve_default_branch(self.request_json, workspace=workspace, repo_slug=repo_slug)

    # --- HTTP helpers ---

    @staticmethod
    def ensure_read_only(method: str, url: str) -> None:
        requested = (method or "GET").upper()
        if requested != "GET":
            raise WriteOperationError(
                f"Write operations are disabled: only GET requests are allowed. Attempted: {requested} {url}"
            )

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Accept": self.JSON_ACCEPT,
            "User-Agent": f"bitbucket-mcp-server/{VERSION}",
        }
        if self._auth.header_value:
            headers["Authorization"] = self._auth.header_value
        return headers

    def _create_client(self, custom_headers: Optional[Mapping[str, str]] = None) -> httpx.AsyncClient:
        headers = {**self._headers, **dict(custom_headers or {})}
        return httpx.AsyncClient(
            base_url=self._base_url + "/",
            headers=headers,
            timeout=self._timeout,
            verify=self._verify,
            # PR diff endpoints answer with a 302 to the diff host
            follow_redirects=True,
        )

    def _api_error(self, resp: httpx.Response, url: str) -> BitbucketApiError:
        try:
            body: Any = resp.json()
        except ValueError:
            body = resp.text
        return create_api_error(resp.status_code, resp.reason_phrase, body, url)

    async def _request(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        accept: str,
        method: str = "GET",
    ) -> httpx.Response:
        """GET with typed errors and optional bounded retries for transient failures."""
        self.ensure_read_only(method, url)
        attempts = self._retry.attempts

        async with self._create_client(custom_headers={"Accept": accept}) as client:
            for attempt in range(1, attempts + 1):
                logger.debug("GET %s (attempt %d/%d)", url, attempt, attempts)
                try:
                    resp = await client.get(url, params=build_params(params or {}) or None)
                except httpx.TimeoutException as e:
                    if attempt < attempts:
                        await self._retry.sleep(attempt)
                        continue
                    raise RequestTimeoutError(
                        f"Request timeout after {int(self._timeout * 1000)}ms: {url}"
                    ) from e
                except httpx.HTTPError as e:
                    raise ExternalServiceError(f"Bitbucket request failed (GET {url}): {e}") from e

                if resp.is_success:
                    return resp

                if attempt < attempts and self._retry.is_retryable_status(resp.status_code):
                    logger.info("Transient %d from %s, retrying", resp.status_code, url)
                    await self._retry.sleep(attempt, resp.headers)
                    continue

                raise self._api_error(resp, url)

        raise RuntimeError("Unreachable: _request did not return a response")
