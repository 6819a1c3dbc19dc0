from __future__ import annotations

import re
from typing import Any, Optional


class BitbucketMCPError(Exception):
    """Base error for the Bitbucket MCP server."""

    suggestion: Optional[str] = None


class ConfigurationError(BitbucketMCPError):
    """Raised when environment configuration is malformed."""


class ValidationError(BitbucketMCPError):
    """Raised when user input is invalid."""


class WriteOperationError(BitbucketMCPError):
    """Raised when anything other than a GET request is attempted."""


class ExternalServiceError(BitbucketMCPError):
    """Raised when the Bitbucket API cannot be reached."""


class RequestTimeoutError(ExternalServiceError):
    """Raised when a request exceeds the configured timeout."""


class FilterError(BitbucketMCPError):
    """Raised when a filter expression cannot be parsed or applied."""


class UnknownToolError(BitbucketMCPError):
    """Raised when a tool name is not in the registry."""


class BitbucketApiError(BitbucketMCPError):
    """Non-2xx response from the Bitbucket API."""

    def __init__(
        self,
        status: int,
        status_text: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.status = status
        self.status_text = status_text
        self.details = details
        self.suggestion = suggestion
        message = f"Bitbucket API error: {status} {status_text}"
        if details:
            message += f" - {details}"
        super().__init__(message)


class AuthenticationError(BitbucketApiError):
    def __init__(self, details: Optional[str] = None) -> None:
        super().__init__(
            401,
            "Unauthorized",
            details,
            "Check your authentication credentials "
            "(BITBUCKET_API_TOKEN + BITBUCKET_EMAIL or BITBUCKET_USERNAME + BITBUCKET_APP_PASSWORD)",
        )


class ForbiddenError(BitbucketApiError):
    def __init__(self, resource: Optional[str] = None) -> None:
        super().__init__(
            403,
            "Forbidden",
            f"Access denied to {resource}" if resource else "Access denied",
            "Your credentials may not have sufficient permissions for this resource",
        )


class NotFoundError(BitbucketApiError):
    def __init__(self, details: str, suggestion: Optional[str] = None) -> None:
        super().__init__(
            404,
            "Not Found",
            details,
            suggestion or "Check the workspace/repository names and ensure you have access",
        )


class RateLimitError(BitbucketApiError):
    def __init__(self) -> None:
        super().__init__(429, "Too Many Requests", "Rate limit exceeded", "Please wait before retrying")


# Order matters: the first matching pattern names the resource.
_RESOURCE_PATTERNS = (
    (re.compile(r"/repositories/[^/]+/[^/]+/?$"), "repository"),
    (re.compile(r"/repositories/[^/]+/[^/]+/pullrequests"), "pull request"),
    (re.compile(r"/repositories/[^/]+/[^/]+/issues"), "issue"),
    (re.compile(r"/repositories/[^/]+/[^/]+/src"), "file"),
    (re.compile(r"/repositories/[^/]+/[^/]+/(commit|commits|diff|diffstat|merge-base|filehistory)"), "commit"),
    (re.compile(r"/repositories/[^/]+/[^/]+/refs/tags"), "tag"),
    (re.compile(r"/repositories/[^/]+/[^/]+/refs"), "branch"),
    (re.compile(r"/repositories/[^/]+/[^/]+/pipelines"), "pipeline"),
    (re.compile(r"/workspaces/[^/]+/?$"), "workspace"),
    (re.compile(r"/users?(/|$)"), "user"),
)


def resource_from_url(url: Optional[str]) -> str:
    if not url:
        return "resource"
    path = url.split("?", 1)[0]
    for pattern, resource in _RESOURCE_PATTERNS:
        if pattern.search(path):
            return resource
    return "resource"


def _details_from_body(body: Any) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            details = str(error["message"])
            if error.get("detail"):
                details += f" ({error['detail']})"
            return details
        if body.get("message"):
            return str(body["message"])
        return ""
    if isinstance(body, str):
        return body.strip()[:500]
    return ""


def create_api_error(status: int, status_text: str, body: Any = None, url: Optional[str] = None) -> BitbucketApiError:
    """Build the typed error matching an HTTP status code."""
    details = _details_from_body(body)
    resource = resource_from_url(url)

    if status == 401:
        return AuthenticationError(details or None)
    if status == 403:
        return ForbiddenError(resource)
    if status == 404:
        return NotFoundError(details or f"The requested {resource} was not found")
    if status == 429:
        return RateLimitError()
    return BitbucketApiError(status, status_text, details or None)
