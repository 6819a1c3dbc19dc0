import pytest

from core.errors import (
    AuthenticationError,
    BitbucketApiError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    create_api_error,
    resource_from_url,
)


@pytest.mark.parametrize(
    "url, resource",
    [
        ("/repositories/ws/repo", "repository"),
        ("/repositories/ws/repo/pullrequests/3", "pull request"),
        ("/repositories/ws/repo/issues/1", "issue"),
        ("/repositories/ws/repo/src/abc/README.md", "file"),
        ("/repositories/ws/repo/commit/abc", "commit"),
        ("/repositories/ws/repo/refs/tags/v1", "tag"),
        ("/repositories/ws/repo/refs/branches/main", "branch"),
        ("/repositories/ws/repo/pipelines/%7Bu%7D", "pipeline"),
        ("/workspaces/ws", "workspace"),
        ("/users/bob", "user"),
        ("/something/else?x=1", "resource"),
        (None, "resource"),
    ],
)
def test_resource_from_url(url, resource):
    assert resource_from_url(url) == resource


def test_create_api_error_401():
    err = create_api_error(401, "Unauthorized", {"error": {"message": "Bad token"}})
    assert isinstance(err, AuthenticationError)
    assert err.status == 401
    assert "Bad token" in str(err)
    assert "BITBUCKET_API_TOKEN" in err.suggestion


def test_create_api_error_403_names_resource():
    err = create_api_error(403, "Forbidden", None, "/repositories/ws/repo/pullrequests/1")
    assert isinstance(err, ForbiddenError)
    assert "pull request" in str(err)


def test_create_api_error_404_uses_body_message_or_resource():
    with_body = create_api_error(404, "Not Found", {"error": {"message": "Repository not found"}}, "/repositories/a/b")
    assert isinstance(with_body, NotFoundError)
    assert "Repository not found" in str(with_body)

    without_body = create_api_error(404, "Not Found", "", "/repositories/a/b/issues/9")
    assert "The requested issue was not found" in str(without_body)
    assert without_body.suggestion


def test_create_api_error_429_and_other_statuses():
    assert isinstance(create_api_error(429, "Too Many Requests"), RateLimitError)

    err = create_api_error(502, "Bad Gateway", "upstream down")
    assert type(err) is BitbucketApiError
    assert str(err) == "Bitbucket API error: 502 Bad Gateway - upstream down"
    assert err.suggestion is None


def test_error_detail_includes_nested_detail():
    err = create_api_error(400, "Bad Request", {"error": {"message": "Invalid", "detail": "pagelen too big"}})
    assert "Invalid (pagelen too big)" in str(err)
