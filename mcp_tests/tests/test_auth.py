import base64
import logging

from config import Settings
from core.auth import resolve_auth


def _decode(header: str) -> str:
    assert header.startswith("Basic ")
    return base64.b64decode(header[len("Basic "):]).decode("utf-8")


def test_api_token_pair_wins_over_legacy_pair(caplog):
    s = Settings(api_token="tok", email="me@example.com", username="me", app_password="pw")
    with caplog.at_level(logging.WARNING):
        ctx = resolve_auth(s)

    assert ctx.scheme == "api-token"
    assert _decode(ctx.header_value) == "me@example.com:tok"
    assert "deprecated" not in caplog.text


def test_legacy_pair_is_used_with_deprecation_warning(caplog):
    s = Settings(username="me", app_password="pw")
    with caplog.at_level(logging.WARNING):
        ctx = resolve_auth(s)

    assert ctx.scheme == "legacy-password"
    assert _decode(ctx.header_value) == "me:pw"
    assert "deprecated" in caplog.text


def test_incomplete_token_pair_falls_back_to_legacy():
    ctx = resolve_auth(Settings(api_token="tok", username="me", app_password="pw"))
    assert ctx.scheme == "legacy-password"


def test_no_credentials_means_anonymous(caplog):
    with caplog.at_level(logging.WARNING):
        ctx = resolve_auth(Settings())

    assert ctx.scheme == "none"
    assert ctx.header_value is None
    assert "public repositories" in caplog.text
