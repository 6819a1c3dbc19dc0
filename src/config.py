"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and builds the
immutable `Settings` object shared by the server (API base URL, credentials,
timeouts, default output format and logging toggles).
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass
from typing import List, Mapping, Optional

from core.errors import ConfigurationError

VERSION = "0.1.0"

DEFAULT_API_BASE = "https://api.bitbucket.org/2.0"
DEFAULT_TIMEOUT_MS = 30_000

OUTPUT_FORMATS = ("text", "json", "toon")
FORMAT_ALIASES = {"compact": "toon"}

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://[^\s/]+", re.IGNORECASE)


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(env: Mapping[str, str], name: str, default: int, problems: List[str]) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        problems.append(f"{name}: expected an integer, got {raw!r}")
        return default


def normalize_format(value: Optional[str]) -> Optional[str]:
    """Map a user-supplied format name to its canonical form (None if unknown)."""
    if value is None:
        return None
    name = value.strip().lower()
    name = FORMAT_ALIASES.get(name, name)
    return name if name in OUTPUT_FORMATS else None


@dataclass(frozen=True)
class Settings:
    api_base: str = DEFAULT_API_BASE
    api_token: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    app_password: Optional[str] = None
    request_timeout_ms: int = DEFAULT_TIMEOUT_MS
    debug: bool = False
    default_format: Optional[str] = None
    retry_attempts: int = 1

    @property
    def request_timeout(self) -> float:
        """Timeout in seconds, as httpx expects it."""
        return self.request_timeout_ms / 1000.0


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read `Settings` from the environment, collecting every problem found.

    Raises ConfigurationError when any variable is malformed.
    """
    env = os.environ if environ is None else environ
    problems: List[str] = []

    api_base = (_env_str(env, "BITBUCKET_API_BASE") or DEFAULT_API_BASE).rstrip("/")
    if not _URL_RE.match(api_base):
        problems.append(f"BITBUCKET_API_BASE: not a valid http(s) URL: {api_base!r}")

    email = _env_str(env, "BITBUCKET_EMAIL")
    if email is not None and not _EMAIL_RE.match(email):
        problems.append(f"BITBUCKET_EMAIL: not a valid e-mail address: {email!r}")

    timeout_ms = _env_int(env, "BITBUCKET_REQUEST_TIMEOUT", DEFAULT_TIMEOUT_MS, problems)
    if timeout_ms <= 0:
        problems.append(f"BITBUCKET_REQUEST_TIMEOUT: must be positive, got {timeout_ms}")

    retry_attempts = _env_int(env, "BITBUCKET_RETRY_ATTEMPTS", 1, problems)
    if retry_attempts < 1:
        problems.append(f"BITBUCKET_RETRY_ATTEMPTS: must be at least 1, got {retry_attempts}")

    raw_format = _env_str(env, "BITBUCKET_DEFAULT_FORMAT")
    default_format = normalize_format(raw_format)
    if raw_format is not None and default_format is None:
        problems.append(
            f"BITBUCKET_DEFAULT_FORMAT: expected one of {', '.join(OUTPUT_FORMATS)}, got {raw_format!r}"
        )

    if problems:
        raise ConfigurationError("Configuration validation failed:\n" + "\n".join(problems))

    return Settings(
        api_base=api_base,
        api_token=_env_str(env, "BITBUCKET_API_TOKEN"),
        email=email,
        username=_env_str(env, "BITBUCKET_USERNAME"),
        app_password=_env_str(env, "BITBUCKET_APP_PASSWORD"),
        request_timeout_ms=timeout_ms,
        debug=_env_bool(env, "BITBUCKET_DEBUG", False),
        default_format=default_format,
        retry_attempts=retry_attempts,
    )


def configure_logging(debug: bool = False) -> None:
    # stdout carries the MCP stdio stream, so logs go to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO; keep it for debug sessions only
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
