"""Authentication scheme selection.

Chooses between the API-token pair (preferred), the deprecated
username/app-password pair and anonymous access, and builds the Basic
Authorization header once per process.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Literal, Optional

from config import Settings

logger = logging.getLogger(__name__)

AuthScheme = Literal["api-token", "legacy-password", "none"]


@dataclass(frozen=True)
class AuthContext:
    scheme: AuthScheme
    header_value: Optional[str] = None


def _basic(user: str, secret: str) -> str:
    token = base64.b64encode(f"{user}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def resolve_auth(settings: Settings) -> AuthContext:
    if settings.api_token and settings.email:
        return AuthContext(scheme="api-token", header_value=_basic(settings.email, settings.api_token))

    if settings.username and settings.app_password:
        logger.warning(
            "BITBUCKET_USERNAME/BITBUCKET_APP_PASSWORD are deprecated; "
            "switch to BITBUCKET_EMAIL + BITBUCKET_API_TOKEN"
        )
        return AuthContext(scheme="legacy-password", header_value=_basic(settings.username, settings.app_password))

    logger.warning("No authentication configured. Only public repositories will be accessible.")
    return AuthContext(scheme="none")
