from __future__ import annotations

from typing import Any, Dict, Mapping
from urllib.parse import quote


MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10

MAX_FILE_LINES = 10_000
DEFAULT_FILE_LINES = 1_000

MAX_BROWSE_ITEMS = 100
DEFAULT_BROWSE_ITEMS = 50

MAX_PAGES = 50
MAX_LOG_CHARS = 50_000

_CLAMPED_PARAMS = ("pagelen", "limit")


def clamp(value: int, ceiling: int, floor: int = 1) -> int:
    return max(floor, min(int(value), ceiling))


def encode_segment(value: str) -> str:
    # One path segment: "/" is encoded too
    return quote(str(value), safe="")


def encode_path(path: str) -> str:
    # Keep Bitbucket paths stable:
    # - Drop leading/trailing "/"
    # - Percent-encode each segment, keep the separators
    clean = (path or "").strip().strip("/")
    return "/".join(encode_segment(seg) for seg in clean.split("/") if seg)


def normalize_uuid(uuid: str) -> str:
    value = (uuid or "").strip()
    if value.startswith("{") and value.endswith("}"):
        return value
    return "{" + value + "}"


def build_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop unset values and clamp page-size style parameters."""
    out: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if key in _CLAMPED_PARAMS and isinstance(value, int) and not isinstance(value, bool):
            value = min(value, MAX_PAGE_SIZE)
        if isinstance(value, bool):
            value = "true" if value else "false"
        out[key] = value
    return out
