"""Small text helpers shared by the tool handlers."""

from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from clients.bitbucket.inputs import build_params, encode_segment


def repo_path(workspace: str, repo_slug: str) -> str:
    return f"/repositories/{encode_segment(workspace)}/{encode_segment(repo_slug)}"


def with_query(path: str, params: Mapping[str, Any]) -> str:
    query = urlencode(build_params(params))
    return f"{path}?{query}" if query else path


def short_hash(value: Optional[str]) -> str:
    return (value or "")[:8]


def first_line(message: Optional[str]) -> str:
    return (message or "").split("\n", 1)[0]


def display_name(user: Any, default: str = "Unknown") -> str:
    if isinstance(user, Mapping):
        return user.get("display_name") or user.get("nickname") or default
    return default


def author_name(author: Any) -> str:
    # Commit authors carry a linked user when Bitbucket knows the address, else only the raw string
    if not isinstance(author, Mapping):
        return "Unknown"
    return display_name(author.get("user"), default="") or author.get("raw") or "Unknown"


def values_of(data: Any) -> list:
    if isinstance(data, Mapping):
        return list(data.get("values") or [])
    return []


def total_of(data: Any) -> Any:
    if isinstance(data, Mapping) and data.get("size") is not None:
        return data["size"]
    return len(values_of(data))


def status_icon(state: Optional[str]) -> str:
    return {
        "SUCCESSFUL": "✅",
        "FAILED": "❌",
        "INPROGRESS": "🔄",
        "STOPPED": "⏹️",
    }.get((state or "").upper(), "❓")


def format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return "N/A"
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    mins, secs = divmod(seconds, 60)
    if mins < 60:
        return f"{mins}m {secs}s"
    hours, mins = divmod(mins, 60)
    return f"{hours}h {mins}m {secs}s"
