"""Workspace and user tools."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import encode_segment
from core.models import ToolResult
from tools.schemas import (
    GetCurrentUserInput,
    GetUserInput,
    GetWorkspaceInput,
    ListWorkspacesInput,
    validate_args,
)
from tools.text import total_of, values_of


def _user_lines(data: Mapping[str, Any], title: str) -> list:
    handle = f" (@{data['username']})" if data.get("username") else ""
    return [
        f"{title}: {data.get('display_name')}{handle}",
        f"UUID: {data.get('uuid') or 'Not available'}",
        f"Account ID: {data.get('account_id') or 'Not available'}",
        f"Type: {data.get('type')}",
        f"Website: {data.get('website') or 'None'}",
        f"Location: {data.get('location') or 'Not specified'}",
        f"Created: {data.get('created_on') or 'Not available'}",
    ]


async def list_workspaces(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(ListWorkspacesInput, raw)
    data = await client.request_json("/workspaces", params={"page": args.page, "pagelen": args.pagelen})

    workspaces = values_of(data)
    if not workspaces:
        return ToolResult("No accessible workspaces found.", data)

    listing = "\n\n".join(
        f"- {ws.get('slug')} ({ws.get('name')})\n"
        f"  Type: {ws.get('type')}\n"
        f"  Created: {ws.get('created_on') or 'Unknown'}"
        for ws in workspaces
    )
    return ToolResult(f"Accessible workspaces ({total_of(data)} total):\n\n{listing}", data)


async def get_workspace(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetWorkspaceInput, raw)
    data = await client.request_json(f"/workspaces/{encode_segment(args.workspace)}")

    text = (
        f"Workspace: {data.get('name')} ({data.get('slug')})\n"
        f"Type: {data.get('type')}\n"
        f"UUID: {data.get('uuid') or 'Not available'}\n"
        f"Created: {data.get('created_on') or 'Unknown'}"
    )
    return ToolResult(text, data)


async def get_user(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    """Look up a user by name or UUID; without one, the authenticated user."""
    args = validate_args(GetUserInput, raw)
    url = f"/users/{encode_segment(args.username)}" if args.username else "/user"
    data = await client.request_json(url)
    return ToolResult("\n".join(_user_lines(data, "User")), data)


async def get_current_user(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    validate_args(GetCurrentUserInput, raw)
    data = await client.request_json("/user")
    return ToolResult("\n".join(_user_lines(data, "Current User")), data)
