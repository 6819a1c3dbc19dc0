"""Diff tools for pull requests and arbitrary commit specs."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import encode_segment
from core.models import ToolResult
from tools.pullrequest import pr_path
from tools.schemas import (
    GetDiffInput,
    GetDiffstatInput,
    GetPullRequestDiffInput,
    GetPullRequestDiffstatInput,
    validate_args,
)
from tools.text import repo_path, values_of


def format_diffstat_entry(entry: Mapping[str, Any]) -> str:
    status = (entry.get("status") or "modified").upper()
    added = entry.get("lines_added") or 0
    removed = entry.get("lines_removed") or 0
    old_path = (entry.get("old") or {}).get("path")
    new_path = (entry.get("new") or {}).get("path")

    if entry.get("status") == "renamed":
        return f"  {status}: {old_path or '(none)'} → {new_path or '(none)'}  (+{added} -{removed})"
    return f"  {status}: {new_path or old_path or '(unknown)'}  (+{added} -{removed})"


def summarize_diffstat(title: str, data: Mapping[str, Any]) -> str:
    entries = values_of(data)
    added = sum(e.get("lines_added") or 0 for e in entries)
    removed = sum(e.get("lines_removed") or 0 for e in entries)
    listing = "\n".join(format_diffstat_entry(e) for e in entries)
    return f"{title}:\n{len(entries)} file(s) changed, +{added} -{removed}\n\n{listing}"


async def get_pull_request_diff(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestDiffInput, raw)
    diff = await client.request_text(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/diff",
        params={"context": args.context, "path": args.path or None},
    )

    if not diff.strip():
        return ToolResult(f"No changes found in pull request #{args.pull_request_id}.")
    return ToolResult(
        f"Diff for PR #{args.pull_request_id} in {args.workspace}/{args.repo_slug}:\n\n{diff}",
        {"diff": diff},
    )


async def get_pull_request_diffstat(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestDiffstatInput, raw)
    data = await client.request_json(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/diffstat",
        params={"path": args.path or None},
    )

    if not values_of(data):
        return ToolResult(f"No changes found in pull request #{args.pull_request_id}.", data)
    title = f"Diffstat for PR #{args.pull_request_id} in {args.workspace}/{args.repo_slug}"
    return ToolResult(summarize_diffstat(title, data), data)


def _spec_params(args: GetDiffstatInput) -> dict:
    # Bitbucket treats any value as "on"; only send the flags that are set
    return {
        "path": args.path or None,
        "ignore_whitespace": args.ignore_whitespace or None,
        "topic": args.topic or None,
    }


async def get_diff(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetDiffInput, raw)
    params = {**_spec_params(args), "context": args.context}
    diff = await client.request_text(
        f"{repo_path(args.workspace, args.repo_slug)}/diff/{encode_segment(args.spec)}",
        params=params,
    )

    if not diff.strip():
        return ToolResult(f"No changes found for spec: {args.spec}")
    return ToolResult(f"Diff for {args.spec} in {args.workspace}/{args.repo_slug}:\n\n{diff}", {"diff": diff})


async def get_diffstat(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetDiffstatInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/diffstat/{encode_segment(args.spec)}",
        params=_spec_params(args),
    )

    if not values_of(data):
        return ToolResult(f"No changes found for spec: {args.spec}", data)
    title = f"Diffstat for {args.spec} in {args.workspace}/{args.repo_slug}"
    return ToolResult(summarize_diffstat(title, data), data)
