"""Commit tools: single commits, build statuses, merge bases and file history."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import encode_path, encode_segment
from core.models import ToolResult
from tools.pullrequest import format_status
from tools.schemas import (
    GetCommitInput,
    GetCommitStatusesInput,
    GetFileHistoryInput,
    GetMergeBaseInput,
    validate_args,
)
from tools.text import author_name, first_line, repo_path, short_hash, values_of


async def get_commit(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetCommitInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/commit/{encode_segment(args.commit)}"
    )

    parents = ", ".join(short_hash(p.get("hash")) for p in data.get("parents") or []) or "None"
    repository = (data.get("repository") or {}).get("full_name") or f"{args.workspace}/{args.repo_slug}"
    text = (
        f"Commit: {data.get('hash')}\n"
        f"Message: {(data.get('message') or '').strip()}\n"
        f"Author: {author_name(data.get('author'))}\n"
        f"Date: {data.get('date')}\n"
        f"Parents: {parents}\n"
        f"Repository: {repository}"
    )
    return ToolResult(text, data)


async def get_commit_statuses(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetCommitStatusesInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/commit/{encode_segment(args.commit)}/statuses",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    statuses = values_of(data)
    if not statuses:
        return ToolResult(f"No build statuses found for commit {short_hash(args.commit)}.", data)

    listing = "\n\n".join(format_status(s) for s in statuses)
    return ToolResult(
        f"Build statuses for commit {short_hash(args.commit)} ({len(statuses)} total):\n\n{listing}",
        data,
    )


async def get_merge_base(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetMergeBaseInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/merge-base/{encode_segment(args.revspec)}"
    )

    lines = [f"Merge base for {args.revspec}:", f"Commit: {data.get('hash')}"]
    if data.get("message"):
        lines.append(f"Message: {data['message'].strip()}")
    if data.get("date"):
        lines.append(f"Date: {data['date']}")
    if data.get("author"):
        lines.append(f"Author: {author_name(data['author'])}")
    return ToolResult("\n".join(lines), data)


async def get_file_history(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetFileHistoryInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/filehistory/{encode_segment(args.commit)}/{encode_path(args.path)}",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    entries = values_of(data)
    if not entries:
        return ToolResult(f"No history found for file {args.path} at {args.commit}.", data)

    rendered = []
    for entry in entries:
        commit = entry.get("commit") or {}
        text = (
            f"- {short_hash(commit.get('hash'))}: {first_line(commit.get('message')) or '(no message)'}\n"
            f"  Author: {author_name(commit.get('author'))}\n"
            f"  Date: {commit.get('date')}"
        )
        if entry.get("size") is not None:
            text += f"\n  File size: {entry['size']} bytes"
        rendered.append(text)

    listing = "\n\n".join(rendered)
    return ToolResult(
        f"File history for {args.path} (from {args.commit}):\n{len(entries)} commits found:\n\n{listing}",
        data,
    )
