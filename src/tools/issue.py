"""Issue tracker tools."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from core.models import ToolResult
from tools.schemas import GetIssueInput, GetIssuesInput, validate_args
from tools.text import display_name, repo_path, total_of, values_of


async def get_issues(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetIssuesInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/issues",
        params={"state": args.state, "kind": args.kind, "page": args.page, "pagelen": args.pagelen},
    )

    issues = values_of(data)
    if not issues:
        return ToolResult(f"No issues found for {args.workspace}/{args.repo_slug}.", data)

    listing = "\n\n".join(
        f"- #{issue.get('id')}: {issue.get('title')}\n"
        f"  State: {issue.get('state')}\n"
        f"  Kind: {issue.get('kind')}\n"
        f"  Priority: {issue.get('priority')}\n"
        f"  Reporter: {display_name(issue.get('reporter'))}\n"
        f"  Assignee: {display_name(issue.get('assignee'), default='Unassigned')}\n"
        f"  Created: {issue.get('created_on')}"
        for issue in issues
    )
    return ToolResult(f"Issues for {args.workspace}/{args.repo_slug} ({total_of(data)} total):\n\n{listing}", data)


async def get_issue(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetIssueInput, raw)
    data = await client.request_json(f"{repo_path(args.workspace, args.repo_slug)}/issues/{args.issue_id}")

    text = (
        f"Issue #{data.get('id')}: {data.get('title')}\n"
        f"State: {data.get('state')}\n"
        f"Kind: {data.get('kind')}\n"
        f"Priority: {data.get('priority')}\n"
        f"Reporter: {display_name(data.get('reporter'))}\n"
        f"Assignee: {display_name(data.get('assignee'), default='Unassigned')}\n"
        f"Created: {data.get('created_on')}\n"
        f"Updated: {data.get('updated_on')}\n"
        f"Content:\n{(data.get('content') or {}).get('raw') or 'No content'}"
    )
    return ToolResult(text, data)
