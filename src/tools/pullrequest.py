"""Pull request tools: listings, details, comments, threads, activity, commits and build statuses."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import MAX_PAGE_SIZE, encode_segment
from core.models import ToolResult
from tools.repository import format_commit_line
from tools.schemas import (
    GetCommentThreadInput,
    GetPullRequestActivityInput,
    GetPullRequestCommentInput,
    GetPullRequestCommentsInput,
    GetPullRequestCommitsInput,
    GetPullRequestInput,
    GetPullRequestsInput,
    GetPullRequestStatusesInput,
    ListUserPullRequestsInput,
    validate_args,
)
from tools.text import display_name, repo_path, status_icon, total_of, values_of, with_query


def pr_path(workspace: str, repo_slug: str, pull_request_id: int) -> str:
    return f"{repo_path(workspace, repo_slug)}/pullrequests/{pull_request_id}"


def _branch(side: Any) -> str:
    if isinstance(side, Mapping):
        return (side.get("branch") or {}).get("name") or "?"
    return "?"


def format_pull_request_line(pr: Mapping[str, Any]) -> str:
    return (
        f"- #{pr.get('id')}: {pr.get('title')}\n"
        f"  Author: {display_name(pr.get('author'))}\n"
        f"  State: {pr.get('state')}\n"
        f"  Created: {pr.get('created_on')}\n"
        f"  Source: {_branch(pr.get('source'))} → {_branch(pr.get('destination'))}"
    )


def _comment_body(comment: Mapping[str, Any]) -> str:
    return (comment.get("content") or {}).get("raw") or "No content"


async def get_pull_requests(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestsInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/pullrequests",
        params={"state": args.state, "page": args.page, "pagelen": args.pagelen},
    )

    prs = values_of(data)
    if not prs:
        return ToolResult(f"No pull requests found for {args.workspace}/{args.repo_slug}.", data)

    listing = "\n\n".join(format_pull_request_line(pr) for pr in prs)
    return ToolResult(
        f"Pull requests for {args.workspace}/{args.repo_slug} ({total_of(data)} total):\n\n{listing}",
        data,
    )


async def get_pull_request(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestInput, raw)
    data = await client.request_json(pr_path(args.workspace, args.repo_slug, args.pull_request_id))

    reviewers = ", ".join(display_name(r) for r in data.get("reviewers") or []) or "None"
    text = (
        f"Pull Request #{data.get('id')}: {data.get('title')}\n"
        f"Author: {display_name(data.get('author'))}\n"
        f"State: {data.get('state')}\n"
        f"Created: {data.get('created_on')}\n"
        f"Updated: {data.get('updated_on')}\n"
        f"Source: {_branch(data.get('source'))} → {_branch(data.get('destination'))}\n"
        f"Description:\n{data.get('description') or 'No description'}\n"
        f"Reviewers: {reviewers}"
    )
    return ToolResult(text, data)


async def get_pull_request_comments(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestCommentsInput, raw)
    data = await client.request_json(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/comments",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    comments = values_of(data)
    if not comments:
        return ToolResult(f"No comments found for PR #{args.pull_request_id}.", data)

    entries = []
    for comment in comments:
        entry = (
            f"- #{comment.get('id')} {display_name(comment.get('user'))} ({comment.get('created_on')}):\n"
            f"  {_comment_body(comment)}"
        )
        inline = comment.get("inline")
        if inline:
            entry += f"\n  File: {inline.get('path')}, Line: {inline.get('to') or inline.get('from')}"
        entries.append(entry)

    listing = "\n\n".join(entries)
    return ToolResult(f"Comments for PR #{args.pull_request_id} ({total_of(data)} total):\n\n{listing}", data)


async def get_pull_request_comment(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestCommentInput, raw)
    comment = await client.request_json(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/comments/{args.comment_id}"
    )

    lines = [
        f"Comment #{comment.get('id')} on PR #{args.pull_request_id}:",
        "",
        f"Author: {display_name(comment.get('user'))}",
        f"Created: {comment.get('created_on')}",
    ]
    if comment.get("updated_on") and comment.get("updated_on") != comment.get("created_on"):
        lines.append(f"Updated: {comment['updated_on']}")

    inline = comment.get("inline")
    if inline:
        lines += ["", "Inline Comment:", f"  File: {inline.get('path')}"]
        if inline.get("to"):
            lines.append(f"  Line: {inline['to']}")
        if inline.get("from") and inline.get("from") != inline.get("to"):
            lines.append(f"  From Line: {inline['from']}")

    parent = comment.get("parent")
    if parent:
        lines += ["", f"Reply to Comment #{parent.get('id')}"]

    lines += ["", "Content:", _comment_body(comment)]
    if comment.get("deleted"):
        lines += ["", "[This comment has been deleted]"]
    return ToolResult("\n".join(lines), comment)


def _parent_id(comment: Mapping[str, Any]) -> Any:
    parent = comment.get("parent")
    return parent.get("id") if isinstance(parent, Mapping) else None


def collect_replies(root_id: int, comments: List[Mapping[str, Any]]) -> List[Tuple[int, Mapping[str, Any]]]:
    """Return (depth, comment) pairs for every reply under `root_id`, depth-first in server order."""
    children: Dict[Any, List[Mapping[str, Any]]] = {}
    for comment in comments:
        children.setdefault(_parent_id(comment), []).append(comment)

    replies: List[Tuple[int, Mapping[str, Any]]] = []
    seen = {root_id}

    def walk(parent_id: Any, depth: int) -> None:
        for child in children.get(parent_id, []):
            if child.get("id") in seen:
                continue
            seen.add(child.get("id"))
            replies.append((depth, child))
            walk(child.get("id"), depth + 1)

    walk(root_id, 1)
    return replies


def _format_thread_comment(comment: Mapping[str, Any], depth: int) -> str:
    indent = "  " * depth
    lines = [
        f"{indent}📝 Comment #{comment.get('id')}",
        f"{indent}Author: {display_name(comment.get('user'))}",
        f"{indent}Created: {comment.get('created_on')}",
    ]
    inline = comment.get("inline")
    if inline:
        location = f"{indent}File: {inline.get('path')}"
        if inline.get("to"):
            location += f", Line: {inline['to']}"
        lines.append(location)
    lines += [f"{indent}Content:", f"{indent}{_comment_body(comment)}"]
    if comment.get("deleted"):
        lines.append(f"{indent}[This comment has been deleted]")
    return "\n".join(lines) + "\n"


async def get_comment_thread(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetCommentThreadInput, raw)
    base = f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/comments"

    root = await client.request_json(f"{base}/{args.comment_id}")
    # Every page is needed; a reply can sit on any page
    everything = await client.fetch_all_pages(with_query(base, {"pagelen": MAX_PAGE_SIZE}))
    replies = collect_replies(args.comment_id, everything)

    text = f"Comment Thread for #{args.comment_id} on PR #{args.pull_request_id}:\n\n"
    text += "=== ROOT COMMENT ===\n"
    text += _format_thread_comment(root, 0)
    if replies:
        text += f"\n=== REPLIES ({len(replies)}) ===\n"
        for depth, reply in replies:
            text += "\n" + _format_thread_comment(reply, depth)
    else:
        text += "\nNo replies to this comment."

    data = {
        "root": root,
        "replies": [dict(reply, depth=depth) for depth, reply in replies],
    }
    return ToolResult(text, data)


def _format_activity(activity: Mapping[str, Any]) -> str:
    update = activity.get("update") or {}
    user = display_name(activity.get("user"), default="System")
    when = activity.get("created_on") or update.get("date") or "Unknown date"
    text = f"- {user} ({when}):\n  Action: {activity.get('action') or 'Activity'}"

    if activity.get("comment"):
        text += f"\n  Comment: {_comment_body(activity['comment'])}"
    if activity.get("approval"):
        text += f"\n  Approval: {activity['approval'].get('state') or 'Unknown state'}"
    if update:
        text += f"\n  Update: {update.get('state') or 'Updated'} by {display_name(update.get('author'))}"
        if update.get("title"):
            text += f"\n  Title changed to: {update['title']}"
    return text


async def get_pull_request_activity(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestActivityInput, raw)
    data = await client.request_json(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/activity",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    activities = values_of(data)
    if not activities:
        return ToolResult(f"No activity found for PR #{args.pull_request_id}.", data)

    listing = "\n\n".join(_format_activity(a) for a in activities)
    return ToolResult(f"Activity for PR #{args.pull_request_id} ({total_of(data)} total):\n\n{listing}", data)


async def get_pull_request_commits(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestCommitsInput, raw)
    data = await client.request_json(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/commits",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    commits = values_of(data)
    if not commits:
        return ToolResult(f"No commits found for PR #{args.pull_request_id}.", data)

    listing = "\n\n".join(format_commit_line(c) for c in commits)
    return ToolResult(
        f"Commits for PR #{args.pull_request_id} in {args.workspace}/{args.repo_slug} "
        f"({len(commits)} commits):\n\n{listing}",
        data,
    )


def format_status(status: Mapping[str, Any]) -> str:
    lines = [
        f"{status_icon(status.get('state'))} {status.get('name')}",
        f"  State: {status.get('state')}",
        f"  Key: {status.get('key')}",
    ]
    if status.get("description"):
        lines.append(f"  Description: {status['description']}")
    if status.get("url"):
        lines.append(f"  URL: {status['url']}")
    lines.append(f"  Updated: {status.get('updated_on') or status.get('created_on')}")
    return "\n".join(lines)


async def get_pull_request_statuses(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPullRequestStatusesInput, raw)
    data = await client.request_json(
        f"{pr_path(args.workspace, args.repo_slug, args.pull_request_id)}/statuses",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    statuses = values_of(data)
    if not statuses:
        return ToolResult(f"No build statuses found for PR #{args.pull_request_id}.", data)

    listing = "\n\n".join(format_status(s) for s in statuses)
    return ToolResult(
        f"Build statuses for PR #{args.pull_request_id} ({len(statuses)} total):\n\n{listing}",
        data,
    )


async def list_user_pull_requests(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(ListUserPullRequestsInput, raw)
    data = await client.request_json(
        f"/pullrequests/{encode_segment(args.selected_user)}",
        params={"state": args.state, "page": args.page, "pagelen": args.pagelen},
    )

    prs = values_of(data)
    if not prs:
        return ToolResult(f"No pull requests found for user {args.selected_user}.", data)

    entries = []
    for pr in prs:
        repo = ((pr.get("destination") or {}).get("repository") or {}).get("full_name")
        entry = format_pull_request_line(pr)
        if repo:
            entry += f"\n  Repository: {repo}"
        entries.append(entry)

    listing = "\n\n".join(entries)
    return ToolResult(
        f"Pull requests for user {args.selected_user} ({total_of(data)} total):\n\n{listing}",
        data,
    )
