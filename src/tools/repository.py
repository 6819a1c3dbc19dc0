"""Repository tools: repository metadata, branches, tags, commits and source browsing."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import encode_path, encode_segment
from core.errors import NotFoundError
from core.models import ToolResult
from tools.schemas import (
    BrowseRepositoryInput,
    GetBranchesInput,
    GetBranchInput,
    GetCommitsInput,
    GetFileContentInput,
    GetRepositoryInput,
    GetTagInput,
    GetTagsInput,
    ListRepositoriesInput,
    validate_args,
)
from tools.text import (
    author_name,
    first_line,
    repo_path,
    short_hash,
    total_of,
    values_of,
)


def format_repository_line(repo: Mapping[str, Any]) -> str:
    return (
        f"- {repo.get('full_name')} ({repo.get('language') or 'Unknown'})\n"
        f"  {repo.get('description') or 'No description'}\n"
        f"  Private: {repo.get('is_private')}, Updated: {repo.get('updated_on')}"
    )


def format_commit_line(commit: Mapping[str, Any]) -> str:
    return (
        f"- {short_hash(commit.get('hash'))}: {first_line(commit.get('message'))}\n"
        f"  Author: {author_name(commit.get('author'))}\n"
        f"  Date: {commit.get('date')}"
    )


async def get_repository(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetRepositoryInput, raw)
    data = await client.request_json(repo_path(args.workspace, args.repo_slug))

    size = data.get("size")
    mainbranch = (data.get("mainbranch") or {}).get("name")
    text = (
        f"Repository: {data.get('full_name')}\n"
        f"Description: {data.get('description') or 'No description'}\n"
        f"Language: {data.get('language') or 'Not specified'}\n"
        f"Private: {data.get('is_private')}\n"
        f"Main branch: {mainbranch or 'Unknown'}\n"
        f"Created: {data.get('created_on')}\n"
        f"Updated: {data.get('updated_on')}\n"
        f"Size: {f'{size} bytes' if size else 'Unknown'}\n"
        f"Website: {data.get('website') or 'None'}"
    )
    return ToolResult(text, data)


async def list_repositories(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(ListRepositoriesInput, raw)
    data = await client.request_json(
        f"/repositories/{encode_segment(args.workspace)}",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    repos = values_of(data)
    if not repos:
        return ToolResult(f"No repositories found in {args.workspace}.", data)

    listing = "\n\n".join(format_repository_line(repo) for repo in repos)
    return ToolResult(f"Repositories in {args.workspace} ({total_of(data)} total):\n\n{listing}", data)


async def get_branches(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetBranchesInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/refs/branches",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    branches = values_of(data)
    if not branches:
        return ToolResult(f"No branches found for {args.workspace}/{args.repo_slug}.", data)

    listing = "\n\n".join(
        f"- {branch.get('name')}\n"
        f"  Last commit: {short_hash((branch.get('target') or {}).get('hash'))}\n"
        f"  Date: {(branch.get('target') or {}).get('date') or 'Unknown'}"
        for branch in branches
    )
    return ToolResult(
        f"Branches for {args.workspace}/{args.repo_slug} ({total_of(data)} total):\n\n{listing}",
        data,
    )


async def get_branch(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetBranchInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/refs/branches/{encode_segment(args.name)}"
    )

    target = data.get("target") or {}
    text = (
        f"Branch: {data.get('name')}\n"
        f"Last commit: {target.get('hash')}\n"
        f"Message: {first_line(target.get('message')) or '(no message)'}\n"
        f"Author: {author_name(target.get('author'))}\n"
        f"Date: {target.get('date') or 'Unknown'}"
    )
    return ToolResult(text, data)


async def get_tags(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetTagsInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/refs/tags",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    tags = values_of(data)
    if not tags:
        return ToolResult(f"No tags found for {args.workspace}/{args.repo_slug}.", data)

    listing = "\n\n".join(
        f"- {tag.get('name')}\n"
        f"  Commit: {short_hash((tag.get('target') or {}).get('hash'))}\n"
        f"  Date: {tag.get('date') or (tag.get('target') or {}).get('date') or 'Unknown'}"
        for tag in tags
    )
    return ToolResult(f"Tags for {args.workspace}/{args.repo_slug} ({total_of(data)} total):\n\n{listing}", data)


async def get_tag(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetTagInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/refs/tags/{encode_segment(args.name)}"
    )

    target = data.get("target") or {}
    lines = [
        f"Tag: {data.get('name')}",
        f"Commit: {target.get('hash')}",
        f"Date: {data.get('date') or target.get('date') or 'Unknown'}",
    ]
    if data.get("tagger"):
        lines.append(f"Tagger: {author_name(data['tagger'])}")
    if data.get("message"):
        lines.append(f"Message: {data['message'].strip()}")
    return ToolResult("\n".join(lines), data)


async def get_commits(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetCommitsInput, raw)
    url = f"{repo_path(args.workspace, args.repo_slug)}/commits"
    if args.branch:
        url += f"/{encode_segment(args.branch)}"
    data = await client.request_json(url, params={"page": args.page, "pagelen": args.pagelen})

    where = f"{args.workspace}/{args.repo_slug}" + (f" ({args.branch})" if args.branch else "")
    commits = values_of(data)
    if not commits:
        return ToolResult(f"No commits found for {where}.", data)

    listing = "\n\n".join(format_commit_line(commit) for commit in commits)
    return ToolResult(f"Commits for {where} ({total_of(data)} total):\n\n{listing}", data)


async def browse_repository(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    """List a directory at a ref.

    The repository root is listed with `/src/?at=<ref>`, which accepts ref
    names containing "/". Subdirectories need `/src/<commit>/<path>/`, so the
    ref is resolved to a commit first; if that fails the encoded ref is used
    as the path segment, which Bitbucket rejects for refs containing "/".
    """
    args = validate_args(BrowseRepositoryInput, raw)
    ref = args.ref or await client.resolve_default_branch(args.workspace, args.repo_slug)
    path = (args.path or "").strip("/")
    base = f"{repo_path(args.workspace, args.repo_slug)}/src"

    if path:
        commit = await client.resolve_ref_to_commit(args.workspace, args.repo_slug, ref)
        url = f"{base}/{commit or encode_segment(ref)}/{encode_path(path)}/"
        params: dict = {"pagelen": args.limit}
    else:
        url = f"{base}/"
        params = {"at": ref, "pagelen": args.limit}

    try:
        data = await client.request_json(url, params=params)
    except NotFoundError as e:
        target = f"Path '/{path}' at ref '{ref}'" if path else f"Branch, tag, or commit '{ref}'"
        raise NotFoundError(
            f"{target} not found in repository {args.workspace}/{args.repo_slug}",
            "Try a different branch with the 'ref' parameter (common names are 'main', 'master' "
            "or 'develop'). Use bb_get_branches to list available branches.",
        ) from e

    values = values_of(data)
    items = values[: args.limit]
    total = data.get("size") or len(values)

    listing = "\n".join(
        f"{'📁' if item.get('type') == 'commit_directory' else '📄'} {item.get('path')}"
        + (f" ({item['size']} bytes)" if item.get("size") else "")
        for item in items
    )
    text = (
        f"Repository: {args.workspace}/{args.repo_slug}\n"
        f"Path: /{path}\n"
        f"Ref: {ref}\n"
        f"Items ({len(items)} of {total} total):\n\n{listing}"
    )
    return ToolResult(text, {"path": f"/{path}", "ref": ref, "size": total, "values": items})


async def get_file_content(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetFileContentInput, raw)
    ref = args.ref or await client.resolve_default_branch(args.workspace, args.repo_slug)

    # Resolving first keeps refs such as "feature/x" usable as a path segment
    commit = await client.resolve_ref_to_commit(args.workspace, args.repo_slug, ref)
    url = f"{repo_path(args.workspace, args.repo_slug)}/src/{commit or encode_segment(ref)}/{encode_path(args.file_path)}"
    content = await client.request_text(url)

    lines = content.split("\n")
    total = len(lines)
    start = args.start
    end = min(start + args.limit - 1, total)
    window = lines[start - 1 : end]

    header = f"Repository: {args.workspace}/{args.repo_slug}\nRef: {ref}\n"
    if not window:
        text = f"File: {args.file_path} has {total} lines; start line {start} is past the end.\n{header}"
    else:
        numbered = "\n".join(f"{start + i}: {line}" for i, line in enumerate(window))
        text = f"File: {args.file_path} (lines {start}-{end} of {total})\n{header}\n{numbered}"

    data = {
        "path": args.file_path,
        "ref": ref,
        "commit": commit,
        "start": start,
        "end": end if window else None,
        "total_lines": total,
        "lines": [{"line": start + i, "text": line} for i, line in enumerate(window)],
    }
    return ToolResult(text, data)
