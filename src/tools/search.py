"""Search tools: repository search (BBQL) and workspace code search."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import encode_segment
from core.models import ToolResult
from tools.repository import format_repository_line
from tools.schemas import SearchCodeInput, SearchRepositoriesInput, validate_args
from tools.text import values_of


def bbql_contains(query: str) -> str:
    """BBQL clause matching `query` in the repository name or description."""
    escaped = query.replace("\\", "\\\\").replace('"', '\\"')
    return f'name ~ "{escaped}" OR description ~ "{escaped}"'


def build_code_query(args: SearchCodeInput) -> str:
    query = args.search_query
    if args.repo_slug:
        query += f" repo:{args.repo_slug}"
    if args.language:
        query += f" language:{args.language}"
    if args.extension:
        query += f" extension:{args.extension}"
    return query


async def search_repositories(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(SearchRepositoriesInput, raw)
    data = await client.request_json(
        f"/repositories/{encode_segment(args.workspace)}",
        params={
            "q": bbql_contains(args.query),
            "sort": args.sort or None,
            "page": args.page,
            "pagelen": args.pagelen,
        },
    )

    repos = values_of(data)
    total = f" of {data['size']} total matches" if data.get("size") is not None else ""
    more = " (more results available, use the page parameter)" if data.get("next") else ""
    listing = "\n\n".join(format_repository_line(r) for r in repos) or "No repositories found matching the search query."
    return ToolResult(
        f'Search results for "{args.query}" in {args.workspace} ({len(repos)} results{total}{more}):\n\n{listing}',
        data,
    )


def _format_code_match(result: Mapping[str, Any]) -> str:
    path = (result.get("file") or {}).get("path")
    lines = []
    for match in result.get("content_matches") or []:
        for line in match.get("lines") or []:
            text = "".join(
                f"**{seg.get('text', '')}**" if seg.get("match") else seg.get("text", "")
                for seg in line.get("segments") or []
            )
            lines.append(f"    Line {line.get('line')}: {text}")
    header = f"📄 {path} ({result.get('content_match_count', 0)} matches)"
    return "\n".join([header] + lines)


async def search_code(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(SearchCodeInput, raw)
    data = await client.request_json(
        f"/workspaces/{encode_segment(args.workspace)}/search/code",
        params={"search_query": build_code_query(args), "page": args.page, "pagelen": args.pagelen},
    )

    results = values_of(data)
    if not results:
        return ToolResult(f'No code matches for "{args.search_query}" in {args.workspace}.', data)

    listing = "\n\n".join(_format_code_match(r) for r in results)
    return ToolResult(
        f'Code search results for "{args.search_query}" in {args.workspace} ({len(results)} results):\n\n{listing}',
        data,
    )
