from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from core.errors import BitbucketMCPError

from .inputs import encode_segment

logger = logging.getLogger(__name__)

RequestJsonFn = Callable[[str], Awaitable[Any]]


async def resolve_ref_to_commit(
    request_json: RequestJsonFn,
    *,
    workspace: str,
    repo_slug: str,
    ref: str,
) -> Optional[str]:
    # /commit/{revision} accepts branch names, tags and hashes alike
    url = f"/repositories/{encode_segment(workspace)}/{encode_segment(repo_slug)}/commit/{encode_segment(ref)}"
    try:
        data = await request_json(url)
    except BitbucketMCPError as e:
        logger.debug("Could not resolve ref %r in %s/%s: %s", ref, workspace, repo_slug, e)
        return None

    sha = data.get("hash") if isinstance(data, dict) else None
    if not isinstance(sha, str) or not sha:
        logger.debug("Commit lookup for %r returned no hash", ref)
        return None
    return sha


async def resolve_default_branch(
    request_json: RequestJsonFn,
    *,
    workspace: str,
    repo_slug: str,
    fallback: str = "main",
) -> str:
    try:
        data = await request_json(f"/repositories/{encode_segment(workspace)}/{encode_segment(repo_slug)}")
    except BitbucketMCPError as e:
        logger.debug("Could not read main branch of %s/%s: %s", workspace, repo_slug, e)
        return fallback

    mainbranch = data.get("mainbranch") if isinstance(data, dict) else None
    name = mainbranch.get("name") if isinstance(mainbranch, dict) else None
    return str(name).strip() if name else fallback
