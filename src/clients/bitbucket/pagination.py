"""Pagination walker for Bitbucket collection endpoints.

Bitbucket pages carry their items under `values` and an absolute URL of
the following page under `next`. Pages are fetched strictly in order and
never in parallel, so the accumulated items keep server order.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List

from .inputs import MAX_PAGES

logger = logging.getLogger(__name__)

RequestJsonFn = Callable[[str], Awaitable[Any]]


async def fetch_all_pages(request_json: RequestJsonFn, url: str, *, max_pages: int = MAX_PAGES) -> List[Any]:
    """Follow `next` links from `url` and return every page's `values`.

    Stops after `max_pages` fetches; hitting the ceiling is not an error,
    the items gathered so far are returned.
    """
    items: List[Any] = []
    current = url
    pages = 0

    while current:
        if pages >= max_pages:
            logger.warning("Reached max page limit (%d); returning %d items", max_pages, len(items))
            break

        page = await request_json(current)
        pages += 1

        values = page.get("values") if isinstance(page, dict) else None
        if values:
            items.extend(values)

        next_link = page.get("next") if isinstance(page, dict) else None
        current = next_link if isinstance(next_link, str) and next_link else None

    return items
