"""Opt-in retry policy for transient Bitbucket failures.

Disabled unless more than one attempt is configured. When enabled:
- Retry 5xx responses, 429 responses and timeouts.
- Honor Retry-After on 429 when present, otherwise back off exponentially
  (1s, 2s, 4s, ...).
- Bound every sleep to a configurable maximum to avoid long blocking.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional


class RetryPolicy:
    def __init__(self, *, attempts: int = 1, base_delay: float = 1.0, max_sleep_seconds: float = 30.0) -> None:
        self.attempts = max(1, int(attempts))
        self._base_delay = float(base_delay)
        self._max_sleep_seconds = float(max_sleep_seconds)

    @property
    def enabled(self) -> bool:
        return self.attempts > 1

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code >= 500 or status_code == 429

    def delay_for(self, attempt: int, headers: Optional[Mapping[str, str]] = None) -> float:
        # attempt is 1-based: the first retry waits base_delay
        retry_after = self._parse_int_header(headers or {}, "Retry-After")
        if retry_after is not None:
            return min(float(retry_after), self._max_sleep_seconds)
        return min(self._base_delay * (2 ** (attempt - 1)), self._max_sleep_seconds)

    async def sleep(self, attempt: int, headers: Optional[Mapping[str, str]] = None) -> None:
        await asyncio.sleep(self.delay_for(attempt, headers))

    def _parse_int_header(self, headers: Mapping[str, str], name: str) -> Optional[int]:
        value = headers.get(name)
        if not value:
            return None
        value = value.strip()
        if not value.isdigit():
            return None
        return int(value)
