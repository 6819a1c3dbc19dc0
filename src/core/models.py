"""Immutable dataclasses passed between handlers, formatter and dispatcher.

`ToolResult` is what every tool handler returns: display text that is
always present, plus an optional structured payload that enables the
JSON / compact renderings and filter expressions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Mapping, Optional


OutputFormat = Literal["text", "json", "toon"]


@dataclass(frozen=True)
class ToolResult:
    """Result of one tool invocation.

    Field groups:
    - text: human-readable rendering (default output)
    - data: structured API payload, or None when the tool has none
    """

    text: str
    data: Optional[Any] = None

    @property
    def has_data(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class OutputOptions:
    format: OutputFormat = "text"
    filter: Optional[str] = None


ToolHandler = Callable[[Mapping[str, Any]], Awaitable[ToolResult]]
