"""Tool dispatch: name lookup, output options, error reporting.

Every call ends in a `CallToolResult` with a single text block. Failures
never escape as protocol errors; they are rendered as "Error: <message>"
(plus a "Suggestion:" line when one is known) with `isError` set.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import mcp.types as types

from core.errors import BitbucketMCPError, UnknownToolError
from core.output import extract_output_options, format_result
from tools.registry import BoundTool

logger = logging.getLogger(__name__)


def text_result(text: str, *, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=is_error)


def error_text(error: BaseException) -> str:
    text = f"Error: {error}"
    suggestion = getattr(error, "suggestion", None)
    if suggestion:
        text += f"\nSuggestion: {suggestion}"
    return text


class Dispatcher:
    def __init__(self, tools: Mapping[str, BoundTool], *, default_format: Optional[str] = None) -> None:
        self._tools = dict(tools)
        self._default_format = default_format

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[types.Tool]:
        return [
            types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in self._tools.values()
        ]

    async def handle_tool_call(self, name: str, arguments: Optional[Mapping[str, Any]]) -> types.CallToolResult:
        try:
            tool = self._tools.get(name)
            if tool is None:
                raise UnknownToolError(f"Unknown tool: {name}")

            options, remaining = extract_output_options(arguments, self._default_format)
            logger.debug("Calling %s (format=%s, filter=%r)", name, options.format, options.filter)
            result = await tool.handler(remaining)
            return text_result(format_result(result, options))
        except BitbucketMCPError as e:
            logger.info("Tool %s failed: %s", name, e)
            return text_result(error_text(e), is_error=True)
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return text_result(error_text(e), is_error=True)
