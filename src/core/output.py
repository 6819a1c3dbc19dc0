"""Output formatting for tool results.

Splits the formatting options off a call's arguments, applies an optional
JMESPath filter to the structured payload and renders the result as plain
text, indented JSON or the compact tabular encoding.

Format precedence: per-call `output_format` > process default > "text".
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import jmespath
from jmespath.exceptions import JMESPathError

from config import OUTPUT_FORMATS, normalize_format
from core import compact
from core.errors import FilterError, ValidationError
from core.models import OutputOptions, ToolResult

logger = logging.getLogger(__name__)

FORMAT_ARG = "output_format"
FILTER_ARG = "filter"


def resolve_format(requested: Optional[str], default_format: Optional[str]) -> str:
    if requested is not None:
        fmt = normalize_format(requested)
        if fmt is None:
            raise ValidationError(
                f"Invalid output_format {requested!r}: expected one of {', '.join(OUTPUT_FORMATS)}"
            )
        return fmt
    return normalize_format(default_format) or "text"


def extract_output_options(
    arguments: Optional[Mapping[str, Any]],
    default_format: Optional[str] = None,
) -> Tuple[OutputOptions, Dict[str, Any]]:
    """Return the output options and the arguments without them."""
    remaining = dict(arguments or {})
    requested = remaining.pop(FORMAT_ARG, None)
    expression = remaining.pop(FILTER_ARG, None)

    if requested is not None and not isinstance(requested, str):
        raise ValidationError("output_format: expected a string")
    if expression is not None and not isinstance(expression, str):
        raise ValidationError("filter: expected a string")

    expression = expression.strip() if expression else None
    options = OutputOptions(format=resolve_format(requested, default_format), filter=expression or None)
    return options, remaining


def apply_filter(data: Any, expression: str) -> Any:
    try:
        return jmespath.search(expression, data)
    except JMESPathError as e:
        raise FilterError(f"Invalid JMESPath expression {expression!r}: {e}") from e


def to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def format_result(result: ToolResult, options: OutputOptions) -> str:
    if not result.has_data:
        if options.format != "text" or options.filter:
            logger.debug("No structured data available; returning text output")
        return result.text

    data = result.data
    if options.filter:
        # Evaluated even in text mode so a bad expression is still reported
        data = apply_filter(data, options.filter)

    if options.format == "json":
        return to_json(data)
    if options.format == "toon":
        return compact.encode(data)
    return result.text
