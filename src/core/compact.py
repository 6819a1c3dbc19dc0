"""Compact, token-efficient text encoding for JSON values (TOON style).

Arrays of uniform flat objects collapse into a header naming the fields
once, followed by one comma-separated row per element:

    values[2]{name,hash}:
      main,abcdef12
      develop,12345678

Objects become indented `key: value` lines, primitive arrays are written
inline (`tags[3]: a,b,c`) and anything irregular falls back to `- ` list
items. Strings are quoted only when they would otherwise be ambiguous.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping, Sequence

INDENT = "  "
DELIMITER = ","

_BARE_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")
_SPECIAL_CHARS = set(':"\\[]{}#') | {DELIMITER}


def _is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _encode_string(value: str) -> str:
    needs_quotes = (
        value == ""
        or value != value.strip()
        or value in ("true", "false", "null")
        or _NUMERIC_RE.match(value) is not None
        or value.startswith("-")
        or any(ch in _SPECIAL_CHARS for ch in value)
        or any(ord(ch) < 32 for ch in value)
    )
    return json.dumps(value, ensure_ascii=False) if needs_quotes else value


def encode_primitive(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return "null"
        return str(int(value)) if value.is_integer() else repr(value)
    return _encode_string(str(value))


def encode_key(key: Any) -> str:
    text = str(key)
    return text if _BARE_KEY_RE.match(text) else json.dumps(text, ensure_ascii=False)


def _tabular_fields(items: Sequence[Any]) -> List[str]:
    """Field names when every item is a flat object with the same keys, else []."""
    if not items or not all(isinstance(item, Mapping) and item for item in items):
        return []
    fields = list(items[0].keys())
    for item in items:
        if set(item.keys()) != set(fields):
            return []
        if not all(_is_primitive(v) for v in item.values()):
            return []
    return [str(f) for f in fields]


def _as_list_item(lines: List[str], depth: int) -> List[str]:
    # Content rendered at depth+1; its first line moves onto the "- " marker
    first = lines[0][len(INDENT) * (depth + 1):]
    return [INDENT * depth + "- " + first] + lines[1:]


def _array_lines(prefix: str, items: Sequence[Any], depth: int) -> List[str]:
    pad = INDENT * depth
    count = len(items)

    if count == 0:
        return [f"{pad}{prefix}[0]:"]

    if all(_is_primitive(item) for item in items):
        row = DELIMITER.join(encode_primitive(item) for item in items)
        return [f"{pad}{prefix}[{count}]: {row}"]

    fields = _tabular_fields(items)
    if fields:
        header = DELIMITER.join(encode_key(f) for f in fields)
        lines = [f"{pad}{prefix}[{count}]{{{header}}}:"]
        for item in items:
            row = DELIMITER.join(encode_primitive(item[f]) for f in fields)
            lines.append(f"{INDENT * (depth + 1)}{row}")
        return lines

    lines = [f"{pad}{prefix}[{count}]:"]
    for item in items:
        lines.extend(_list_item_lines(item, depth + 1))
    return lines


def _list_item_lines(item: Any, depth: int) -> List[str]:
    if _is_primitive(item):
        return [f"{INDENT * depth}- {encode_primitive(item)}"]
    if isinstance(item, Mapping):
        if not item:
            return [f"{INDENT * depth}-"]
        return _as_list_item(_object_lines(item, depth + 1), depth)
    return _as_list_item(_array_lines("", list(item), depth + 1), depth)


def _object_lines(obj: Mapping[str, Any], depth: int) -> List[str]:
    pad = INDENT * depth
    lines: List[str] = []
    for key, value in obj.items():
        name = encode_key(key)
        if _is_primitive(value):
            lines.append(f"{pad}{name}: {encode_primitive(value)}")
        elif isinstance(value, Mapping):
            lines.append(f"{pad}{name}:")
            lines.extend(_object_lines(value, depth + 1))
        else:
            lines.extend(_array_lines(name, list(value), depth))
    return lines


def encode(value: Any) -> str:
    """Encode a JSON-compatible value in the compact tabular format."""
    if _is_primitive(value):
        return encode_primitive(value)
    if isinstance(value, Mapping):
        return "\n".join(_object_lines(value, 0))
    return "\n".join(_array_lines("", list(value), 0))
