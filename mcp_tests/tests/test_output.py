import json

import pytest

from core.errors import FilterError, ValidationError
from core.models import OutputOptions, ToolResult
from core.output import apply_filter, extract_output_options, format_result, resolve_format

DATA = {"values": [{"name": "main", "hash": "abc"}, {"name": "dev", "hash": "def"}], "size": 2}
RESULT = ToolResult("Branches:\n- main\n- dev", DATA)


# ---------------------------
# Format precedence
# ---------------------------

@pytest.mark.parametrize(
    "requested, default, expected",
    [
        ("json", "toon", "json"),
        ("text", "json", "text"),
        (None, "json", "json"),
        (None, "toon", "toon"),
        (None, None, "text"),
        ("COMPACT", None, "toon"),
    ],
)
def test_resolve_format_precedence(requested, default, expected):
    assert resolve_format(requested, default) == expected


def test_resolve_format_rejects_unknown():
    with pytest.raises(ValidationError):
        resolve_format("yaml", None)


def test_extract_output_options_strips_option_keys():
    options, remaining = extract_output_options(
        {"workspace": "ws", "output_format": "json", "filter": " values[].name "}, "toon"
    )
    assert options == OutputOptions(format="json", filter="values[].name")
    assert remaining == {"workspace": "ws"}


def test_extract_output_options_defaults_and_blank_filter():
    options, remaining = extract_output_options({"filter": "  "}, None)
    assert options == OutputOptions(format="text", filter=None)
    assert remaining == {}


def test_extract_output_options_rejects_non_string_values():
    with pytest.raises(ValidationError):
        extract_output_options({"output_format": 3})
    with pytest.raises(ValidationError):
        extract_output_options({"filter": ["a"]})


# ---------------------------
# Rendering
# ---------------------------

def test_text_format_returns_display_text():
    assert format_result(RESULT, OutputOptions()) == RESULT.text


def test_json_format_renders_payload():
    assert json.loads(format_result(RESULT, OutputOptions(format="json"))) == DATA


def test_toon_format_renders_payload_compactly():
    out = format_result(RESULT, OutputOptions(format="toon"))
    assert out.startswith("values[2]{name,hash}:")


def test_filter_applies_before_formatting():
    out = format_result(RESULT, OutputOptions(format="json", filter="values[].name"))
    assert json.loads(out) == ["main", "dev"]

    compact = format_result(RESULT, OutputOptions(format="toon", filter="values[?name=='dev']"))
    assert compact == "[1]{name,hash}:\n  dev,def"


def test_filter_in_text_mode_returns_display_text():
    out = format_result(RESULT, OutputOptions(format="text", filter="size"))
    assert out == RESULT.text


def test_filter_in_text_mode_still_validates_expression():
    with pytest.raises(FilterError):
        format_result(RESULT, OutputOptions(format="text", filter="values[?"))


def test_no_payload_falls_back_to_text():
    result = ToolResult("No changes found.")
    assert format_result(result, OutputOptions(format="json", filter="values")) == "No changes found."


def test_invalid_filter_raises_filter_error():
    with pytest.raises(FilterError) as ei:
        apply_filter(DATA, "values[")
    assert "values[" in str(ei.value)
