import pytest

from core import compact


def test_uniform_objects_become_a_table():
    data = {
        "size": 2,
        "values": [
            {"name": "main", "hash": "abcdef12"},
            {"name": "develop", "hash": "12345678"},
        ],
    }
    assert compact.encode(data) == (
        "size: 2\n"
        "values[2]{name,hash}:\n"
        "  main,abcdef12\n"
        "  develop,\"12345678\""
    )


def test_primitive_and_empty_arrays_are_inline():
    assert compact.encode({"tags": ["a", "b", "c"], "none": []}) == "tags[3]: a,b,c\nnone[0]:"


def test_nested_objects_are_indented():
    data = {"repo": {"name": "widgets", "owner": {"slug": "acme"}}, "private": True}
    assert compact.encode(data) == "repo:\n  name: widgets\n  owner:\n    slug: acme\nprivate: true"


def test_irregular_arrays_fall_back_to_list_items():
    data = {"values": [{"id": 1, "user": {"name": "x"}}, "loose"]}
    assert compact.encode(data) == (
        "values[2]:\n"
        "  - id: 1\n"
        "    user:\n"
        "      name: x\n"
        "  - loose"
    )


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "null"),
        (False, "false"),
        (3, "3"),
        (2.0, "2"),
        (1.5, "1.5"),
        ("plain text", "plain text"),
        ("", '""'),
        ("true", '"true"'),
        ("42", '"42"'),
        ("a,b", '"a,b"'),
        ("key: value", '"key: value"'),
        (" padded", '" padded"'),
        ("-dash", '"-dash"'),
        ("line\nbreak", '"line\\nbreak"'),
    ],
)
def test_primitive_quoting(value, expected):
    assert compact.encode_primitive(value) == expected


def test_keys_with_special_characters_are_quoted():
    assert compact.encode({"full name": "x", "ok_key": 1}) == '"full name": x\nok_key: 1'


def test_top_level_primitives_and_lists():
    assert compact.encode("hello") == "hello"
    assert compact.encode([1, 2]) == "[2]: 1,2"
    assert compact.encode([{"a": 1}, {"a": 2}]) == "[2]{a}:\n  1\n  2"
