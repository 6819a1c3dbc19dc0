import pytest

from clients.bitbucket.inputs import build_params, clamp, encode_path, encode_segment, normalize_uuid


@pytest.mark.parametrize("value, expected", [(0, 1), (-5, 1), (10, 10), (100, 100), (101, 100), (9999, 100)])
def test_clamp(value, expected):
    assert clamp(value, 100) == expected


def test_encode_segment_encodes_slashes_and_spaces():
    assert encode_segment("feature/x y") == "feature%2Fx%20y"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("/src/app main.py/", "src/app%20main.py"),
        ("a//b", "a/b"),
        ("", ""),
        ("  docs/", "docs"),
    ],
)
def test_encode_path(raw, expected):
    assert encode_path(raw) == expected


@pytest.mark.parametrize("raw, expected", [("abc", "{abc}"), ("{abc}", "{abc}"), (" abc ", "{abc}")])
def test_normalize_uuid(raw, expected):
    assert normalize_uuid(raw) == expected


def test_build_params_drops_none_clamps_and_stringifies_bools():
    out = build_params({"page": 2, "pagelen": 250, "state": None, "topic": True, "ignore_whitespace": False})
    assert out == {"page": 2, "pagelen": 100, "topic": "true", "ignore_whitespace": "false"}
