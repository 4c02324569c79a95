import pytest

from app.services.field_values import _parse_json, attempt, looks_like_json, parse_field_value


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("42", "42"),
        ("hello", "hello"),
        ("", ""),
        (" {\"a\": 1}", " {\"a\": 1}"),  # leading space: not sniffed
        ('{"a":1}', {"a": 1}),
        ('[1, "two"]', [1, "two"]),
        ("{broken", "{broken"),
        ("[1,", "[1,"),
    ],
)
def test_parse_field_value(raw, expected):
    assert parse_field_value(raw) == expected


def test_numbers_stay_strings():
    assert isinstance(parse_field_value("42"), str)


def test_looks_like_json():
    assert looks_like_json("{")
    assert looks_like_json("[]")
    assert not looks_like_json("true")


def test_attempt_reports_fallback():
    assert attempt(_parse_json, "{broken") == (False, "{broken")
    assert attempt(_parse_json, "[1]") == (True, [1])
