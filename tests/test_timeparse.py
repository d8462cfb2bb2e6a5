import math

import pytest

from syncview.timeparse import (
    convert_time_token_to_seconds,
    format_clock,
    format_trim_token,
    hms_to_seconds,
    parse_time_delta,
)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("1149", 1149),
        ("1149s", 1149),
        ("19:09", 19 * 60 + 9),
        ("1:02:03", 1 * 3600 + 2 * 60 + 3),
        ("1h2m3s", 1 * 3600 + 2 * 60 + 3),
        ("3h", 3 * 3600),
    ],
)
def test_convert_time_token_to_seconds(token: str, expected: int) -> None:
    assert convert_time_token_to_seconds(token) == expected


@pytest.mark.parametrize("token", ["", "  ", "soon", "1:2:3:4", "a:10", "-5"])
def test_convert_time_token_rejects_garbage(token: str) -> None:
    with pytest.raises(ValueError):
        convert_time_token_to_seconds(token)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("2.5", 2.5),
        ("2.5s", 2.5),
        ("1:02.5", 62.5),
        ("+2.5", 2.5),
        ("-1", -1.0),
        ("-1m", -60.0),
    ],
)
def test_convert_time_token_decimal_and_delta(token: str, expected: float) -> None:
    if token.startswith(("+", "-")):
        assert parse_time_delta(token) == expected
    else:
        assert convert_time_token_to_seconds(token) == expected


def test_parse_time_delta_requires_sign() -> None:
    with pytest.raises(ValueError, match="must start with"):
        parse_time_delta("10")


def test_hms_to_seconds_rejects_negative_parts() -> None:
    assert hms_to_seconds(1, 2, 3) == 3723
    with pytest.raises(ValueError):
        hms_to_seconds(0, -1, 0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "00:00:00"),
        (59.9, "00:00:59"),
        (3723, "01:02:03"),
        (36000, "10:00:00"),
        (-4, "00:00:00"),
        (math.nan, "00:00:00"),
        (math.inf, "00:00:00"),
    ],
)
def test_format_clock(value: float, expected: str) -> None:
    assert format_clock(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(120, "2m0s"), (185, "3m5s"), (59.9, "0m59s"), (3725, "62m5s"), (math.nan, "0m0s")],
)
def test_format_trim_token(value: float, expected: str) -> None:
    assert format_trim_token(value) == expected
