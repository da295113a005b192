import pytest

from app.services.formatting import format_bytes, format_time_until_reset

NOW = 1_700_000_000_000


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0 B"),
        (1, "1.0 B"),
        (1023, "1023.0 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (20 * 1024 * 1024, "20.0 MB"),
        (5_000_000, "4.8 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
        (2048 * 1024 ** 3, "2048.0 GB"),
    ],
)
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


def test_reset_in_the_past_is_now():
    assert format_time_until_reset(NOW - 1, now=NOW) == "now"
    assert format_time_until_reset(NOW, now=NOW) == "now"


def test_reset_with_minutes():
    assert format_time_until_reset(NOW + 90_000, now=NOW) == "1m 30s"
    assert format_time_until_reset(NOW + 30 * 60_000, now=NOW) == "30m 0s"


def test_reset_under_a_minute():
    assert format_time_until_reset(NOW + 59_999, now=NOW) == "59s"
    assert format_time_until_reset(NOW + 500, now=NOW) == "0s"


def test_reset_defaults_to_wall_clock():
    assert format_time_until_reset(0) == "now"
