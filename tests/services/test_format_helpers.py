from __future__ import annotations

import pytest

from whyslow.services.formatting import format_bytes, format_time


class TestFormatBytes:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 B"),
            (1, "1 B"),
            (512, "512 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**3, "3.0 GB"),
        ],
    )
    def test_values(self, size: int, expected: str) -> None:
        assert format_bytes(size) == expected


class TestFormatTime:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0s"), (45, "45s"), (60, "1m 0s"), (65, "1m 5s"), (125, "2m 5s"), (12.3, "12.3s"), (90.5, "1m 30.5s")],
    )
    def test_values(self, seconds: float, expected: str) -> None:
        assert format_time(seconds) == expected
