from __future__ import annotations

from whyslow.models.analysis import Seconds

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{max(size, 0)} B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {_UNITS[unit]}"


def format_time(seconds: Seconds) -> str:
    if seconds >= 60:
        minutes = int(seconds // 60)
        rest = seconds - minutes * 60
        if isinstance(rest, float):
            rest = round(rest, 1)
        return f"{minutes}m {rest}s"
    return f"{seconds}s"
