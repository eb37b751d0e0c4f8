from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whyslow.models.analysis import SlowPackageInfo

# (json_key, attr_name, minimum), shared by from_dict and CLI override clamping.
_INT_FIELDS: tuple[tuple[str, str, int], ...] = (
    ("threshold", "threshold", 0),
    ("measureLimit", "measure_limit", 1),
    ("scanWorkers", "scan_workers", 1),
    ("sampleLimit", "sample_limit", 1),
    ("topCount", "top_count", 1),
)


def clamp_field(value: int, field_name: str) -> int:
    """Clamp *value* to the minimum defined for *field_name* in _INT_FIELDS."""
    for _, attr, minimum in _INT_FIELDS:
        if attr == field_name:
            return max(minimum, value)
    return value


def _get_int(data: dict[str, Any], json_key: str, default: int, minimum: int) -> int:
    return max(minimum, int(data.get(json_key, default)))


@dataclass(slots=True)
class AppConfig:
    threshold: int = 5
    measure_limit: int = 5
    measure_timeout: float = 60.0
    scan_workers: int = 4
    sample_limit: int = 100
    top_count: int = 10
    extra_packages: list[SlowPackageInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "threshold": self.threshold,
            "measureLimit": self.measure_limit,
            "measureTimeout": self.measure_timeout,
            "scanWorkers": self.scan_workers,
            "sampleLimit": self.sample_limit,
            "topCount": self.top_count,
            "extraPackages": [info.to_dict() for info in self.extra_packages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: AppConfig) -> AppConfig:
        extra_raw = data.get("extraPackages")
        if extra_raw is not None:
            extra_packages = [SlowPackageInfo.from_dict(x) for x in extra_raw]
        else:
            extra_packages = list(defaults.extra_packages)

        timeout = float(data.get("measureTimeout", defaults.measure_timeout))
        if timeout <= 0:
            timeout = defaults.measure_timeout

        int_kwargs: dict[str, int] = {}
        for json_key, attr, minimum in _INT_FIELDS:
            int_kwargs[attr] = _get_int(data, json_key, getattr(defaults, attr), minimum)

        return cls(
            measure_timeout=timeout,
            extra_packages=extra_packages,
            **int_kwargs,
        )
