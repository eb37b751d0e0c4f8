from __future__ import annotations

from whyslow.scan.installed import (
    DEFAULT_SAMPLE_LIMIT,
    NODE_MODULES,
    ScanProgress,
    approximate_size,
    list_package_dirs,
    read_installed_package,
    scan_installed,
)

__all__ = [
    "DEFAULT_SAMPLE_LIMIT",
    "NODE_MODULES",
    "ScanProgress",
    "approximate_size",
    "list_package_dirs",
    "read_installed_package",
    "scan_installed",
]
