from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from whyslow.models.analysis import PackageAnalysis
from whyslow.models.enums import LockfileType

MeasureProgress = Callable[[str, int, int], None]


@dataclass(slots=True)
class ManifestAnalysis:
    total_packages: int
    slow_packages: list[PackageAnalysis] = field(default_factory=list)


@dataclass(slots=True)
class LockfileAnalysis:
    lockfile_type: LockfileType
    total_dependencies: int = 0
    packages_with_install_scripts: list[str] = field(default_factory=list)
    slow_packages: list[PackageAnalysis] = field(default_factory=list)
    lockfile_version: int | None = None


@dataclass(slots=True, frozen=True)
class InstalledPackage:
    name: str
    version: str
    size: int
    has_postinstall: bool
    has_node_gyp: bool
    path: str


@dataclass(slots=True, frozen=True)
class MeasurementResult:
    name: str
    version: str
    install_time: float
    size: int
    success: bool
    error: str | None = None
