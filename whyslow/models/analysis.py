from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whyslow.models.enums import LockfileType, Priority, SlowReason, SuggestionType

# Heuristic estimates are whole seconds; measured times keep one decimal.
type Seconds = int | float


@dataclass(slots=True, frozen=True)
class SlowPackageInfo:
    name: str
    reason: SlowReason
    estimated_time: int
    alternative: str | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "reason": self.reason.value,
            "estimatedTime": self.estimated_time,
        }
        if self.alternative is not None:
            data["alternative"] = self.alternative
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SlowPackageInfo:
        estimated = int(payload["estimatedTime"])
        if estimated <= 0:
            msg = f"estimatedTime for {payload['name']} must be positive, got {estimated}"
            raise ValueError(msg)
        alternative = payload.get("alternative")
        note = payload.get("note")
        return cls(
            name=str(payload["name"]),
            reason=SlowReason(str(payload["reason"])),
            estimated_time=estimated,
            alternative=str(alternative) if alternative is not None else None,
            note=str(note) if note is not None else None,
        )


@dataclass(slots=True)
class PackageAnalysis:
    name: str
    estimated_time: Seconds
    reason: SlowReason
    version: str | None = None
    is_slow_package: bool = True
    alternative: str | None = None
    note: str | None = None
    has_postinstall: bool = False

    @classmethod
    def from_info(
        cls,
        info: SlowPackageInfo,
        version: str | None = None,
        has_postinstall: bool = False,
    ) -> PackageAnalysis:
        return cls(
            name=info.name,
            version=version,
            estimated_time=info.estimated_time,
            reason=info.reason,
            alternative=info.alternative,
            note=info.note,
            has_postinstall=has_postinstall,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.version is not None:
            data["version"] = self.version
        data["isSlowPackage"] = self.is_slow_package
        data["estimatedTime"] = self.estimated_time
        data["reason"] = self.reason.value
        if self.alternative is not None:
            data["alternative"] = self.alternative
        if self.note is not None:
            data["note"] = self.note
        if self.has_postinstall:
            data["hasPostinstall"] = True
        return data


@dataclass(slots=True, frozen=True)
class Suggestion:
    type: SuggestionType
    package_name: str
    current_time: Seconds
    suggestion: str
    potential_savings: Seconds
    priority: Priority

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "packageName": self.package_name,
            "currentTime": self.current_time,
            "suggestion": self.suggestion,
            "potentialSavings": self.potential_savings,
            "priority": self.priority.value,
        }


@dataclass(slots=True, frozen=True)
class PackageSize:
    name: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "size": self.size}


@dataclass(slots=True)
class NodeModulesStats:
    total_packages: int = 0
    total_size: int = 0
    largest_packages: list[PackageSize] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalPackages": self.total_packages,
            "totalSize": self.total_size,
            "largestPackages": [item.to_dict() for item in self.largest_packages],
        }


@dataclass(slots=True)
class LockfileStats:
    lockfile_type: LockfileType = LockfileType.NONE
    total_deps: int = 0
    install_script_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "lockfileType": self.lockfile_type.value,
            "totalDeps": self.total_deps,
            "installScriptCount": self.install_script_count,
        }


@dataclass(slots=True)
class AnalysisResult:
    total_packages: int = 0
    slow_packages: list[PackageAnalysis] = field(default_factory=list)
    estimated_total_time: Seconds = 0
    suggestions: list[Suggestion] = field(default_factory=list)
    potential_savings: Seconds = 0
    node_modules_stats: NodeModulesStats | None = None
    lockfile_stats: LockfileStats | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalPackages": self.total_packages,
            "slowPackages": [pkg.to_dict() for pkg in self.slow_packages],
            "estimatedTotalTime": self.estimated_total_time,
            "potentialSavings": self.potential_savings,
            "suggestions": [item.to_dict() for item in self.suggestions],
        }
        if self.node_modules_stats is not None:
            data["nodeModulesStats"] = self.node_modules_stats.to_dict()
        if self.lockfile_stats is not None:
            data["lockfileStats"] = self.lockfile_stats.to_dict()
        return data
