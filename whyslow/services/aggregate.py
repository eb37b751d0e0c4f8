from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from whyslow.models.analysis import AnalysisResult, LockfileStats, NodeModulesStats, PackageAnalysis
from whyslow.models.evidence import LockfileAnalysis, ManifestAnalysis, MeasurementResult
from whyslow.services.suggestions import generate_suggestions, total_savings


def measured_note(install_time: float) -> str:
    return f"Measured: {install_time}s"


def aggregate(
    manifest: ManifestAnalysis,
    lockfile: LockfileAnalysis | None = None,
    installed: list[PackageAnalysis] | None = None,
    measurements: Iterable[MeasurementResult] | None = None,
    *,
    installed_count: int | None = None,
    node_modules_stats: NodeModulesStats | None = None,
    lockfile_stats: LockfileStats | None = None,
) -> AnalysisResult:
    """Merge every evidence source into one deduplicated, ranked result.

    Authority order for a package reported by several sources:
      measurement > manifest > installed tree > lockfile.
    Manifest records are never overwritten by deep-scan records; a
    successful measurement overwrites the estimate and note of whichever
    record holds the name.

    Inputs are not mutated: every record is copied before merging, so the
    same evidence always aggregates to the same result.
    """
    merged: list[PackageAnalysis] = []
    index: dict[str, PackageAnalysis] = {}

    def _add(records: Iterable[PackageAnalysis]) -> None:
        for record in records:
            if record.name in index:
                continue
            copy = replace(record)
            index[copy.name] = copy
            merged.append(copy)

    _add(manifest.slow_packages)
    if installed is not None:
        _add(installed)
    if lockfile is not None:
        _add(lockfile.slow_packages)

    if measurements is not None:
        for measurement in measurements:
            if not measurement.success:
                continue
            target = index.get(measurement.name)
            if target is not None:
                target.estimated_time = measurement.install_time
                target.note = measured_note(measurement.install_time)

    # Stable: equal estimates keep merge order.
    merged.sort(key=lambda pkg: pkg.estimated_time, reverse=True)

    # Overlapping views of one dependency graph: take the widest, never the sum.
    counts = [manifest.total_packages]
    if lockfile is not None:
        counts.append(lockfile.total_dependencies)
    if installed_count is not None:
        counts.append(installed_count)
    elif node_modules_stats is not None:
        counts.append(node_modules_stats.total_packages)

    suggestions = generate_suggestions(merged)
    return AnalysisResult(
        total_packages=max(counts),
        slow_packages=merged,
        estimated_total_time=sum(pkg.estimated_time for pkg in merged),
        suggestions=suggestions,
        potential_savings=total_savings(suggestions),
        node_modules_stats=node_modules_stats,
        lockfile_stats=lockfile_stats,
    )
