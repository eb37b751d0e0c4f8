# Analysis pipeline.
#
#   collect_evidence   manifest (always) + lockfile and node_modules (deep mode)
#   aggregate          merge into one AnalysisResult
#   refine             optional: measure the slowest entries with npm and
#                      re-aggregate with the measurements
#
# Only a missing or unreadable manifest is fatal.  A deep-scan or
# measurement failure is logged and the heuristic result is kept.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from result import Err, Ok, Result

from whyslow.config.defaults import default_config
from whyslow.config.schema import AppConfig
from whyslow.models.analysis import AnalysisResult, PackageAnalysis
from whyslow.models.evidence import (
    InstalledPackage,
    LockfileAnalysis,
    ManifestAnalysis,
    MeasurementResult,
    MeasureProgress,
)
from whyslow.models.manifest import ManifestError
from whyslow.scan import ScanProgress, scan_installed
from whyslow.services.aggregate import aggregate
from whyslow.services.installed import analyze_installed, installed_stats
from whyslow.services.knowledge import KnowledgeBase, build_knowledge_base
from whyslow.services.lockfile import analyze_lockfile, lockfile_stats
from whyslow.services.manifest import analyze_manifest
from whyslow.services.measure import ProcessRunner, measure_top_packages

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Evidence:
    manifest: ManifestAnalysis
    lockfile: LockfileAnalysis | None = None
    installed_packages: list[InstalledPackage] | None = None
    installed_findings: list[PackageAnalysis] = field(default_factory=list)

    @property
    def deep(self) -> bool:
        return self.lockfile is not None or self.installed_packages is not None


def collect_evidence(
    project_dir: str | Path,
    config: AppConfig,
    kb: KnowledgeBase,
    deep: bool = False,
    on_scan_progress: ScanProgress | None = None,
) -> Result[Evidence, ManifestError]:
    manifest = analyze_manifest(project_dir, config.threshold, kb)
    if isinstance(manifest, Err):
        return manifest

    evidence = Evidence(manifest=manifest.unwrap())
    if not deep:
        return Ok(evidence)

    try:
        packages = scan_installed(
            project_dir,
            workers=config.scan_workers,
            sample_limit=config.sample_limit,
            progress_callback=on_scan_progress,
        )
        findings = analyze_installed(packages, config.threshold, kb)
        lockfile = analyze_lockfile(project_dir, config.threshold, kb)
    except Exception:  # noqa: BLE001
        # Deep evidence is optional; fall back to the manifest-only view.
        logger.warning("Deep scan of %s failed; using manifest data only", project_dir, exc_info=True)
        return Ok(evidence)

    evidence.installed_packages = packages
    evidence.installed_findings = findings
    evidence.lockfile = lockfile
    return Ok(evidence)


def build_result(
    evidence: Evidence,
    config: AppConfig,
    measurements: list[MeasurementResult] | None = None,
) -> AnalysisResult:
    if not evidence.deep:
        return aggregate(evidence.manifest, measurements=measurements)

    packages = evidence.installed_packages or []
    return aggregate(
        evidence.manifest,
        lockfile=evidence.lockfile,
        installed=evidence.installed_findings,
        measurements=measurements,
        installed_count=len(packages),
        node_modules_stats=installed_stats(packages, config.top_count),
        lockfile_stats=lockfile_stats(evidence.lockfile) if evidence.lockfile is not None else None,
    )


def analyze_project(
    project_dir: str | Path,
    config: AppConfig | None = None,
    *,
    deep: bool = False,
    kb: KnowledgeBase | None = None,
) -> Result[AnalysisResult, ManifestError]:
    cfg = config if config is not None else default_config()
    knowledge = kb if kb is not None else build_knowledge_base(cfg)
    return collect_evidence(project_dir, cfg, knowledge, deep).map(lambda ev: build_result(ev, cfg))


async def refine_with_measurements(
    evidence: Evidence,
    result: AnalysisResult,
    config: AppConfig,
    on_progress: MeasureProgress | None = None,
    runner: ProcessRunner | None = None,
) -> AnalysisResult:
    """Measure the slowest entries of *result* and re-aggregate with the timings.

    Failed measurements leave the heuristic estimate untouched.
    """
    if not result.slow_packages:
        return result
    try:
        measurements = await measure_top_packages(
            result.slow_packages,
            limit=config.measure_limit,
            timeout=config.measure_timeout,
            on_progress=on_progress,
            runner=runner,
        )
    except Exception:  # noqa: BLE001
        logger.warning("Measurement failed; keeping heuristic estimates", exc_info=True)
        return result

    failed = [item.name for item in measurements if not item.success]
    if failed:
        logger.info("Could not measure: %s", ", ".join(failed))
    return build_result(evidence, config, measurements)
