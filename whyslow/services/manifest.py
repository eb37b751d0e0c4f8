"""package.json reading and classification of declared dependencies."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from result import Err, Ok, Result

from whyslow.models.analysis import PackageAnalysis
from whyslow.models.evidence import ManifestAnalysis
from whyslow.models.manifest import Manifest, ManifestError, ManifestErrorCode, ManifestResult
from whyslow.services.knowledge import KnowledgeBase, default_knowledge_base

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"


def read_manifest(path: str | Path) -> ManifestResult:
    """Read ``package.json`` from a project directory (or the file itself)."""
    manifest_path = Path(path)
    if manifest_path.is_dir():
        manifest_path = manifest_path / MANIFEST_NAME

    if not manifest_path.is_file():
        return Err(
            ManifestError(
                code=ManifestErrorCode.NOT_FOUND,
                path=str(manifest_path),
                message=f"{MANIFEST_NAME} not found in {manifest_path.parent}",
            )
        )

    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        return Err(
            ManifestError(
                code=ManifestErrorCode.INVALID,
                path=str(manifest_path),
                message=f"Cannot parse {manifest_path}: {exc}",
            )
        )
    if not isinstance(payload, dict):
        return Err(
            ManifestError(
                code=ManifestErrorCode.INVALID,
                path=str(manifest_path),
                message=f"{manifest_path} must contain a JSON object",
            )
        )
    return Ok(Manifest.from_dict(payload))


def classify_manifest(manifest: Manifest, threshold: float, kb: KnowledgeBase) -> ManifestAnalysis:
    declared = manifest.all_dependencies()
    slow: list[PackageAnalysis] = []
    for name, version in declared.items():
        info = kb.match(name, threshold)
        if info is not None:
            slow.append(PackageAnalysis.from_info(info, version=version))

    # sorted() is stable, so equal estimates keep declaration order.
    slow.sort(key=lambda pkg: pkg.estimated_time, reverse=True)
    logger.debug("Manifest declares %d packages, %d slow", len(declared), len(slow))
    return ManifestAnalysis(total_packages=len(declared), slow_packages=slow)


def analyze_manifest(
    project_dir: str | Path,
    threshold: float = 5,
    kb: KnowledgeBase | None = None,
) -> Result[ManifestAnalysis, ManifestError]:
    knowledge = kb if kb is not None else default_knowledge_base()
    return read_manifest(project_dir).map(lambda manifest: classify_manifest(manifest, threshold, knowledge))
