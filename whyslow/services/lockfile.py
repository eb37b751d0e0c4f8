"""Lockfile analysis: resolved dependency counts, install scripts and known-slow packages.

Supported shapes:

  package-lock.json / npm-shrinkwrap.json
      lockfileVersion 2/3: flat ``packages`` map keyed by install path
      (``node_modules/a/node_modules/b``).  Preferred when present.
      lockfileVersion 1: nested ``dependencies`` tree.
  yarn.lock
      Line heuristic only. A declaration line starts with an optional
      quote, the package name (optionally ``@scope/``-prefixed) and ``@``.
      Multi-line or oddly quoted declarations are not handled.
  pnpm-lock.yaml
      Detected and reported, contents not parsed.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from whyslow.models.analysis import LockfileStats, PackageAnalysis
from whyslow.models.enums import LockfileType
from whyslow.models.evidence import LockfileAnalysis
from whyslow.services.knowledge import KnowledgeBase, default_knowledge_base

logger = logging.getLogger(__name__)

# Detection order: first existing file wins.
LOCKFILES: tuple[tuple[str, LockfileType], ...] = (
    ("package-lock.json", LockfileType.NPM),
    ("npm-shrinkwrap.json", LockfileType.NPM),
    ("yarn.lock", LockfileType.YARN),
    ("pnpm-lock.yaml", LockfileType.PNPM),
)

_NODE_MODULES = "node_modules/"
_YARN_DECLARATION = re.compile(r'^"?(@?[^@\s"]+)@')


class _Collector:
    """Accumulates findings for one lockfile, deduplicating by package name."""

    __slots__ = ("_kb", "_threshold", "_slow", "_slow_names", "_scripts")

    def __init__(self, kb: KnowledgeBase, threshold: float) -> None:
        self._kb = kb
        self._threshold = threshold
        self._slow: list[PackageAnalysis] = []
        self._slow_names: set[str] = set()
        # dict as an insertion-ordered set
        self._scripts: dict[str, None] = {}

    def add(self, name: str, version: str | None, has_install_script: bool) -> None:
        if has_install_script:
            self._scripts.setdefault(name, None)
        if name in self._slow_names:
            return
        info = self._kb.match(name, self._threshold)
        if info is not None:
            self._slow_names.add(name)
            self._slow.append(PackageAnalysis.from_info(info, version=version, has_postinstall=has_install_script))

    def finish(
        self,
        lockfile_type: LockfileType,
        total: int,
        lockfile_version: int | None = None,
    ) -> LockfileAnalysis:
        slow = sorted(self._slow, key=lambda pkg: pkg.estimated_time, reverse=True)
        return LockfileAnalysis(
            lockfile_type=lockfile_type,
            lockfile_version=lockfile_version,
            total_dependencies=total,
            packages_with_install_scripts=list(self._scripts),
            slow_packages=slow,
        )


def extract_package_name(install_path: str) -> str | None:
    """``node_modules/a/node_modules/@s/b`` -> ``@s/b``; None for non-installed paths."""
    start = install_path.find(_NODE_MODULES)
    if start == -1:
        return None
    name = install_path[start + len(_NODE_MODULES) :].rsplit("/" + _NODE_MODULES, 1)[-1]
    return name or None


def _version_of(entry: dict[str, Any]) -> str | None:
    version = entry.get("version")
    return str(version) if version is not None else None


def _parse_flat(packages: dict[str, Any], collector: _Collector) -> int:
    names: set[str] = set()
    for install_path, entry in packages.items():
        if install_path == "" or not isinstance(entry, dict):
            continue
        name = extract_package_name(install_path)
        if name is None:
            continue
        names.add(name)
        collector.add(name, _version_of(entry), bool(entry.get("hasInstallScript")))
    return len(names)


def _parse_nested(dependencies: dict[str, Any], collector: _Collector) -> int:
    # Every node counts, including nested duplicates of a top-level name.
    def walk(deps: dict[str, Any]) -> int:
        count = 0
        for name, entry in deps.items():
            if not isinstance(entry, dict):
                continue
            count += 1
            collector.add(name, _version_of(entry), bool(entry.get("hasInstallScript")))
            nested = entry.get("dependencies")
            if isinstance(nested, dict):
                count += walk(nested)
        return count

    return walk(dependencies)


def analyze_npm_lockfile(path: Path, threshold: float, kb: KnowledgeBase) -> LockfileAnalysis:
    collector = _Collector(kb, threshold)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable lockfile %s: %s", path, exc)
        return collector.finish(LockfileType.NPM, 0)
    if not isinstance(payload, dict):
        logger.warning("Ignoring lockfile %s: expected a JSON object", path)
        return collector.finish(LockfileType.NPM, 0)

    raw_version = payload.get("lockfileVersion")
    lockfile_version = raw_version if isinstance(raw_version, int) else None

    packages = payload.get("packages")
    dependencies = payload.get("dependencies")
    if isinstance(packages, dict):
        total = _parse_flat(packages, collector)
    elif isinstance(dependencies, dict):
        total = _parse_nested(dependencies, collector)
    else:
        total = 0
    return collector.finish(LockfileType.NPM, total, lockfile_version)


def parse_yarn_lock(text: str) -> list[str]:
    """Distinct package names declared in a yarn.lock, in file order."""
    names: dict[str, None] = {}
    for line in text.splitlines():
        match = _YARN_DECLARATION.match(line)
        if match:
            names.setdefault(match.group(1), None)
    return list(names)


def analyze_yarn_lockfile(path: Path, threshold: float, kb: KnowledgeBase) -> LockfileAnalysis:
    collector = _Collector(kb, threshold)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable lockfile %s: %s", path, exc)
        return collector.finish(LockfileType.YARN, 0)

    names = parse_yarn_lock(text)
    for name in names:
        # yarn.lock carries no install-script data.
        collector.add(name, None, False)
    return collector.finish(LockfileType.YARN, len(names))


def detect_lockfile(project_dir: str | Path) -> tuple[Path, LockfileType] | None:
    root = Path(project_dir)
    for filename, lockfile_type in LOCKFILES:
        candidate = root / filename
        if candidate.is_file():
            return candidate, lockfile_type
    return None


def analyze_lockfile(
    project_dir: str | Path,
    threshold: float = 5,
    kb: KnowledgeBase | None = None,
) -> LockfileAnalysis:
    knowledge = kb if kb is not None else default_knowledge_base()
    detected = detect_lockfile(project_dir)
    if detected is None:
        return LockfileAnalysis(lockfile_type=LockfileType.NONE)

    path, lockfile_type = detected
    logger.debug("Using %s lockfile %s", lockfile_type.value, path)
    if lockfile_type is LockfileType.NPM:
        return analyze_npm_lockfile(path, threshold, knowledge)
    if lockfile_type is LockfileType.YARN:
        return analyze_yarn_lockfile(path, threshold, knowledge)
    return LockfileAnalysis(lockfile_type=lockfile_type)


def lockfile_stats(analysis: LockfileAnalysis) -> LockfileStats:
    return LockfileStats(
        lockfile_type=analysis.lockfile_type,
        total_deps=analysis.total_dependencies,
        install_script_count=len(analysis.packages_with_install_scripts),
    )
