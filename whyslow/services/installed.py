from __future__ import annotations

import heapq
import math

from whyslow.models.analysis import NodeModulesStats, PackageAnalysis, PackageSize
from whyslow.models.enums import SlowReason
from whyslow.models.evidence import InstalledPackage
from whyslow.services.knowledge import KnowledgeBase, default_knowledge_base

MIB = 1024 * 1024
NATIVE_BUILD_SECONDS = 10
LARGE_PACKAGE_BYTES = 10 * MIB
BYTES_PER_SECOND = 5 * MIB

NATIVE_BUILD_NOTE = "Contains native bindings (detected binding.gyp or node-gyp dependency)"
LARGE_SCRIPT_NOTE = "Has postinstall script and large package size"


def classify_installed(pkg: InstalledPackage, threshold: float, kb: KnowledgeBase) -> PackageAnalysis | None:
    """Classify one installed package; the first matching rule wins.

    1. Known-slow entry meeting the threshold.
    2. Native-build marker: fixed estimate.
    3. Install script on a package larger than 10 MiB: one second per 5 MiB.
    """
    info = kb.match(pkg.name, threshold)
    if info is not None:
        return PackageAnalysis.from_info(info, version=pkg.version, has_postinstall=pkg.has_postinstall)

    if pkg.has_node_gyp:
        return PackageAnalysis(
            name=pkg.name,
            version=pkg.version,
            estimated_time=NATIVE_BUILD_SECONDS,
            reason=SlowReason.NATIVE_COMPILATION,
            note=NATIVE_BUILD_NOTE,
            has_postinstall=pkg.has_postinstall,
        )

    if pkg.has_postinstall and pkg.size > LARGE_PACKAGE_BYTES:
        return PackageAnalysis(
            name=pkg.name,
            version=pkg.version,
            estimated_time=math.ceil(pkg.size / BYTES_PER_SECOND),
            reason=SlowReason.POSTINSTALL,
            note=LARGE_SCRIPT_NOTE,
            has_postinstall=True,
        )
    return None


def analyze_installed(
    packages: list[InstalledPackage],
    threshold: float = 5,
    kb: KnowledgeBase | None = None,
) -> list[PackageAnalysis]:
    knowledge = kb if kb is not None else default_knowledge_base()
    seen: set[str] = set()
    slow: list[PackageAnalysis] = []
    for pkg in packages:
        if pkg.name in seen:
            continue
        analysis = classify_installed(pkg, threshold, knowledge)
        if analysis is not None:
            seen.add(pkg.name)
            slow.append(analysis)
    slow.sort(key=lambda item: item.estimated_time, reverse=True)
    return slow


def installed_stats(packages: list[InstalledPackage], top: int = 10) -> NodeModulesStats:
    largest = heapq.nlargest(top, packages, key=lambda pkg: pkg.size)
    return NodeModulesStats(
        total_packages=len(packages),
        total_size=sum(pkg.size for pkg in packages),
        largest_packages=[PackageSize(name=pkg.name, size=pkg.size) for pkg in largest],
    )
