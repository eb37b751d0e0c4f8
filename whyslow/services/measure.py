"""Real install-time measurement through npm.

Each package is installed on its own, with lifecycle scripts disabled, into a
fresh scratch project that is removed on every exit path.  Packages are
measured one after the other: concurrent installs would compete for network
and disk and skew every timing.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from whyslow.models.analysis import PackageAnalysis
from whyslow.models.evidence import MeasurementResult, MeasureProgress

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_MEASURE_LIMIT = 5
NPM_INSTALL_FLAGS = ("--no-audit", "--no-fund", "--ignore-scripts")
EXIT_NOT_FOUND = 127


@dataclass(slots=True, frozen=True)
class ProcessOutcome:
    exit_code: int
    killed: bool = False


class ProcessRunner(Protocol):
    async def run(self, command: str, args: Sequence[str], cwd: str, timeout: float) -> ProcessOutcome: ...


class AsyncioProcessRunner:
    """Runs a command with asyncio, killing it when *timeout* seconds elapse."""

    async def run(self, command: str, args: Sequence[str], cwd: str, timeout: float) -> ProcessOutcome:
        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError:
            return ProcessOutcome(exit_code=EXIT_NOT_FOUND)

        try:
            exit_code = await asyncio.wait_for(proc.wait(), timeout=timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            return ProcessOutcome(exit_code=proc.returncode if proc.returncode is not None else -1, killed=True)
        return ProcessOutcome(exit_code=exit_code)


def directory_size(path: str | Path) -> int:
    """Full recursive byte count of regular files under *path* (no symlinks followed)."""
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for filename in filenames:
            try:
                st = os.lstat(os.path.join(dirpath, filename))
            except OSError:
                continue
            total += st.st_size
    return total


def _installed_version(node_modules: Path, package_name: str) -> str:
    try:
        payload = json.loads((node_modules / package_name / "package.json").read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return "unknown"
    version = payload.get("version") if isinstance(payload, dict) else None
    return str(version) if version else "unknown"


def _failure(package_name: str, error: str) -> MeasurementResult:
    return MeasurementResult(
        name=package_name,
        version="unknown",
        install_time=0.0,
        size=0,
        success=False,
        error=error,
    )


async def measure_package(
    package_name: str,
    timeout: float = DEFAULT_TIMEOUT,
    runner: ProcessRunner | None = None,
) -> MeasurementResult:
    proc_runner = runner if runner is not None else AsyncioProcessRunner()
    with tempfile.TemporaryDirectory(prefix="whyslow-") as scratch:
        scratch_dir = Path(scratch)
        (scratch_dir / "package.json").write_text(
            json.dumps({"name": "measure-temp", "version": "1.0.0", "private": True}),
            encoding="utf-8",
        )

        started = time.perf_counter()
        try:
            outcome = await proc_runner.run(
                "npm",
                ["install", package_name, *NPM_INSTALL_FLAGS],
                str(scratch_dir),
                timeout,
            )
        except OSError as exc:
            logger.warning("Could not start npm for %s: %s", package_name, exc)
            return _failure(package_name, str(exc))
        elapsed = time.perf_counter() - started

        if outcome.killed:
            logger.warning("Measuring %s timed out after %.0fs", package_name, timeout)
            return _failure(package_name, "Timeout")
        if outcome.exit_code != 0:
            logger.warning("npm install %s exited with code %d", package_name, outcome.exit_code)
            return _failure(package_name, f"Exit code {outcome.exit_code}")

        node_modules = scratch_dir / "node_modules"
        return MeasurementResult(
            name=package_name,
            version=_installed_version(node_modules, package_name),
            install_time=round(elapsed, 1),
            size=directory_size(node_modules),
            success=True,
        )


async def measure_packages(
    packages: Sequence[str],
    timeout: float = DEFAULT_TIMEOUT,
    on_progress: MeasureProgress | None = None,
    runner: ProcessRunner | None = None,
) -> list[MeasurementResult]:
    """Measure *packages* sequentially; results sorted by install time, slowest first."""
    results: list[MeasurementResult] = []
    for index, name in enumerate(packages):
        if on_progress is not None:
            on_progress(name, index, len(packages))
        results.append(await measure_package(name, timeout=timeout, runner=runner))
    results.sort(key=lambda item: item.install_time, reverse=True)
    return results


async def measure_top_packages(
    packages: Sequence[PackageAnalysis],
    limit: int = DEFAULT_MEASURE_LIMIT,
    timeout: float = DEFAULT_TIMEOUT,
    on_progress: MeasureProgress | None = None,
    runner: ProcessRunner | None = None,
) -> list[MeasurementResult]:
    names = [pkg.name for pkg in packages[:limit]]
    return await measure_packages(names, timeout=timeout, on_progress=on_progress, runner=runner)
