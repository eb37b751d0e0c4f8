# Installed-tree scanner for node_modules.
#
# Layout handled:
#   node_modules/<name>/package.json
#   node_modules/@scope/<name>/package.json
#
# Enumeration is sequential and cheap (two directory levels).  Reading each
# package (manifest parse + sampled size walk) is the expensive part and is
# spread over worker threads pulling from a queue.  Each task carries its
# enumeration index and writes into its own result slot, so the output order
# never depends on the number of workers or on thread scheduling.
#
# Every filesystem error is local to one entry: an unreadable package is
# skipped, an unreadable directory contributes zero bytes.

from __future__ import annotations

import json
import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from whyslow.models.evidence import InstalledPackage
from whyslow.models.manifest import Manifest

logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"
NATIVE_BUILD_FILE = "binding.gyp"
NATIVE_BUILD_TOOL = "node-gyp"
DEFAULT_SAMPLE_LIMIT = 100

# (package name, packages done, packages total)
ScanProgress = Callable[[str, int, int], None]


@dataclass(slots=True, frozen=True)
class _Task:
    index: int
    name: str
    path: str


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _sorted_entries(path: str) -> list[os.DirEntry[str]]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda entry: entry.name)


def list_package_dirs(node_modules: str | Path) -> list[tuple[str, str]]:
    """Return ``(package_name, directory)`` pairs for every installed package.

    ``@scope`` directories are expanded one level; hidden entries (``.bin``,
    ``.package-lock.json``, ...) are skipped.
    """
    root = str(node_modules)
    try:
        entries = _sorted_entries(root)
    except OSError:
        return []

    found: list[tuple[str, str]] = []
    for entry in entries:
        if _is_hidden(entry.name):
            continue
        try:
            if not entry.is_dir():
                continue
        except OSError:
            continue

        if not entry.name.startswith("@"):
            found.append((entry.name, entry.path))
            continue

        try:
            scoped = _sorted_entries(entry.path)
        except OSError:
            logger.debug("Cannot read scope directory %s", entry.path)
            continue
        for child in scoped:
            if _is_hidden(child.name):
                continue
            try:
                if child.is_dir():
                    found.append((f"{entry.name}/{child.name}", child.path))
            except OSError:
                continue
    return found


def approximate_size(path: str | Path, sample_limit: int = DEFAULT_SAMPLE_LIMIT) -> int:
    """Representative byte size of a package directory.

    Only the first *sample_limit* entries (by name) of each directory level
    are counted.  Hidden directories and nested ``node_modules`` are not
    descended into, so a dependency is never counted under its parent.
    """
    total = 0
    try:
        entries = _sorted_entries(str(path))
    except OSError:
        return 0

    for entry in entries[:sample_limit]:
        try:
            if entry.is_file(follow_symlinks=False):
                total += entry.stat(follow_symlinks=False).st_size
            elif entry.is_dir(follow_symlinks=False):
                if _is_hidden(entry.name) or entry.name == NODE_MODULES:
                    continue
                total += approximate_size(entry.path, sample_limit)
        except OSError:
            continue
    return total


def _load_package_json(path: Path) -> dict[str, Any] | None:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def read_installed_package(
    package_dir: str | Path,
    name: str,
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
) -> InstalledPackage | None:
    directory = Path(package_dir)
    payload = _load_package_json(directory / "package.json")
    if payload is None:
        logger.debug("Skipping %s: no readable package.json", directory)
        return None

    manifest = Manifest.from_dict(payload)
    has_node_gyp = manifest.declares(NATIVE_BUILD_TOOL) or (directory / NATIVE_BUILD_FILE).exists()
    return InstalledPackage(
        name=name,
        version=manifest.version or "0.0.0",
        size=approximate_size(directory, sample_limit),
        has_postinstall=manifest.has_install_script,
        has_node_gyp=has_node_gyp,
        path=str(directory),
    )


def scan_installed(
    project_dir: str | Path,
    workers: int = 4,
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    progress_callback: ScanProgress | None = None,
) -> list[InstalledPackage]:
    """Read every package under ``<project_dir>/node_modules``.

    Returns packages in enumeration order.  A missing ``node_modules`` yields
    an empty list.
    """
    node_modules = Path(project_dir) / NODE_MODULES
    if not node_modules.is_dir():
        return []

    tasks = [_Task(index, name, path) for index, (name, path) in enumerate(list_package_dirs(node_modules))]
    if not tasks:
        return []

    slots: list[InstalledPackage | None] = [None] * len(tasks)
    q: queue.Queue[_Task | None] = queue.Queue()
    for task in tasks:
        q.put(task)

    done = 0
    done_lock = threading.Lock()

    def run_worker() -> None:
        nonlocal done
        while True:
            task = q.get()
            if task is None:
                q.task_done()
                break
            try:
                slots[task.index] = read_installed_package(task.path, task.name, sample_limit)
            except Exception:  # noqa: BLE001
                # One broken package must not abort the scan.
                logger.debug("Failed reading installed package %s", task.path, exc_info=True)
            finally:
                with done_lock:
                    done += 1
                    current = done
                if progress_callback is not None:
                    progress_callback(task.name, current, len(tasks))
                q.task_done()

    num_workers = max(1, min(workers, len(tasks)))
    threads = [threading.Thread(target=run_worker, daemon=True) for _ in range(num_workers)]
    for thread in threads:
        thread.start()
    q.join()
    for _ in threads:
        q.put(None)
    q.join()
    for thread in threads:
        thread.join(timeout=0.3)

    packages = [pkg for pkg in slots if pkg is not None]
    logger.debug("Scanned %d installed packages under %s", len(packages), node_modules)
    return packages
