from __future__ import annotations

from pathlib import Path

import pytest

from whyslow.models.enums import LockfileType
from whyslow.services.lockfile import (
    analyze_lockfile,
    detect_lockfile,
    extract_package_name,
    lockfile_stats,
    parse_yarn_lock,
)
from tests.factories import write_json

YARN_LOCK = """\
# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.
# yarn lockfile v1


"@babel/core@^7.0.0", "@babel/core@^7.12.3":
  version "7.23.0"
  resolved "https://registry.yarnpkg.com/@babel/core/-/core-7.23.0.tgz"

canvas@^0.19.0:
  version "0.19.5"

lodash@^4.17.21:
  version "4.17.21"

canvas@^0.18.0:
  version "0.18.20"
"""


class TestExtractPackageName:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("node_modules/a", "a"),
            ("node_modules/a/node_modules/b", "b"),
            ("node_modules/@s/b", "@s/b"),
            ("node_modules/a/node_modules/@s/b", "@s/b"),
            ("packages/workspace-a", None),
            ("", None),
        ],
    )
    def test_paths(self, path: str, expected: str | None) -> None:
        assert extract_package_name(path) == expected


class TestDetectLockfile:
    def test_none(self, tmp_path: Path) -> None:
        assert detect_lockfile(tmp_path) is None
        assert analyze_lockfile(tmp_path).lockfile_type is LockfileType.NONE

    def test_package_lock_preferred(self, tmp_path: Path) -> None:
        write_json(tmp_path / "package-lock.json", {"packages": {}})
        (tmp_path / "yarn.lock").write_text(YARN_LOCK, encoding="utf-8")
        detected = detect_lockfile(tmp_path)
        assert detected is not None
        assert detected[0].name == "package-lock.json"
        assert detected[1] is LockfileType.NPM

    def test_shrinkwrap_is_npm(self, tmp_path: Path) -> None:
        write_json(tmp_path / "npm-shrinkwrap.json", {"packages": {}})
        detected = detect_lockfile(tmp_path)
        assert detected is not None
        assert detected[1] is LockfileType.NPM

    def test_pnpm_detected_not_parsed(self, tmp_path: Path) -> None:
        (tmp_path / "pnpm-lock.yaml").write_text("lockfileVersion: '6.0'\n", encoding="utf-8")
        analysis = analyze_lockfile(tmp_path)
        assert analysis.lockfile_type is LockfileType.PNPM
        assert analysis.total_dependencies == 0
        assert analysis.slow_packages == []


class TestFlatLockfile:
    def test_counts_and_slow(self, tmp_path: Path) -> None:
        write_json(
            tmp_path / "package-lock.json",
            {
                "lockfileVersion": 3,
                "packages": {
                    "": {"name": "demo", "version": "1.0.0"},
                    "node_modules/puppeteer": {"version": "21.0.0", "hasInstallScript": True},
                    "node_modules/lodash": {"version": "4.17.21"},
                    "node_modules/a/node_modules/lodash": {"version": "3.0.0"},
                    "node_modules/sharp": {"version": "0.33.0", "hasInstallScript": True},
                },
            },
        )
        analysis = analyze_lockfile(tmp_path, threshold=5)
        assert analysis.lockfile_type is LockfileType.NPM
        assert analysis.lockfile_version == 3
        assert analysis.total_dependencies == 3
        assert analysis.packages_with_install_scripts == ["puppeteer", "sharp"]
        assert [p.name for p in analysis.slow_packages] == ["puppeteer", "sharp"]
        assert analysis.slow_packages[0].version == "21.0.0"
        assert analysis.slow_packages[0].has_postinstall

    def test_slow_package_reported_once(self, tmp_path: Path) -> None:
        write_json(
            tmp_path / "package-lock.json",
            {
                "packages": {
                    "node_modules/canvas": {"version": "0.19.0"},
                    "node_modules/vite/node_modules/canvas": {"version": "0.18.0"},
                },
            },
        )
        analysis = analyze_lockfile(tmp_path)
        assert len(analysis.slow_packages) == 1
        assert analysis.slow_packages[0].version == "0.19.0"

    def test_flat_preferred_over_nested(self, tmp_path: Path) -> None:
        write_json(
            tmp_path / "package-lock.json",
            {
                "packages": {"node_modules/lodash": {"version": "4.17.21"}},
                "dependencies": {"puppeteer": {"version": "21.0.0"}},
            },
        )
        analysis = analyze_lockfile(tmp_path)
        assert analysis.total_dependencies == 1
        assert analysis.slow_packages == []

    def test_threshold_applies(self, tmp_path: Path) -> None:
        write_json(tmp_path / "package-lock.json", {"packages": {"node_modules/puppeteer": {"version": "1"}}})
        assert analyze_lockfile(tmp_path, threshold=50).slow_packages == []


class TestNestedLockfile:
    def test_counts_every_node(self, tmp_path: Path) -> None:
        write_json(
            tmp_path / "package-lock.json",
            {
                "lockfileVersion": 1,
                "dependencies": {
                    "a": {
                        "version": "1.0.0",
                        "dependencies": {"canvas": {"version": "0.18.0", "hasInstallScript": True}},
                    },
                    "canvas": {"version": "0.19.0", "hasInstallScript": True},
                },
            },
        )
        analysis = analyze_lockfile(tmp_path)
        assert analysis.lockfile_version == 1
        assert analysis.total_dependencies == 3
        assert analysis.packages_with_install_scripts == ["canvas"]
        assert len(analysis.slow_packages) == 1
        # Depth-first: the nested copy under "a" is visited first.
        assert analysis.slow_packages[0].version == "0.18.0"

    def test_repeated_names_at_every_depth_counted(self, tmp_path: Path) -> None:
        write_json(
            tmp_path / "package-lock.json",
            {
                "dependencies": {
                    "a": {"version": "1", "dependencies": {"b": {"version": "1", "dependencies": {"a": {"version": "2"}}}}},
                    "b": {"version": "2"},
                },
            },
        )
        assert analyze_lockfile(tmp_path).total_dependencies == 4


class TestMalformedLockfile:
    def test_invalid_json_is_empty(self, tmp_path: Path) -> None:
        (tmp_path / "package-lock.json").write_text("{oops", encoding="utf-8")
        analysis = analyze_lockfile(tmp_path)
        assert analysis.lockfile_type is LockfileType.NPM
        assert analysis.total_dependencies == 0
        assert analysis.slow_packages == []

    def test_non_object_is_empty(self, tmp_path: Path) -> None:
        write_json(tmp_path / "package-lock.json", ["nope"])
        assert analyze_lockfile(tmp_path).total_dependencies == 0

    def test_no_package_maps(self, tmp_path: Path) -> None:
        write_json(tmp_path / "package-lock.json", {"name": "demo"})
        assert analyze_lockfile(tmp_path).total_dependencies == 0


class TestYarnLockfile:
    def test_parse_names(self) -> None:
        assert parse_yarn_lock(YARN_LOCK) == ["@babel/core", "canvas", "lodash"]

    def test_analyze(self, tmp_path: Path) -> None:
        (tmp_path / "yarn.lock").write_text(YARN_LOCK, encoding="utf-8")
        analysis = analyze_lockfile(tmp_path)
        assert analysis.lockfile_type is LockfileType.YARN
        assert analysis.total_dependencies == 3
        assert analysis.packages_with_install_scripts == []
        assert [p.name for p in analysis.slow_packages] == ["canvas"]
        assert analysis.slow_packages[0].version is None


class TestLockfileStats:
    def test_stats(self, tmp_path: Path) -> None:
        write_json(
            tmp_path / "package-lock.json",
            {"packages": {"node_modules/sharp": {"version": "0.33.0", "hasInstallScript": True}}},
        )
        stats = lockfile_stats(analyze_lockfile(tmp_path))
        assert stats.lockfile_type is LockfileType.NPM
        assert stats.total_deps == 1
        assert stats.install_script_count == 1
