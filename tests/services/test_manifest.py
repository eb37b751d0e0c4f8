from __future__ import annotations

from pathlib import Path

from result import Err, Ok

from whyslow.models.enums import SlowReason
from whyslow.models.manifest import Manifest, ManifestErrorCode
from whyslow.services.manifest import analyze_manifest, read_manifest
from tests.factories import make_project


class TestReadManifest:
    def test_missing_manifest(self, tmp_path: Path) -> None:
        result = read_manifest(tmp_path)
        assert isinstance(result, Err)
        error = result.unwrap_err()
        assert error.code is ManifestErrorCode.NOT_FOUND
        assert "package.json not found" in error.message

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
        result = read_manifest(tmp_path)
        assert isinstance(result, Err)
        assert result.unwrap_err().code is ManifestErrorCode.INVALID

    def test_non_object(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("[1, 2]", encoding="utf-8")
        result = read_manifest(tmp_path)
        assert isinstance(result, Err)
        assert result.unwrap_err().code is ManifestErrorCode.INVALID

    def test_absent_groups_default_empty(self, tmp_path: Path) -> None:
        make_project(tmp_path)
        result = read_manifest(tmp_path)
        assert isinstance(result, Ok)
        manifest = result.unwrap()
        assert manifest.dependencies == {}
        assert manifest.dev_dependencies == {}
        assert manifest.optional_dependencies == {}
        assert manifest.scripts == {}

    def test_accepts_file_path(self, tmp_path: Path) -> None:
        make_project(tmp_path, dependencies={"sharp": "^0.33.0"})
        result = read_manifest(tmp_path / "package.json")
        assert result.unwrap().dependencies == {"sharp": "^0.33.0"}


class TestManifestModel:
    def test_union_counts_name_once(self) -> None:
        manifest = Manifest.from_dict(
            {
                "dependencies": {"a": "1"},
                "devDependencies": {"a": "2", "b": "1"},
                "optionalDependencies": {"c": "1"},
            }
        )
        assert list(manifest.all_dependencies()) == ["a", "b", "c"]

    def test_malformed_group_ignored(self) -> None:
        manifest = Manifest.from_dict({"dependencies": ["not", "a", "map"]})
        assert manifest.dependencies == {}

    def test_install_script_detection(self) -> None:
        assert Manifest.from_dict({"scripts": {"postinstall": "node build.js"}}).has_install_script
        assert Manifest.from_dict({"scripts": {"preinstall": "x"}}).has_install_script
        assert not Manifest.from_dict({"scripts": {"test": "jest"}}).has_install_script
        assert not Manifest.from_dict({"scripts": {"install": ""}}).has_install_script


class TestAnalyzeManifest:
    def test_puppeteer_only(self, tmp_path: Path) -> None:
        make_project(tmp_path, dependencies={"puppeteer": "^20.0.0"})
        analysis = analyze_manifest(tmp_path, threshold=5).unwrap()
        assert analysis.total_packages == 1
        assert len(analysis.slow_packages) == 1
        pkg = analysis.slow_packages[0]
        assert pkg.name == "puppeteer"
        assert pkg.estimated_time == 45
        assert pkg.version == "^20.0.0"
        assert pkg.is_slow_package

    def test_unknown_package(self, tmp_path: Path) -> None:
        make_project(tmp_path, dependencies={"left-pad": "^1.0.0"})
        analysis = analyze_manifest(tmp_path).unwrap()
        assert analysis.total_packages == 1
        assert analysis.slow_packages == []

    def test_threshold_excludes(self, tmp_path: Path) -> None:
        make_project(tmp_path, dependencies={"puppeteer": "^20.0.0"})
        assert analyze_manifest(tmp_path, threshold=50).unwrap().slow_packages == []

    def test_threshold_inclusive(self, tmp_path: Path) -> None:
        make_project(tmp_path, dependencies={"puppeteer": "^20.0.0"})
        assert len(analyze_manifest(tmp_path, threshold=45).unwrap().slow_packages) == 1

    def test_all_groups_and_sorting(self, tmp_path: Path) -> None:
        make_project(
            tmp_path,
            dependencies={"bcrypt": "^5.0.0", "express": "^4.0.0"},
            devDependencies={"cypress": "^13.0.0", "webpack": "^5.0.0"},
            optionalDependencies={"sqlite3": "^5.0.0"},
        )
        analysis = analyze_manifest(tmp_path, threshold=5).unwrap()
        assert analysis.total_packages == 5
        assert [p.name for p in analysis.slow_packages] == ["cypress", "webpack", "sqlite3", "bcrypt"]

    def test_ties_keep_declaration_order(self, tmp_path: Path) -> None:
        make_project(tmp_path, dependencies={"webpack": "5", "sqlite3": "5", "node-gyp": "10"})
        names = [p.name for p in analyze_manifest(tmp_path).unwrap().slow_packages]
        assert names == ["webpack", "sqlite3", "node-gyp"]

    def test_reason_copied(self, tmp_path: Path) -> None:
        make_project(tmp_path, devDependencies={"node-sass": "^9.0.0"})
        pkg = analyze_manifest(tmp_path).unwrap().slow_packages[0]
        assert pkg.reason is SlowReason.NATIVE_COMPILATION
        assert pkg.alternative == "sass"

    def test_missing_manifest_is_err(self, tmp_path: Path) -> None:
        assert isinstance(analyze_manifest(tmp_path), Err)
