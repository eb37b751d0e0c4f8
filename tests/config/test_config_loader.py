from __future__ import annotations

import json
from pathlib import Path

from result import Err, Ok

from whyslow.config.loader import load_config, sample_config_json
from whyslow.config.schema import AppConfig
from whyslow.models.enums import SlowReason


def test_load_config_missing_uses_defaults(tmp_path: Path) -> None:
    result = load_config(tmp_path / "missing.json")
    assert isinstance(result, Ok)
    assert result.unwrap() == AppConfig()


def test_load_config_invalid_returns_warning(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("not-json", encoding="utf-8")

    result = load_config(p)
    assert isinstance(result, Err)
    assert "failed reading config" in result.unwrap_err().lower()


def test_load_config_non_object(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text("[1, 2, 3]", encoding="utf-8")

    result = load_config(p)
    assert isinstance(result, Err)
    assert "must be a JSON object" in result.unwrap_err()


def test_load_config_partial_override(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(json.dumps({"threshold": 12, "scanWorkers": 2}), encoding="utf-8")

    cfg = load_config(p).unwrap()
    assert cfg.threshold == 12
    assert cfg.scan_workers == 2
    assert cfg.measure_limit == 5
    assert cfg.measure_timeout == 60.0


def test_load_config_extra_packages(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(
        json.dumps(
            {
                "extraPackages": [
                    {"name": "my-addon", "reason": "native-compilation", "estimatedTime": 25, "note": "Builds C++"},
                ]
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(p).unwrap()
    assert len(cfg.extra_packages) == 1
    info = cfg.extra_packages[0]
    assert info.name == "my-addon"
    assert info.reason is SlowReason.NATIVE_COMPILATION
    assert info.estimated_time == 25


def test_load_config_bad_extra_package(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(
        json.dumps({"extraPackages": [{"name": "x", "reason": "not-a-reason", "estimatedTime": 5}]}),
        encoding="utf-8",
    )
    assert isinstance(load_config(p), Err)


def test_sample_config_round_trips(tmp_path: Path) -> None:
    p = tmp_path / "config.json"
    p.write_text(sample_config_json(), encoding="utf-8")
    assert load_config(p).unwrap() == AppConfig()
