from __future__ import annotations

from whyslow.config.schema import AppConfig


def default_config() -> AppConfig:
    return AppConfig()
