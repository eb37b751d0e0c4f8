from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from functools import lru_cache
from types import MappingProxyType

from whyslow.config.schema import AppConfig
from whyslow.models.analysis import SlowPackageInfo
from whyslow.models.enums import SlowReason

_BIN = SlowReason.BINARY_DOWNLOAD
_NATIVE = SlowReason.NATIVE_COMPILATION
_DEPS = SlowReason.LARGE_DEPS
_SCRIPT = SlowReason.POSTINSTALL

# Estimates are rough upper bounds on a warm network, gathered from
# community reports rather than measured on a reference machine.
DEFAULT_SLOW_PACKAGES: tuple[SlowPackageInfo, ...] = (
    # Binary downloads
    SlowPackageInfo(
        "puppeteer",
        _BIN,
        45,
        alternative="puppeteer-core",
        note="Downloads Chromium browser (~150MB). Use puppeteer-core and provide your own browser.",
    ),
    SlowPackageInfo("playwright", _BIN, 30, note="Downloads browser binaries for Chromium, Firefox, and WebKit"),
    SlowPackageInfo("electron", _BIN, 40, note="Large binary download (~100MB)"),
    SlowPackageInfo("cypress", _BIN, 35, note="Downloads Cypress binary (~100MB)"),
    # Native compilation
    SlowPackageInfo(
        "@tensorflow/tfjs-node",
        _NATIVE,
        30,
        alternative="@tensorflow/tfjs",
        note="Compiles native TensorFlow bindings. Use pure JS version if GPU not needed.",
    ),
    SlowPackageInfo(
        "sharp",
        _NATIVE,
        12,
        alternative="jimp",
        note="Requires libvips compilation. jimp is pure JS but slower at runtime.",
    ),
    SlowPackageInfo(
        "node-sass",
        _NATIVE,
        15,
        alternative="sass",
        note="DEPRECATED. Use Dart Sass (sass package) which is pure JS.",
    ),
    SlowPackageInfo(
        "grpc",
        _NATIVE,
        20,
        alternative="@grpc/grpc-js",
        note="Native addon. @grpc/grpc-js is pure JS implementation.",
    ),
    SlowPackageInfo("sqlite3", _NATIVE, 10, alternative="better-sqlite3", note="Requires native compilation"),
    SlowPackageInfo(
        "bcrypt",
        _NATIVE,
        8,
        alternative="bcryptjs",
        note="Native addon. bcryptjs is pure JS (slower but no compilation).",
    ),
    SlowPackageInfo("node-gyp", _NATIVE, 10, note="Build tool for native addons"),
    SlowPackageInfo("canvas", _NATIVE, 15, note="Requires Cairo graphics library compilation"),
    # Large dependency trees
    SlowPackageInfo(
        "aws-sdk",
        _DEPS,
        20,
        alternative="@aws-sdk/client-*",
        note="Massive package with all AWS services. Use modular @aws-sdk/client-* packages.",
    ),
    SlowPackageInfo("@angular/cli", _DEPS, 25, note="Large dependency tree with many packages"),
    SlowPackageInfo("webpack", _DEPS, 10, note="Large package with many dependencies"),
    # Install scripts
    SlowPackageInfo("selenium-webdriver", _SCRIPT, 8, note="Downloads browser drivers in postinstall"),
    SlowPackageInfo("chromedriver", _BIN, 10, note="Downloads ChromeDriver binary"),
    SlowPackageInfo("geckodriver", _BIN, 8, note="Downloads GeckoDriver binary"),
)


class KnowledgeBase:
    """Read-only table of packages known to be slow to install.

    Lookups are exact and case-sensitive.  The table is built once and
    shared between analyzers; nothing mutates it after construction.
    """

    __slots__ = ("_by_name",)

    def __init__(self, entries: Iterable[SlowPackageInfo]) -> None:
        by_name: dict[str, SlowPackageInfo] = {}
        for info in entries:
            if info.name in by_name:
                msg = f"Duplicate knowledge base entry: {info.name}"
                raise ValueError(msg)
            by_name[info.name] = info
        self._by_name: Mapping[str, SlowPackageInfo] = MappingProxyType(by_name)

    def find(self, name: str) -> SlowPackageInfo | None:
        return self._by_name.get(name)

    def is_known(self, name: str) -> bool:
        return name in self._by_name

    def by_reason(self, reason: SlowReason) -> list[SlowPackageInfo]:
        return [info for info in self._by_name.values() if info.reason is reason]

    def match(self, name: str, threshold: float) -> SlowPackageInfo | None:
        """Return the entry for *name* when its estimate meets *threshold* (inclusive)."""
        info = self._by_name.get(name)
        if info is None or info.estimated_time < threshold:
            return None
        return info

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[SlowPackageInfo]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


@lru_cache(maxsize=1)
def default_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase(DEFAULT_SLOW_PACKAGES)


def build_knowledge_base(config: AppConfig) -> KnowledgeBase:
    """Built-in entries overlaid with ``extraPackages`` from the config.

    A configured entry replaces the built-in one with the same name.
    """
    if not config.extra_packages:
        return default_knowledge_base()
    overrides = {info.name: info for info in config.extra_packages}
    merged = [overrides.pop(info.name, info) for info in DEFAULT_SLOW_PACKAGES]
    merged.extend(overrides.values())
    return KnowledgeBase(merged)
