from __future__ import annotations

from enum import Enum


class SlowReason(str, Enum):
    BINARY_DOWNLOAD = "binary-download"
    NATIVE_COMPILATION = "native-compilation"
    LARGE_DEPS = "large-deps"
    POSTINSTALL = "postinstall"
    MEASURED = "measured"

    @property
    def label(self) -> str:
        return _REASON_LABELS[self]


_REASON_LABELS: dict[SlowReason, str] = {
    SlowReason.BINARY_DOWNLOAD: "downloads large binary",
    SlowReason.NATIVE_COMPILATION: "native compilation",
    SlowReason.LARGE_DEPS: "large dependency tree",
    SlowReason.POSTINSTALL: "postinstall script",
    SlowReason.MEASURED: "measured install time",
}


class SuggestionType(str, Enum):
    REPLACE = "replace"
    OPTIMIZE = "optimize"
    REMOVE = "remove"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @property
    def icon(self) -> str:
        return _PRIORITY_ICON[self]


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

_PRIORITY_ICON: dict[Priority, str] = {
    Priority.HIGH: "🔥",
    Priority.MEDIUM: "⚡",
    Priority.LOW: "💡",
}


class LockfileType(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    NONE = "none"
