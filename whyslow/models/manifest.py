from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from result import Result

_LIFECYCLE_SCRIPTS = ("preinstall", "install", "postinstall")


def _str_map(value: Any) -> dict[str, str]:
    # Absent or malformed groups read as empty rather than failing the whole manifest.
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


@dataclass(slots=True)
class Manifest:
    name: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    optional_dependencies: dict[str, str] = field(default_factory=dict)
    scripts: dict[str, str] = field(default_factory=dict)

    def all_dependencies(self) -> dict[str, str]:
        """Union of all dependency groups; a name in several groups appears once."""
        merged: dict[str, str] = {}
        merged.update(self.dependencies)
        merged.update(self.dev_dependencies)
        merged.update(self.optional_dependencies)
        return merged

    @property
    def has_install_script(self) -> bool:
        return any(self.scripts.get(key) for key in _LIFECYCLE_SCRIPTS)

    def declares(self, name: str) -> bool:
        return name in self.dependencies or name in self.dev_dependencies

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Manifest:
        name = payload.get("name")
        version = payload.get("version")
        return cls(
            name=str(name) if name is not None else None,
            version=str(version) if version is not None else None,
            dependencies=_str_map(payload.get("dependencies")),
            dev_dependencies=_str_map(payload.get("devDependencies")),
            optional_dependencies=_str_map(payload.get("optionalDependencies")),
            scripts=_str_map(payload.get("scripts")),
        )


class ManifestErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    INVALID = "invalid"


@dataclass(slots=True, frozen=True)
class ManifestError:
    code: ManifestErrorCode
    path: str
    message: str


ManifestResult = Result[Manifest, ManifestError]
