"""
Workspace models for cargo-feature-aspect.

This module defines the subset of `cargo metadata` output the tool relies on:
packages, their declared dependencies and their declared features.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator


class DependencyKind(str, Enum):
    """Kind of a dependency declaration."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"


class Dependency(BaseModel):
    """A dependency as declared in a package manifest."""

    name: str
    rename: str | None = None
    kind: DependencyKind = DependencyKind.NORMAL
    optional: bool = False
    path: Path | None = None
    source: str | None = None
    target: str | None = None

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, v: Any) -> Any:
        # cargo reports normal dependencies as `"kind": null`
        return DependencyKind.NORMAL if v is None else v

    @property
    def manifest_name(self) -> str:
        """Name used for this dependency inside the declaring manifest."""
        return self.rename or self.name

    @property
    def is_external(self) -> bool:
        """True for registry and git dependencies."""
        return self.source is not None


class Package(BaseModel):
    """A package in the workspace."""

    id: str
    name: str
    version: str = "0.0.0"
    manifest_path: Path
    source: str | None = None
    dependencies: list[Dependency] = Field(default_factory=list)
    features: dict[str, list[str]] = Field(default_factory=dict)

    @field_serializer("manifest_path")
    def _serialize_manifest_path(self, v: Path) -> str:
        return str(v)

    @property
    def manifest_dir(self) -> Path:
        return self.manifest_path.parent


class WorkspaceMetadata(BaseModel):
    """Resolved workspace description.

    `packages` holds workspace members only; `external_packages` holds every
    other package cargo reported, used to recognise non-member dependencies.
    """

    workspace_root: Path | None = None
    packages: list[Package] = Field(default_factory=list)
    external_packages: list[Package] = Field(default_factory=list)

    @classmethod
    def from_cargo_metadata(cls, data: dict[str, Any]) -> "WorkspaceMetadata":
        """Build from the JSON document printed by `cargo metadata --format-version 1`."""
        members = set(data.get("workspace_members") or [])
        packages = [Package.model_validate(raw) for raw in data.get("packages", [])]
        return cls(
            workspace_root=data.get("workspace_root"),
            packages=[p for p in packages if p.id in members],
            external_packages=[p for p in packages if p.id not in members],
        )
