"""
Plan models for cargo-feature-aspect.

This module defines the values that flow between the resolver, the manifest
patcher and the change applier: the operator's options, leaf specs, per-package
aspect plans and the resulting manifest changes.
"""

import difflib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_serializer

from feature_aspect.utils.errors import ConfigurationError


class RunMode(str, Enum):
    """What to do with the computed plan."""

    APPLY = "apply"
    DRY_RUN = "dry-run"
    VERIFY = "verify"


class RunOutcome(str, Enum):
    """Overall result of a run."""

    NO_CHANGES = "no-changes"
    APPLIED = "applied"
    DRY_RUN = "dry-run"


class LeafSpec(BaseModel):
    """A leaf feature, either `package/feature` or a bare `feature`."""

    package: str | None = None
    feature: str

    @classmethod
    def parse(cls, spec: str) -> "LeafSpec":
        package, sep, feature = spec.partition("/")
        if not sep:
            package, feature = "", spec
        if not feature or (sep and not package) or "/" in feature:
            raise ConfigurationError(
                f"Invalid leaf feature `{spec}`",
                suggestions=["Use `<package>/<feature>` or `<feature>`, e.g. `logging/enable-tracing`."],
            )
        return cls(package=package or None, feature=feature)

    def matches(self, package_name: str, feature: str) -> bool:
        if self.package is not None and self.package != package_name:
            return False
        return self.feature == feature

    def __str__(self) -> str:
        return f"{self.package}/{self.feature}" if self.package else self.feature


class AspectOptions(BaseModel):
    """Operator input for one run."""

    name: str | None = None
    leaf_features: list[LeafSpec] = Field(default_factory=list)
    add_feature_params: list[str] = Field(default_factory=list)
    sort: bool = True
    mode: RunMode = RunMode.APPLY

    @classmethod
    def from_args(
        cls,
        name: str | None,
        leaf_features: list[str] | tuple[str, ...],
        add_feature_params: list[str] | tuple[str, ...] = (),
        sort: bool = True,
        mode: RunMode = RunMode.APPLY,
    ) -> "AspectOptions":
        """Parse raw command line values, dropping duplicate leaf specs and params."""
        leaves: list[LeafSpec] = []
        for raw in leaf_features:
            leaf = LeafSpec.parse(raw)
            if leaf not in leaves:
                leaves.append(leaf)
        if not leaves:
            raise ConfigurationError(
                "At least one --leaf-feature is required",
                suggestions=["Pass e.g. `--leaf-feature logging/enable-tracing`."],
            )
        params = list(dict.fromkeys(add_feature_params))
        return cls(name=name, leaf_features=leaves, add_feature_params=params, sort=sort, mode=mode)

    @property
    def aspect_name(self) -> str:
        """Name of the feature to create, inferred from a single leaf feature."""
        if self.name:
            return self.name
        if len(self.leaf_features) == 1:
            return self.leaf_features[0].feature
        raise ConfigurationError(
            "Must specify --name or else specify exactly one --leaf-feature",
            suggestions=["Pass --name to choose the aspect feature name."],
        )


class AspectPlan(BaseModel):
    """Required contents of the aspect feature for one package."""

    package_id: str
    package_name: str
    manifest_path: Path
    feature: str
    forwarding: list[str] = Field(default_factory=list)
    extra_params: list[str] = Field(default_factory=list)
    owned: set[str] = Field(default_factory=set)
    sort: bool = True

    @property
    def required(self) -> list[str]:
        """Forwarding references followed by extra params, without duplicates."""
        return list(dict.fromkeys(self.forwarding + self.extra_params))


class ManifestChange(BaseModel):
    """A pending edit to one manifest."""

    package_id: str
    package_name: str
    manifest_path: Path
    feature: str
    before: list[str] | None = None
    after: list[str]
    old_text: str
    new_text: str

    @field_serializer("manifest_path")
    def _serialize_manifest_path(self, v: Path) -> str:
        return str(v)

    @property
    def added(self) -> list[str]:
        before = self.before or []
        return [p for p in self.after if p not in before]

    @property
    def removed(self) -> list[str]:
        return [p for p in self.before or [] if p not in self.after]

    def unified_diff(self) -> str:
        name = str(self.manifest_path)
        return "".join(difflib.unified_diff(
            self.old_text.splitlines(keepends=True),
            self.new_text.splitlines(keepends=True),
            fromfile=f"a/{name}",
            tofile=f"b/{name}",
        ))


class ChangePlan(BaseModel):
    """Every manifest change a run would make."""

    feature: str
    changes: list[ManifestChange] = Field(default_factory=list)
    planned_packages: list[str] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


class RunReport(BaseModel):
    """Result of executing a plan in some mode."""

    mode: RunMode
    outcome: RunOutcome
    changes: list[ManifestChange] = Field(default_factory=list)
    written: list[Path] = Field(default_factory=list)

    @property
    def files_changed(self) -> int:
        return len(self.written)
