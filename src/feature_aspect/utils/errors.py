"""
Custom exception classes for cargo-feature-aspect.
"""

from typing import Any


class FeatureAspectError(Exception):
    """Base exception for all feature aspect errors."""

    exit_code = 2

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None
    ):
        """Initialize the error with enhanced information.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            suggestions: List of suggested remediation steps
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigurationError(FeatureAspectError):
    """Raised when the command options or settings are unusable."""
    pass


class MetadataError(FeatureAspectError):
    """Raised when `cargo metadata` cannot be run or its output cannot be read."""
    pass


class GraphError(FeatureAspectError):
    """Raised when a dependency that may lead to the leaf cannot be resolved."""

    def __init__(self, message: str, package: str | None = None, dependency: str | None = None):
        super().__init__(message, context={"package": package, "dependency": dependency})
        self.package = package
        self.dependency = dependency


class CycleError(GraphError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, message: str, cycle: list[str] | None = None):
        super().__init__(message)
        self.cycle = cycle or []
        self.context["cycle"] = self.cycle
        self.suggestions = [
            "Resolve the cycle using other cargo commands first "
            "(e.g. `cargo build` should fail with a decent error message)."
        ]


class ManifestError(FeatureAspectError):
    """Base exception for manifest reading and editing errors."""

    def __init__(self, message: str, manifest_path: str | None = None):
        super().__init__(message, context={"manifest_path": manifest_path})
        self.manifest_path = manifest_path


class ManifestParseError(ManifestError):
    """Raised when a manifest is not valid TOML."""
    pass


class ManifestShapeError(ManifestError):
    """Raised when `features` is not a table or a feature is not an array of strings."""
    pass


class WriteError(ManifestError):
    """Raised when writing an updated manifest fails."""
    pass


class VerifyMismatch(FeatureAspectError):
    """Raised in verify mode when manifests are out of date.

    Not a defect: the working tree needs `cargo feature-aspect` to be re-run.
    """

    exit_code = 1

    def __init__(self, message: str, packages: list[str] | None = None):
        super().__init__(
            message,
            suggestions=["Run the command again without --verify to update the manifests."],
            context={"packages": packages or []},
        )
        self.packages = packages or []
