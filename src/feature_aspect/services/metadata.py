"""
Workspace metadata retrieval.

Runs `cargo metadata` and turns its JSON output into `WorkspaceMetadata`.
"""

import json
import logging
import subprocess
from pathlib import Path

from pydantic import ValidationError

from feature_aspect.models.workspace import WorkspaceMetadata
from feature_aspect.utils.errors import MetadataError

logger = logging.getLogger(__name__)


class MetadataLoader:
    """Reads workspace metadata through the cargo command line."""

    def __init__(self, cargo_path: str = "cargo", timeout_seconds: int = 120):
        self.cargo_path = cargo_path
        self.timeout_seconds = timeout_seconds

    def build_command(
        self,
        manifest_path: Path | None = None,
        locked: bool = False,
        offline: bool = False,
        no_deps: bool = False,
    ) -> list[str]:
        cmd = [self.cargo_path, "metadata", "--format-version", "1", "--all-features"]
        if manifest_path is not None:
            cmd += ["--manifest-path", str(manifest_path)]
        if locked:
            cmd.append("--locked")
        if offline:
            cmd.append("--offline")
        if no_deps:
            cmd.append("--no-deps")
        return cmd

    def load(
        self,
        manifest_path: Path | None = None,
        locked: bool = False,
        offline: bool = False,
    ) -> WorkspaceMetadata:
        """Load workspace metadata, retrying without dependency resolution on failure.

        The full resolve can fail, for example offline without a lock file; member
        packages and their declared dependencies are still available with `--no-deps`.
        """
        try:
            raw = self._run(self.build_command(manifest_path, locked, offline))
        except MetadataError as e:
            logger.warning(f"cargo metadata failed, retrying with --no-deps: {e}")
            raw = self._run(self.build_command(manifest_path, locked, offline, no_deps=True))

        return self.parse(raw)

    def parse(self, raw: str) -> WorkspaceMetadata:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MetadataError(f"cargo metadata printed invalid JSON: {e}") from e

        try:
            metadata = WorkspaceMetadata.from_cargo_metadata(data)
        except ValidationError as e:
            raise MetadataError(f"Unexpected cargo metadata format: {e}") from e

        logger.debug(
            f"Loaded metadata: {len(metadata.packages)} workspace members, "
            f"{len(metadata.external_packages)} external packages"
        )
        return metadata

    def _run(self, cmd: list[str]) -> str:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as e:
            raise MetadataError(
                f"Cargo executable not found: {self.cargo_path}",
                suggestions=["Install Rust via rustup or set FEATURE_ASPECT_CARGO_PATH."],
            ) from e
        except subprocess.TimeoutExpired as e:
            raise MetadataError(f"cargo metadata timed out after {self.timeout_seconds}s") from e

        if result.returncode != 0:
            raise MetadataError(
                f"cargo metadata exited with status {result.returncode}: {result.stderr.strip()}",
                context={"command": cmd},
            )
        return result.stdout
