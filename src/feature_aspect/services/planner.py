"""
Change planning and application.

The planner turns aspect plans into manifest changes without touching the disk;
the applier performs the mode-specific side effect. Every mode uses the same
plan, so dry-run and verify always report exactly what apply would write.
"""

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

import networkx as nx

from feature_aspect.models.plan import AspectOptions, AspectPlan, ChangePlan, ManifestChange, RunMode, RunOutcome, RunReport
from feature_aspect.models.workspace import WorkspaceMetadata
from feature_aspect.services.aspect.resolver import AspectResolver
from feature_aspect.services.graph.builder import GraphBuilder
from feature_aspect.services.graph.ordering import dependency_order
from feature_aspect.services.manifest.patcher import ManifestPatcher
from feature_aspect.utils.errors import ManifestError, VerifyMismatch, WriteError

logger = logging.getLogger(__name__)


def read_manifest(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Failed to read manifest {path}: {e}", manifest_path=str(path)) from e


def write_atomic(path: Path, text: str) -> None:
    """Replace `path` with `text` via a temporary file in the same directory."""
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o7777)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise WriteError(f"Failed to write manifest {path}: {e}", manifest_path=str(path)) from e


class ChangePlanner:
    """Computes the full change plan for a workspace."""

    def __init__(
        self,
        options: AspectOptions,
        patcher: ManifestPatcher | None = None,
        reader: Callable[[Path], str] = read_manifest,
    ):
        self.options = options
        self.patcher = patcher or ManifestPatcher()
        self.reader = reader

    def build_graph(self, metadata: WorkspaceMetadata) -> nx.MultiDiGraph:
        return GraphBuilder(metadata).build()

    def resolve(self, metadata: WorkspaceMetadata) -> dict[str, AspectPlan]:
        graph = self.build_graph(metadata)
        order = dependency_order(graph)
        return AspectResolver(graph, self.options).resolve(order)

    def plan(self, metadata: WorkspaceMetadata) -> ChangePlan:
        """Compute every manifest change; raises before anything is written."""
        aspect_plans = self.resolve(metadata)

        changes: list[ManifestChange] = []
        for aspect_plan in aspect_plans.values():
            text = self.reader(aspect_plan.manifest_path)
            change = self.patcher.patch(text, aspect_plan)
            if change is not None:
                changes.append(change)

        logger.info(f"Planned {len(changes)} manifest change(s) across {len(aspect_plans)} dependent package(s)")
        return ChangePlan(
            feature=self.options.aspect_name,
            changes=changes,
            planned_packages=[p.package_name for p in aspect_plans.values()],
        )


class ChangeApplier:
    """Executes a change plan in apply, dry-run or verify mode."""

    def __init__(
        self,
        writer: Callable[[Path, str], None] = write_atomic,
        on_change: Callable[[ManifestChange, RunMode], None] | None = None,
    ):
        self.writer = writer
        self.on_change = on_change

    def execute(self, plan: ChangePlan, mode: RunMode) -> RunReport:
        """Perform the side effect for `mode`.

        Raises:
            VerifyMismatch: in verify mode when any manifest would change
            WriteError: in apply mode when a manifest cannot be written
        """
        for change in plan.changes:
            if self.on_change is not None:
                self.on_change(change, mode)

        if not plan.has_changes:
            return RunReport(mode=mode, outcome=RunOutcome.NO_CHANGES)

        if mode is RunMode.VERIFY:
            packages = [change.package_name for change in plan.changes]
            raise VerifyMismatch(
                f"Failing because --verify was passed and changes were detected in: {', '.join(packages)}",
                packages=packages,
            )

        if mode is RunMode.DRY_RUN:
            return RunReport(mode=mode, outcome=RunOutcome.DRY_RUN, changes=plan.changes)

        written: list[Path] = []
        for change in plan.changes:
            self.writer(change.manifest_path, change.new_text)
            written.append(change.manifest_path)
            logger.info(f"Updated {change.manifest_path}")

        return RunReport(mode=mode, outcome=RunOutcome.APPLIED, changes=plan.changes, written=written)
