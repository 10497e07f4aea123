"""Pytest configuration for resources/tests.

Ensures the repository root is on sys.path so tests can import
helpers via absolute package path like `resources.tests.helpers`.
"""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from resources.tests.helpers.workspace import WorkspaceBuilder  # noqa: E402


@pytest.fixture
def workspace(tmp_path):
    """An empty on-disk workspace."""
    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def logging_workspace(workspace):
    """`logging` (leaf, feature `enable-tracing`) <- `foo` <- `bar`, plus unrelated `baz`."""
    workspace.add_package("logging", features={"enable-tracing": []})
    workspace.add_package("foo", dependencies=["logging"])
    workspace.add_package("bar", dependencies=["foo"])
    workspace.add_package("baz", external=["serde"])
    return workspace
