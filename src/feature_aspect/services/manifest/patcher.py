"""
Formatting-preserving edits of the `[features]` table in Cargo manifests.

The manifest is parsed with tomlkit and the aspect array is edited in place,
so comments, whitespace and unrelated tables survive byte for byte.
"""

import logging
from collections.abc import MutableMapping
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from feature_aspect.models.plan import AspectPlan, ManifestChange
from feature_aspect.utils.errors import ManifestParseError, ManifestShapeError

logger = logging.getLogger(__name__)


def plan_entries(existing: list[str], plan: AspectPlan) -> tuple[list[int], list[str], list[str]]:
    """Work out how to turn `existing` into the desired feature params.

    Returns:
        (indices of existing entries to delete, entries to append, desired final list)

    Stale tool-owned references and duplicates of managed entries are dropped.
    Entries the tool does not manage are kept in place; with sorting enabled the
    result is fully sorted and free of duplicates.
    """
    required = plan.required
    managed = plan.owned | set(required)

    delete: list[int] = []
    kept: list[str] = []
    seen: set[str] = set()
    for idx, entry in enumerate(existing):
        is_duplicate = entry in seen and (plan.sort or entry in managed)
        is_stale = entry in plan.owned and entry not in required
        if is_duplicate or is_stale:
            delete.append(idx)
            continue
        seen.add(entry)
        kept.append(entry)

    additions = [entry for entry in required if entry not in seen]
    desired = kept + additions
    if plan.sort:
        desired = sorted(desired)
    return delete, additions, desired


class ManifestPatcher:
    """Applies an `AspectPlan` to the text of a manifest."""

    def parse(self, text: str, manifest_path: Path | None = None) -> TOMLDocument:
        try:
            return tomlkit.parse(text)
        except TOMLKitError as e:
            raise ManifestParseError(
                f"Failed to parse manifest {manifest_path}: {e}",
                manifest_path=str(manifest_path) if manifest_path else None,
            ) from e

    def current_entries(self, doc: TOMLDocument, plan: AspectPlan) -> list[str] | None:
        """Return the current params of the aspect feature, or None if it is absent."""
        features = doc.get("features")
        if features is None:
            return None
        if not isinstance(features, MutableMapping):
            raise self._shape_error(plan, "the `features` field exists but is not a table")
        array = features.get(plan.feature)
        if array is None:
            return None
        if not isinstance(array, list) or not all(isinstance(v, str) for v in array):
            raise self._shape_error(plan, f"`features.{plan.feature}` exists but is not an array of strings")
        return [str(v) for v in array]

    def patch(self, text: str, plan: AspectPlan) -> ManifestChange | None:
        """Return the change needed for `plan`, or None if the manifest is up to date."""
        doc = self.parse(text, plan.manifest_path)
        before = self.current_entries(doc, plan)

        delete, additions, desired = plan_entries(before or [], plan)
        if before is not None and before == desired:
            logger.debug(f"Package `{plan.package_name}` feature `{plan.feature}` is up to date")
            return None

        if "features" not in doc:
            doc["features"] = tomlkit.table()
        features = doc["features"]
        if plan.feature not in features:
            features[plan.feature] = tomlkit.array()
        array = features[plan.feature]

        for idx in reversed(delete):
            del array[idx]
        for entry in additions:
            array.append(entry)
        if plan.sort:
            for idx, entry in enumerate(desired):
                if array[idx] != entry:
                    array[idx] = entry

        new_text = tomlkit.dumps(doc)
        logger.debug(f"Package `{plan.package_name}` feature `{plan.feature}`: {before} -> {desired}")
        return ManifestChange(
            package_id=plan.package_id,
            package_name=plan.package_name,
            manifest_path=plan.manifest_path,
            feature=plan.feature,
            before=before,
            after=desired,
            old_text=text,
            new_text=new_text,
        )

    def _shape_error(self, plan: AspectPlan, detail: str) -> ManifestShapeError:
        return ManifestShapeError(
            f"Failed to edit manifest for package `{plan.package_name}`: {detail}",
            manifest_path=str(plan.manifest_path),
        )
