"""
Main entry point for the cargo-feature-aspect CLI.

Cargo runs external subcommands as `cargo-feature-aspect feature-aspect ...`,
so the executable is a group with a single `feature-aspect` command.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from feature_aspect.models.plan import AspectOptions, RunMode, RunOutcome
from feature_aspect.services.metadata import MetadataLoader
from feature_aspect.services.planner import ChangeApplier, ChangePlanner
from feature_aspect.utils.config import get_settings
from feature_aspect.utils.errors import FeatureAspectError, VerifyMismatch
from feature_aspect.utils.helpers import describe_change, shell_error, shell_status, shell_warning
from feature_aspect.utils.logging import configure_root_logging, set_level

logger = logging.getLogger(__name__)


@click.group()
@click.option('--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Cargo plugin that creates and updates feature aspects across a Cargo workspace."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@cli.command('feature-aspect')
@click.option('--name', '-n', type=str,
              help='The name of the resulting feature aspect. Inferred from the leaf feature if there is only one.')
@click.option('--leaf-feature', '-f', 'leaf_features', multiple=True,
              help='Leaf feature to propagate, e.g. `logging/enable-tracing`, or `enable-tracing` '
                   'to match every crate declaring it.')
@click.option('--add-feature-param', '-a', 'add_feature_params', multiple=True,
              help='Extra element for the generated feature, e.g. `dep:logging`.')
@click.option('--dry-run', '-d', is_flag=True,
              help='Do not modify Cargo.toml files, instead print the changes that would be made.')
@click.option('--verify', '-v', is_flag=True,
              help='Do not modify Cargo.toml files, instead fail the command if changes would be made.')
@click.option('--no-sort', is_flag=True,
              help='Do not sort feature params lexicographically; new params are appended instead.')
@click.option('--manifest-path', type=click.Path(path_type=Path),
              help='Path to the Cargo.toml to start with.')
@click.option('--offline', is_flag=True, help='Run without accessing the network.')
@click.option('--locked', is_flag=True, help='Require Cargo.lock to be up-to-date.')
@click.pass_context
def feature_aspect(
    ctx: click.Context,
    name: Optional[str],
    leaf_features: tuple[str, ...],
    add_feature_params: tuple[str, ...],
    dry_run: bool,
    verify: bool,
    no_sort: bool,
    manifest_path: Optional[Path],
    offline: bool,
    locked: bool,
) -> None:
    """Creates and updates feature aspects in a workspace.

    A feature aspect is a feature that should generally exist for all crates in a
    workspace that depend on some shared crate. For example, if a `logging` crate
    has an `enable-tracing` feature, every crate depending on `logging` gets its own
    `enable-tracing` feature that enables `enable-tracing` on its dependencies.

    \b
    Examples:
      cargo feature-aspect --leaf-feature logging/enable-tracing
      cargo feature-aspect -f logging/enable-tracing --add-feature-param dep:logging
      cargo feature-aspect -f logging/enable-tracing --verify
    """
    settings = get_settings()
    validation_result = settings.validate_settings()
    if not validation_result.valid:
        for error in validation_result.errors:
            shell_error(error)
        sys.exit(FeatureAspectError.exit_code)

    verbose = bool(ctx.obj and ctx.obj.get('verbose'))
    configure_root_logging(
        level=settings.log_level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )
    if verbose or settings.debug:
        set_level("DEBUG")
    for warning in validation_result.warnings:
        logger.warning(f"Settings warning: {warning}")

    if dry_run and verify:
        raise click.UsageError("--dry-run and --verify cannot be used together")

    if verify:
        mode = RunMode.VERIFY
    elif dry_run:
        mode = RunMode.DRY_RUN
    else:
        mode = RunMode.APPLY

    try:
        options = AspectOptions.from_args(
            name=name,
            leaf_features=leaf_features,
            add_feature_params=add_feature_params,
            sort=settings.sort_params and not no_sort,
            mode=mode,
        )
        loader = MetadataLoader(settings.cargo_path, settings.metadata_timeout_seconds)
        metadata = loader.load(manifest_path=manifest_path, locked=locked, offline=offline)

        plan = ChangePlanner(options).plan(metadata)
        report = ChangeApplier(on_change=describe_change).execute(plan, mode)

    except VerifyMismatch as e:
        logger.debug(f"Verify mismatch: {e.packages}")
        shell_error(str(e))
        sys.exit(e.exit_code)
    except FeatureAspectError as e:
        logger.error(f"{e.error_code}: {e}")
        shell_error(str(e))
        for suggestion in e.suggestions:
            shell_warning(suggestion)
        sys.exit(e.exit_code)

    feature = options.aspect_name
    if report.outcome is RunOutcome.NO_CHANGES:
        shell_status("Finished", f"feature `{feature}` is up to date in {len(plan.planned_packages)} package(s)")
    elif report.outcome is RunOutcome.DRY_RUN:
        shell_status("Finished", f"dry run, {len(report.changes)} manifest(s) would change")
    else:
        shell_status("Finished", f"updated feature `{feature}` in {report.files_changed} manifest(s)")


def main() -> None:
    cli(obj={})


if __name__ == '__main__':
    main()
