"""
Terminal output helpers for cargo-feature-aspect.

Status lines mimic Cargo's shell messages: a bold, coloured, right-aligned
verb followed by the message, written to stderr.
"""

import click

from feature_aspect.models.plan import ManifestChange, RunMode


def shell_print(status: str, message: str, color: str, justified: bool = True) -> None:
    """Print a message with a colored title in the style of Cargo shell messages."""
    if justified:
        title = click.style(f"{status:>12}", fg=color, bold=True)
    else:
        title = click.style(status, fg=color, bold=True) + click.style(":", bold=True)
    click.echo(f"{title} {message}", err=True)


def shell_status(action: str, message: str) -> None:
    """Print a styled action message."""
    shell_print(action, message, "green")


def shell_warning(message: str) -> None:
    shell_print("warning", message, "yellow", justified=False)


def shell_error(message: str) -> None:
    shell_print("error", message, "red", justified=False)


def describe_change(change: ManifestChange, mode: RunMode) -> None:
    """Report one manifest change the way the given mode needs it."""
    prefix = f"package `{change.package_name}` feature `{change.feature}`"

    if mode is RunMode.APPLY:
        shell_status("Updating", f"{prefix} ({change.manifest_path})")
        for param in change.removed:
            shell_status("Removing", f"`{param}` from {prefix}")
        return

    for param in change.added:
        click.echo(f"{prefix}: would add `{param}`", err=True)
    for param in change.removed:
        click.echo(f"{prefix}: would remove `{param}`", err=True)
    if change.before is not None and not change.added and not change.removed:
        click.echo(f"{prefix}: would reorder params", err=True)

    if mode is RunMode.DRY_RUN:
        click.echo(change.unified_diff(), nl=False)
