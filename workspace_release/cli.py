"""Command-line interface for the workspace release tool.

Provides commands for:
- release: Run the release pipeline
- changed: List the workspaces a release would include
- init-config: Generate configuration
"""

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from workspace_release import __version__
from workspace_release.config.defaults import write_default_config
from workspace_release.config.loader import load_options
from workspace_release.context import ReleaseContext
from workspace_release.exceptions import ReleaseError, ReleaseSkipped
from workspace_release.plugins.environment import EnvironmentPlugin
from workspace_release.plugins.workspaces import WorkspacesPlugin
from workspace_release.workflow import execute_release

# Create Typer app
app = typer.Typer(
    name="workspace-release",
    help="Monorepo workspace release automation",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"workspace-release version {__version__}")
        raise typer.Exit()


def build_overrides(
    release_pr: bool | None = None,
    source_branch: str | None = None,
    env: str | None = None,
    publish_path: str | None = None,
    change_labels: str | None = None,
    skip_check_package: bool = False,
    auto_merge: bool | None = None,
) -> dict[str, Any]:
    """Translate command-line flags into an options layer.

    Unset flags are left out so they never mask file values.
    """
    overrides: dict[str, Any] = {}
    if release_pr is not None:
        overrides["release_pr"] = release_pr
    if source_branch:
        overrides["source_branch"] = source_branch
    if env:
        overrides["release_env"] = env
    if publish_path:
        overrides["publish_path"] = publish_path
    if auto_merge is not None:
        overrides["auto_merge_release_pr"] = auto_merge

    workspaces: dict[str, Any] = {}
    if change_labels:
        workspaces["change_labels"] = change_labels
    if skip_check_package:
        workspaces["skip_check_package"] = True
    if workspaces:
        overrides["workspaces"] = workspaces
    return overrides


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Monorepo workspace release automation.

    Detects changed workspaces, bumps their versions and either opens a
    release pull request or publishes them to npm and GitHub.
    """
    pass


@app.command()
def release(
    dry_run: bool = typer.Option(  # noqa: B008
        False,
        "--dry-run",
        "-n",
        help="Show what would be done without making changes",
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False,
        "--verbose",
        "-v",
        help="Show detailed output",
    ),
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (searched for if not given)",
    ),
    release_pr: bool | None = typer.Option(  # noqa: B008
        None,
        "--release-pr/--publish",
        help="Open a release PR, or publish directly",
    ),
    source_branch: str | None = typer.Option(  # noqa: B008
        None,
        "--source-branch",
        "-b",
        help="Branch to release from and target with the PR",
    ),
    env: str | None = typer.Option(  # noqa: B008
        None,
        "--env",
        "-e",
        help="Release environment (production, staging, ...)",
    ),
    publish_path: str | None = typer.Option(  # noqa: B008
        None,
        "--publish-path",
        help="Only release the workspace at this path",
    ),
    change_labels: str | None = typer.Option(  # noqa: B008
        None,
        "--change-labels",
        help="Comma-separated change labels, e.g. from the triggering PR",
    ),
    skip_check_package: bool = typer.Option(  # noqa: B008
        False,
        "--skip-check-package",
        help="Release every configured workspace without change detection",
    ),
    auto_merge: bool | None = typer.Option(  # noqa: B008
        None,
        "--auto-merge/--no-auto-merge",
        help="Merge the release PR and delete its branch",
    ),
) -> None:
    """Release the changed workspaces.

    Examples:
        workspace-release release --release-pr      # open a release PR
        workspace-release release --publish         # publish to npm and GitHub
        workspace-release release -n -v             # preview without changes
    """
    try:
        options = load_options(config)
        overrides = build_overrides(
            release_pr=release_pr,
            source_branch=source_branch,
            env=env,
            publish_path=publish_path,
            change_labels=change_labels,
            skip_check_package=skip_check_package,
            auto_merge=auto_merge,
        )
        execute_release(options, overrides, dry_run=dry_run, verbose=verbose)

    except ReleaseSkipped as e:
        console.print(f"[yellow]{escape(e.message)}[/yellow]")
        raise typer.Exit(code=e.exit_code) from None
    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def changed(
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (searched for if not given)",
    ),
    source_branch: str | None = typer.Option(  # noqa: B008
        None,
        "--source-branch",
        "-b",
        help="Branch to compare against",
    ),
    change_labels: str | None = typer.Option(  # noqa: B008
        None,
        "--change-labels",
        help="Comma-separated change labels",
    ),
) -> None:
    """List the workspaces a release would include.

    Read-only: nothing is committed, pushed or published.
    """
    try:
        options = load_options(config)
        overrides = build_overrides(source_branch=source_branch, change_labels=change_labels)
        context = ReleaseContext(options=options, overrides=overrides, dry_run=True)

        EnvironmentPlugin(context).on_before(context)
        workspaces = WorkspacesPlugin(context).resolve(context)

        table = Table(title=f"Changed workspaces (since {context.source_branch})")
        table.add_column("Name", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Path")
        for workspace in workspaces:
            table.add_row(workspace.name, workspace.version, workspace.path)

        console.print(table)

    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command(name="init-config")
def init_config(
    output: Path = typer.Option(  # noqa: B008
        Path("release.yml"),
        "--output",
        "-o",
        help="Output path for configuration file",
    ),
    force: bool = typer.Option(  # noqa: B008
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Generate a release configuration file.

    Detects workspace directories and the GitHub remote of the
    current repository.

    Examples:
        workspace-release init-config
        workspace-release init-config -o config/release.yml
    """
    if output.exists() and not force:
        console.print(f"[red]Configuration already exists:[/red] {output}")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=1)

    try:
        write_default_config(output)
        console.print(f"[green]Configuration written to:[/green] {output}")

    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


if __name__ == "__main__":
    app()
