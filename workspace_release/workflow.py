"""Release workflow orchestration.

Assembles the context and the plugin pipeline for one run:
1. Honour FE_RELEASE=false before anything is loaded
2. Build the ReleaseContext from file options and CLI overrides
3. Register the default and custom plugins
4. Run the lifecycle and report the outcome
"""

import os
import time
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from workspace_release.context import ReleaseContext, Workspace
from workspace_release.exceptions import ReleaseError, ReleaseSkipped
from workspace_release.executor import LifecycleExecutor
from workspace_release.plugins import create_plugins
from workspace_release.plugins.base import Plugin

console = Console()


def check_release_switch(env: dict[str, str]) -> None:
    """Stop the run when FE_RELEASE is "false".

    Raises:
        ReleaseSkipped: If releases are switched off
    """
    if env.get("FE_RELEASE", "").strip().lower() == "false":
        raise ReleaseSkipped("Skip Release", details="FE_RELEASE is set to false")


@dataclass
class WorkflowResult:
    """Outcome of a release run."""

    success: bool
    message: str
    workspaces: list[Workspace] = field(default_factory=list)
    duration: float = 0.0


@dataclass
class ReleaseTask:
    """One release run over a context and its plugins.

    When ``plugins`` is None the default pipeline plus the configured
    extra plugins are used.
    """

    context: ReleaseContext
    plugins: list[Plugin] | None = None

    def __post_init__(self) -> None:
        plugins = self.plugins if self.plugins is not None else create_plugins(self.context)
        self.executor = LifecycleExecutor(plugins)

    def run(self) -> WorkflowResult:
        """Execute the pipeline.

        Raises:
            ReleaseError: Any failure of the pipeline, after on_error hooks ran
        """
        context = self.context
        mode = "release PR" if context.shared.release_pr else "publish"
        title = f"[bold]workspace release[/bold] - {mode} mode"
        if context.dry_run:
            title += " [yellow](dry run)[/yellow]"
        console.print(Panel(title, expand=False))

        start = time.monotonic()
        try:
            self.executor.run(context)
        except ReleaseError as e:
            console.print(
                Panel(f"[red]Release failed:[/red] {escape(e.message)}", border_style="red", expand=False)
            )
            raise

        workspaces = context.workspaces or []
        duration = time.monotonic() - start
        names = ", ".join(f"{w.name}@{w.version}" for w in workspaces) or "nothing"
        console.print(
            Panel(
                f"[green]Release completed[/green] in {duration:.1f}s: {escape(names)}",
                border_style="green",
                expand=False,
            )
        )
        return WorkflowResult(
            success=True,
            message=f"Released {len(workspaces)} workspace(s)",
            workspaces=list(workspaces),
            duration=duration,
        )


def execute_release(
    options: dict[str, Any] | None = None,
    overrides: dict[str, Any] | None = None,
    dry_run: bool = False,
    verbose: bool = False,
    env: dict[str, str] | None = None,
    plugins: list[Plugin] | None = None,
) -> WorkflowResult:
    """Run a complete release.

    Args:
        options: Configuration file contents
        overrides: Command-line overrides, same shape as options
        dry_run: Print mutations instead of performing them
        verbose: Print extra detail
        env: Environment variables (defaults to the process environment)
        plugins: Replace the default pipeline

    Raises:
        ReleaseSkipped: If FE_RELEASE is "false"
        ReleaseError: On any pipeline failure
    """
    environ = dict(os.environ) if env is None else env
    check_release_switch(environ)

    context = ReleaseContext(
        options=options or {},
        overrides=overrides or {},
        dry_run=dry_run,
        verbose=verbose,
        env=environ,
    )
    return ReleaseTask(context, plugins).run()
