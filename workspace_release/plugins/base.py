"""Base class for pipeline stage plugins.

A plugin takes part in up to four lifecycle hooks:
- on_before: setup and validation
- on_exec: main work
- on_success: mutations that run only when every on_exec succeeded
- on_error: failure reporting

Every hook is a no-op by default; enabled(phase) decides whether the
executor calls it.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from rich.console import Console
from rich.markup import escape

from workspace_release.config.models import PluginConfig

if TYPE_CHECKING:
    from workspace_release.context import ReleaseContext

console = Console()

T = TypeVar("T")

PHASES = ("on_before", "on_exec", "on_success", "on_error")


class Plugin:
    """Base class for all stage plugins.

    Subclasses set ``plugin_name`` (also the name of their configuration
    section) and ``config_model``.
    """

    plugin_name: ClassVar[str] = "plugin"
    config_model: ClassVar[type[PluginConfig]] = PluginConfig
    only_one: ClassVar[bool] = True

    def __init__(self, context: "ReleaseContext", props: dict[str, Any] | None = None) -> None:
        """Register this plugin's configuration with the context.

        Args:
            context: Release context of the run
            props: Constructor defaults, overridden by the config file and CLI
        """
        self.context = context
        context.configure_plugin(self.plugin_name, self.config_model, props or {})

    @property
    def config(self) -> Any:
        """Current configuration, including updates made during the run."""
        return self.context.get_config(self.plugin_name)

    def enabled(self, phase: str) -> bool:
        """Check whether a lifecycle phase should run.

        ``skip: true`` disables every phase; ``skip: <phase>`` disables
        only that one.
        """
        skip = self.config.skip
        if skip is True:
            return False
        if isinstance(skip, str) and skip == phase:
            return False
        return True

    def on_before(self, context: "ReleaseContext") -> None:
        pass

    def on_exec(self, context: "ReleaseContext") -> None:
        pass

    def on_success(self, context: "ReleaseContext") -> None:
        pass

    def on_error(self, context: "ReleaseContext") -> None:
        pass

    def step(self, label: str, task: Callable[[], T]) -> T:
        """Run one user-visible unit of work.

        Args:
            label: Step description
            task: Callable doing the work

        Returns:
            Whatever task returns

        Raises:
            Exception: Whatever task raised, after reporting it
        """
        console.print(f"\n[bold cyan]>[/bold cyan] {escape(label)}...")
        try:
            result = task()
        except Exception as e:
            console.print(f"[red]  {escape(label)} - failed: {escape(str(e))}[/red]")
            raise
        console.print(f"[green]  {escape(label)} - success[/green]")
        return result

    def log_verbose(self, message: str) -> None:
        if self.context.verbose:
            console.print(f"[dim]  {escape(message)}[/dim]")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(plugin_name={self.plugin_name!r})"
