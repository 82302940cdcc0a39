"""Plugin lifecycle executor.

Runs an ordered list of plugins through the lifecycle phases:
1. on_before for every plugin, in registration order
2. on_exec for every plugin
3. on_success for every plugin, only if 1 and 2 succeeded

Any exception stops the run; on_error is then called on every plugin
before the original exception is re-raised.
"""

from rich.console import Console
from rich.markup import escape

from workspace_release.context import ReleaseContext
from workspace_release.exceptions import ConfigurationError
from workspace_release.plugins.base import Plugin

console = Console()

MAIN_PHASES = ("on_before", "on_exec", "on_success")


class LifecycleExecutor:
    """Sequential runner for stage plugins."""

    def __init__(self, plugins: list[Plugin] | None = None) -> None:
        self._plugins: list[Plugin] = []
        for plugin in plugins or []:
            self.use(plugin)

    @property
    def plugins(self) -> list[Plugin]:
        return list(self._plugins)

    def use(self, plugin: Plugin) -> Plugin:
        """Register a plugin at the end of the pipeline.

        Raises:
            ConfigurationError: If a single-instance plugin is registered twice
        """
        if plugin.only_one and any(p.plugin_name == plugin.plugin_name for p in self._plugins):
            raise ConfigurationError(
                f"Plugin '{plugin.plugin_name}' is already registered",
                fix_hint="Remove the duplicate entry from 'plugins'",
            )
        self._plugins.append(plugin)
        return plugin

    def run(self, context: ReleaseContext) -> None:
        """Drive every plugin through the lifecycle.

        Raises:
            Exception: The first exception raised by a hook, after on_error
        """
        try:
            for phase in MAIN_PHASES:
                self._run_phase(phase, context)
        except Exception as e:
            context.error = e
            self._run_error_hooks(context)
            raise

    def _run_phase(self, phase: str, context: ReleaseContext) -> None:
        for plugin in self._plugins:
            if not plugin.enabled(phase):
                plugin.log_verbose(f"{plugin.plugin_name}.{phase} skipped")
                continue
            getattr(plugin, phase)(context)

    def _run_error_hooks(self, context: ReleaseContext) -> None:
        for plugin in self._plugins:
            if not plugin.enabled("on_error"):
                continue
            try:
                plugin.on_error(context)
            except Exception as e:
                # on_error is best effort; the original failure is re-raised
                console.print(
                    f"[red]  {plugin.plugin_name}.on_error failed: {escape(str(e))}[/red]"
                )
