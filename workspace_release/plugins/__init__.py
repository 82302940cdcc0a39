"""Stage plugins and plugin loading.

The default pipeline, in registration order:
environment, workspaces, changelog, github_pr, publish_npm, github_release.

Extra plugins are listed in the shared ``plugins`` option, either as
``"package.module:ClassName"`` or as ``{"name": "...", "props": {...}}``.
"""

import importlib
from typing import TYPE_CHECKING, Any

from workspace_release.exceptions import ConfigurationError
from workspace_release.plugins.base import Plugin
from workspace_release.plugins.changelog import ChangelogPlugin
from workspace_release.plugins.environment import EnvironmentPlugin
from workspace_release.plugins.github_pr import GithubPRPlugin
from workspace_release.plugins.github_release import GithubReleasePlugin
from workspace_release.plugins.publish_npm import PublishNpmPlugin
from workspace_release.plugins.workspaces import WorkspacesPlugin

if TYPE_CHECKING:
    from workspace_release.context import ReleaseContext

DEFAULT_PLUGINS: list[type[Plugin]] = [
    EnvironmentPlugin,
    WorkspacesPlugin,
    ChangelogPlugin,
    GithubPRPlugin,
    PublishNpmPlugin,
    GithubReleasePlugin,
]


def import_plugin_class(name: str) -> type[Plugin]:
    """Import a plugin class from ``module:ClassName``.

    Raises:
        ConfigurationError: If the module, class or base class is wrong
    """
    module_name, _, class_name = name.partition(":")
    if not module_name or not class_name:
        raise ConfigurationError(
            f"Invalid plugin reference '{name}'",
            fix_hint="Use the form 'package.module:ClassName'",
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            f"Cannot import plugin module '{module_name}'",
            details=str(e),
            fix_hint="Check that the module is installed and on the Python path",
        ) from e

    plugin_class = getattr(module, class_name, None)
    if not isinstance(plugin_class, type) or not issubclass(plugin_class, Plugin):
        raise ConfigurationError(
            f"'{name}' is not a plugin class",
            fix_hint="Custom plugins must subclass workspace_release.plugins.base.Plugin",
        )
    return plugin_class


def load_plugin(entry: str | dict[str, Any], context: "ReleaseContext") -> Plugin:
    """Instantiate one entry of the ``plugins`` option."""
    if isinstance(entry, str):
        return import_plugin_class(entry)(context)

    name = entry.get("name")
    if not isinstance(name, str):
        raise ConfigurationError(
            "Plugin entry has no 'name'",
            details=repr(entry),
        )
    props = entry.get("props") or {}
    if not isinstance(props, dict):
        raise ConfigurationError(f"Props of plugin '{name}' must be a mapping")
    return import_plugin_class(name)(context, props)


def create_plugins(context: "ReleaseContext") -> list[Plugin]:
    """Build the default plugins followed by the configured extra plugins."""
    plugins: list[Plugin] = [plugin_class(context) for plugin_class in DEFAULT_PLUGINS]
    plugins.extend(load_plugin(entry, context) for entry in context.shared.plugins)
    return plugins


__all__ = [
    "Plugin",
    "EnvironmentPlugin",
    "WorkspacesPlugin",
    "ChangelogPlugin",
    "GithubPRPlugin",
    "PublishNpmPlugin",
    "GithubReleasePlugin",
    "DEFAULT_PLUGINS",
    "create_plugins",
    "load_plugin",
    "import_plugin_class",
]
