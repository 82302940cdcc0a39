"""Shared release state threaded through every plugin.

A ReleaseContext is created once per invocation and passed explicitly to
each lifecycle hook. Plugins update it only through set_shared,
set_workspaces and set_config.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from workspace_release.config.defaults import DEFAULT_RELEASE_ENV, DEFAULT_SOURCE_BRANCH
from workspace_release.config.loader import load_shared, merge_options
from workspace_release.config.models import PluginConfig, SharedOptions
from workspace_release.exceptions import ConfigurationError
from workspace_release.utils.shell import Shell

ConfigT = TypeVar("ConfigT", bound=PluginConfig)

SOURCE_BRANCH_ENV_KEYS = ("FE_RELEASE_BRANCH", "FE_RELEASE_SOURCE_BRANCH")
RELEASE_ENV_KEYS = ("FE_RELEASE_ENV", "NODE_ENV")


@dataclass
class Workspace:
    """One releasable package of the monorepo.

    ``name`` and ``path`` identify the workspace for the whole run. Later
    stages enrich copies of it (see ``with_updates``) with the previous tag,
    the changelog and the tag name.
    """

    name: str
    version: str
    path: str
    root: str
    package_json: dict[str, Any] = field(default_factory=dict)
    last_tag: str | None = None
    changelog: str | None = None
    tag_name: str | None = None

    def with_updates(self, **changes: Any) -> "Workspace":
        """Return an enriched copy; identity fields cannot change."""
        if "name" in changes or "path" in changes:
            raise ValueError("Workspace name and path cannot be changed")
        data = {**asdict(self), **changes}
        return Workspace(**data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PullRequestDescriptor:
    """Fields submitted when opening a release pull request."""

    title: str
    body: str
    base: str
    head: str
    labels: list[str] = field(default_factory=list)


@dataclass
class ReleaseContext:
    """Mutable state of one release run.

    Attributes:
        options: Raw configuration file contents
        overrides: Command-line overrides, same shape as ``options``
        dry_run: Print mutating commands and remote calls instead of running them
        verbose: Print extra detail
        env: Environment variables (defaults to the process environment)
        shell: Command executor bound to the repository root
        workspaces: Workspaces under release, None until resolved
        error: The exception that aborted the run, if any
    """

    options: dict[str, Any] = field(default_factory=dict)
    overrides: dict[str, Any] = field(default_factory=dict)
    dry_run: bool = False
    verbose: bool = False
    env: dict[str, str] = field(default_factory=lambda: dict(os.environ))
    shell: Shell | None = None
    workspaces: list[Workspace] | None = None
    error: BaseException | None = None
    shared: SharedOptions = field(init=False)
    _plugin_configs: dict[str, PluginConfig] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        shared = load_shared(merge_options(self.options, self.overrides))

        defaults: dict[str, Any] = {}
        if not shared.source_branch:
            defaults["source_branch"] = self._first_env(SOURCE_BRANCH_ENV_KEYS, DEFAULT_SOURCE_BRANCH)
        if not shared.release_env:
            defaults["release_env"] = self._first_env(RELEASE_ENV_KEYS, DEFAULT_RELEASE_ENV)
        if not shared.root_path:
            defaults["root_path"] = str(Path.cwd().resolve())
        self.shared = shared.model_copy(update=defaults)

        if self.shell is None:
            self.shell = Shell(cwd=self.root_path, dry_run=self.dry_run, verbose=self.verbose)

    def _first_env(self, keys: tuple[str, ...], default: str) -> str:
        for key in keys:
            value = self.env.get(key)
            if value:
                return value
        return default

    @property
    def root_path(self) -> Path:
        return Path(self.shared.root_path or ".")

    @property
    def source_branch(self) -> str:
        return self.shared.source_branch or DEFAULT_SOURCE_BRANCH

    @property
    def release_env(self) -> str:
        return self.shared.release_env or DEFAULT_RELEASE_ENV

    def set_shared(self, **updates: Any) -> SharedOptions:
        """Deep-merge updates into the shared options.

        Raises:
            ConfigurationError: If an updated value has the wrong type
        """
        merged = merge_options(self.shared.model_dump(), updates)
        self.shared = load_shared(merged)
        return self.shared

    def set_workspaces(self, workspaces: list[Workspace]) -> None:
        self.workspaces = list(workspaces)

    def configure_plugin(
        self,
        name: str,
        model: type[ConfigT],
        defaults: dict[str, Any] | None = None,
    ) -> ConfigT:
        """Build and store the configuration of one plugin.

        Layers, lowest priority first: ``defaults``, the ``name`` section of
        the configuration file, the ``name`` section of the overrides.

        Raises:
            ConfigurationError: If the merged values do not validate
        """
        file_section = self.options.get(name)
        override_section = self.overrides.get(name)
        merged = merge_options(
            defaults,
            file_section if isinstance(file_section, dict) else None,
            override_section if isinstance(override_section, dict) else None,
        )
        try:
            config = model(**merged)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration for plugin '{name}'",
                details=str(e),
                fix_hint=f"Check the '{name}' section of the configuration file",
            ) from e
        self._plugin_configs[name] = config
        return config

    def get_config(self, name: str) -> PluginConfig:
        """Return a plugin's configuration.

        Raises:
            ConfigurationError: If the plugin was never configured
        """
        try:
            return self._plugin_configs[name]
        except KeyError:
            raise ConfigurationError(f"Plugin '{name}' is not configured") from None

    def has_config(self, name: str) -> bool:
        return name in self._plugin_configs

    def set_config(self, name: str, **updates: Any) -> PluginConfig:
        """Deep-merge updates into a plugin's configuration."""
        current = self.get_config(name)
        merged = merge_options(current.model_dump(), updates)
        try:
            config = type(current)(**merged)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration update for plugin '{name}'",
                details=str(e),
            ) from e
        self._plugin_configs[name] = config
        return config

    def get_env(self, key: str, default: str | None = None) -> str | None:
        value = self.env.get(key)
        return value if value else default

    def get_template_context(self) -> dict[str, Any]:
        """Values available to PR title/body and branch templates."""
        return {
            **self.shared.model_dump(),
            "env": self.release_env,
            "branch": self.source_branch,
        }
