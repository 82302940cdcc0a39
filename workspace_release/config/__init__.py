"""Configuration management for the release pipeline."""

from workspace_release.config.loader import (
    find_config,
    load_options,
    load_shared,
    merge_options,
)
from workspace_release.config.models import (
    ChangelogConfig,
    CommitTypeConfig,
    GithubPRConfig,
    GithubReleaseConfig,
    LabelConfig,
    PluginConfig,
    PublishNpmConfig,
    ReleaseParamsConfig,
    SharedOptions,
    WorkspaceConfig,
    WorkspacesConfig,
)

__all__ = [
    "SharedOptions",
    "LabelConfig",
    "PluginConfig",
    "WorkspaceConfig",
    "WorkspacesConfig",
    "CommitTypeConfig",
    "ChangelogConfig",
    "ReleaseParamsConfig",
    "GithubPRConfig",
    "PublishNpmConfig",
    "GithubReleaseConfig",
    "find_config",
    "load_options",
    "load_shared",
    "merge_options",
]
