"""Pydantic v2 configuration models for the release pipeline.

These models provide:
- Type-safe configuration loading
- Automatic validation
- Default values
- Environment variable override support for shared options

Shared options are the top-level keys of the config file. Every plugin reads
its own section, a top-level mapping named after the plugin.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from workspace_release.config.defaults import (
    BATCH_BRANCH_NAME,
    BATCH_TAG_NAME,
    DEFAULT_AUTO_MERGE_TYPE,
    DEFAULT_BRANCH_NAME,
    DEFAULT_CHANGE_PACKAGES_LABEL,
    DEFAULT_CHANGESET_COMMAND,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_DRY_RUN_PR_NUMBER,
    DEFAULT_LABEL,
    DEFAULT_PR_BODY,
    DEFAULT_PR_TITLE,
    DEFAULT_RELEASE_NAME,
    DEFAULT_TAG_MATCH,
    DEFAULT_TAG_TEMPLATE,
    DEFAULT_TYPES,
    MAX_WORKSPACE,
    MULTI_WORKSPACE_SEPARATOR,
    WORKSPACE_VERSION_SEPARATOR,
)


class LabelConfig(BaseModel):
    """Label attached to every release pull request.

    Every field is optional so an incomplete label can be detected and
    reported before any remote call.
    """

    name: str | None = Field(default=None, description="Label name")
    description: str | None = Field(default=None, description="Label description")
    color: str | None = Field(
        default=None,
        description="Label color as hex, with or without a leading '#'",
    )

    def is_complete(self) -> bool:
        return bool(self.name and self.description and self.color)


class SharedOptions(BaseSettings):
    """Options shared by every plugin.

    Supports environment variable overrides with RELEASE_ prefix.
    Example: RELEASE_SOURCE_BRANCH=develop
    """

    source_branch: str | None = Field(
        default=None,
        description="Branch releases are based on and PRs target",
    )
    release_env: str | None = Field(
        default=None,
        description="Release environment label (production, staging, ...)",
    )
    root_path: str | None = Field(
        default=None,
        description="Repository root (defaults to the working directory)",
    )
    repo_name: str | None = Field(default=None, description="GitHub repository name")
    author_name: str | None = Field(default=None, description="GitHub repository owner")
    current_branch: str | None = Field(
        default=None,
        description="Branch the release branch is cut from",
    )
    packages_directories: list[str] = Field(
        default_factory=list,
        description="Workspace directories relative to root_path",
    )
    change_packages_label: str = Field(
        default=DEFAULT_CHANGE_PACKAGES_LABEL,
        description="Label pattern marking a changed package ({{name}} is the path)",
    )
    branch_name: str = Field(
        default=DEFAULT_BRANCH_NAME,
        description="Release branch template for a single workspace",
    )
    pr_title: str = Field(default=DEFAULT_PR_TITLE, description="PR title template")
    pr_body: str = Field(default=DEFAULT_PR_BODY, description="PR body template")
    auto_merge_type: Literal["merge", "squash", "rebase"] = Field(
        default=DEFAULT_AUTO_MERGE_TYPE,
        description="Merge method used when auto-merging the release PR",
    )
    auto_merge_release_pr: bool = Field(
        default=False,
        description="Merge the release PR and delete its branch automatically",
    )
    label: LabelConfig = Field(
        default_factory=lambda: LabelConfig(**DEFAULT_LABEL),
        description="Release PR label",
    )
    release_pr: bool = Field(
        default=False,
        description="Open a release PR instead of publishing",
    )
    publish_path: str | None = Field(
        default=None,
        description="Restrict the release to the workspace at this path",
    )
    package_json: dict[str, Any] = Field(
        default_factory=dict,
        description="Manifest of the workspace currently being released",
    )
    plugins: list[str | dict[str, Any]] = Field(
        default_factory=list,
        description="Extra plugins as 'module:Class' or {name, props}",
    )

    model_config = {
        "env_prefix": "RELEASE_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }


class PluginConfig(BaseModel):
    """Configuration every plugin understands.

    ``skip`` is True to disable the plugin, a hook name such as
    ``"on_exec"`` to disable only that phase, or None to run everything.
    """

    skip: bool | str | None = Field(
        default=None,
        description="True, a lifecycle hook name, or None",
    )

    model_config = {"extra": "allow"}


class WorkspaceConfig(BaseModel):
    """A workspace pinned explicitly in configuration."""

    name: str
    version: str
    path: str
    root: str | None = None
    package_json: dict[str, Any] = Field(default_factory=dict)


class WorkspacesConfig(PluginConfig):
    """Workspace resolver configuration."""

    skip_check_package: bool = Field(
        default=False,
        description="Release every configured directory without change detection",
    )
    workspace: WorkspaceConfig | None = Field(
        default=None,
        description="Pin a single workspace and skip resolution",
    )
    change_labels: list[str] | None = Field(
        default=None,
        description="Externally supplied change labels (e.g. from CI)",
    )

    @field_validator("change_labels", mode="before")
    @classmethod
    def split_labels(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [label.strip() for label in v.split(",") if label.strip()]
        return v


class CommitTypeConfig(BaseModel):
    """Changelog section for one conventional-commit type."""

    type: str
    section: str | None = None
    hidden: bool = False


class ChangelogConfig(PluginConfig):
    """Changelog generation configuration."""

    increment: Literal["major", "minor", "patch"] = Field(
        default="patch",
        description="Default version increment written to changesets",
    )
    skip_changeset: bool = Field(
        default=False,
        description="Do not write changeset files or bump versions",
    )
    changeset_root: str = Field(
        default=".changeset",
        description="Changeset directory relative to root_path",
    )
    changeset_command: str = Field(
        default=DEFAULT_CHANGESET_COMMAND,
        description="Command that applies changesets to manifests",
    )
    tag_template: str = Field(
        default=DEFAULT_TAG_TEMPLATE,
        description="Tag name template for a workspace",
    )
    tag_match: str = Field(
        default=DEFAULT_TAG_MATCH,
        description="Glob used to find a workspace's previous tag",
    )
    types: list[CommitTypeConfig] = Field(
        default_factory=lambda: [CommitTypeConfig(**item) for item in DEFAULT_TYPES],
        description="Commit types rendered into the changelog, in order",
    )
    format_template: str | None = Field(
        default=None,
        description="Template for one changelog line",
    )


class ReleaseParamsConfig(PluginConfig):
    """Naming of release branches, tags and pull requests."""

    max_workspace: int = Field(
        default=MAX_WORKSPACE,
        ge=1,
        description="Workspaces named inline in a batch release name",
    )
    multi_workspace_separator: str = Field(default=MULTI_WORKSPACE_SEPARATOR)
    workspace_version_separator: str = Field(default=WORKSPACE_VERSION_SEPARATOR)
    batch_branch_name: Any = Field(
        default=BATCH_BRANCH_NAME,
        description="Release branch template for a batch",
    )
    batch_tag_name: Any = Field(
        default=BATCH_TAG_NAME,
        description="Release tag template for a batch",
    )
    pr_title: Any = Field(default=None, description="Overrides shared pr_title")
    pr_body: Any = Field(default=None, description="Overrides shared pr_body")


class GithubPRConfig(ReleaseParamsConfig):
    """Release pull request configuration."""

    commit_message: str = Field(default=DEFAULT_COMMIT_MESSAGE)
    commit_args: list[str] = Field(default_factory=list)
    dry_run_create_pr: bool = Field(
        default=False,
        description="Only log the PR that would be created",
    )
    dry_run_pr_number: str = Field(default=DEFAULT_DRY_RUN_PR_NUMBER)
    push_change_labels: bool = Field(
        default=False,
        description="Attach a change label for every released workspace",
    )
    api_url: str = Field(default="https://api.github.com")
    timeout: int = Field(default=30, ge=1, description="GitHub API timeout in seconds")


class PublishNpmConfig(PluginConfig):
    """npm publishing configuration."""

    registry: str = Field(
        default="https://registry.npmjs.org",
        description="npm registry URL",
    )
    access: Literal["public", "restricted"] = Field(
        default="public",
        description="Package access level",
    )
    publish_args: list[str] = Field(default_factory=list)
    skip_npmrc: bool = Field(
        default=False,
        description="Leave .npmrc alone when the environment already provides registry auth",
    )


class GithubReleaseConfig(PluginConfig):
    """GitHub release configuration."""

    release_name: str = Field(
        default=DEFAULT_RELEASE_NAME,
        description="Release title template (workspace fields)",
    )
    draft: bool = Field(default=False, description="Create releases as drafts")
    prerelease: bool = Field(default=False, description="Mark releases as prereleases")
    make_latest: bool = Field(default=True)
    auto_generate: bool = Field(
        default=False,
        description="Let GitHub generate notes instead of the changelog",
    )
    push_tags: bool = Field(default=True, description="Push created tags to origin")
    api_url: str = Field(default="https://api.github.com")
    timeout: int = Field(default=30, ge=1, description="GitHub API timeout in seconds")
