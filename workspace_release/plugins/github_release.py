"""GitHub release plugin.

In publish mode, after every stage succeeded:
1. Create and push an annotated tag per workspace
2. Create one GitHub release per workspace, concurrently
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any

from rich.console import Console
from rich.markup import escape

from workspace_release.config.models import GithubReleaseConfig
from workspace_release.context import ReleaseContext, Workspace
from workspace_release.exceptions import GatewayError, ValidationError
from workspace_release.gateway.base import ReleaseGateway, ReleaseOptions
from workspace_release.gateway.github import GitHubGateway, get_github_token
from workspace_release.git import operations as git_ops
from workspace_release.git import queries as git_queries
from workspace_release.plugins.base import Plugin
from workspace_release.utils.template import format_template

console = Console()

MAX_BODY_LENGTH = 124000
MAX_WORKERS = 8


def truncate_body(body: str, limit: int = MAX_BODY_LENGTH) -> str:
    """GitHub rejects release bodies over 125000 characters."""
    if len(body) <= limit:
        return body
    return body[:limit] + "..."


class GithubReleasePlugin(Plugin):
    """Tags workspaces and creates their GitHub releases.

    Args:
        context: Release context of the run
        props: Constructor defaults for the ``github_release`` section
        gateway: Gateway to use instead of the GitHub REST client
    """

    plugin_name = "github_release"
    config_model = GithubReleaseConfig

    def __init__(
        self,
        context: "ReleaseContext",
        props: dict[str, Any] | None = None,
        gateway: ReleaseGateway | None = None,
    ) -> None:
        super().__init__(context, props)
        self.gateway = gateway

    def enabled(self, phase: str) -> bool:
        if self.context.shared.release_pr:
            return False
        return super().enabled(phase)

    def on_before(self, context: "ReleaseContext") -> None:
        get_github_token(context)
        if self.gateway is None:
            config: GithubReleaseConfig = self.config
            self.gateway = GitHubGateway.from_context(context, config.api_url, config.timeout)

    def on_success(self, context: "ReleaseContext") -> None:
        workspaces = context.workspaces or []
        self.step("Create Git Tags", lambda: self.create_tags(context, workspaces))
        self.step("Create GitHub Releases", lambda: self.create_releases(workspaces))

    @staticmethod
    def require_tag(workspace: Workspace) -> str:
        if not workspace.tag_name:
            raise ValidationError(
                "TagName is undefined",
                details=f"Workspace {workspace.name} has no tag name",
                fix_hint="Enable the changelog plugin or set changelog.tag_template",
            )
        return workspace.tag_name

    def create_tags(self, context: "ReleaseContext", workspaces: list[Workspace]) -> list[str]:
        """Create missing annotated tags and push them.

        Returns:
            Names of the tags created by this call
        """
        shell = context.shell
        created: list[str] = []
        for workspace in workspaces:
            tag_name = self.require_tag(workspace)
            if git_queries.tag_exists(shell, tag_name):
                self.log_verbose(f"tag {tag_name} already exists")
                continue
            git_ops.tag(shell, tag_name, f"Release {workspace.name} v{workspace.version}")
            created.append(tag_name)

        if self.config.push_tags:
            git_ops.push_tags(shell)
        return created

    def release_options(self, workspace: Workspace) -> ReleaseOptions:
        config: GithubReleaseConfig = self.config
        body = "" if config.auto_generate else truncate_body(workspace.changelog or "")
        return ReleaseOptions(
            tag_name=self.require_tag(workspace),
            name=format_template(config.release_name, workspace.to_dict()),
            body=body,
            draft=config.draft,
            prerelease=config.prerelease,
            make_latest="true" if config.make_latest else "false",
            generate_release_notes=config.auto_generate,
        )

    def create_release(self, workspace: Workspace) -> dict | None:
        """Create one release; gateway failures are reported, not raised.

        Raises:
            ValidationError: If the workspace has no tag name
        """
        options = self.release_options(workspace)

        if self.context.dry_run:
            console.print(
                f"[yellow]\\[DRY RUN][/yellow] Would create release '{escape(options.name)}' "
                f"for tag {escape(options.tag_name)}"
            )
            return None

        try:
            release = self.gateway.create_release(options)
        except GatewayError as e:
            console.print(f"[red]  Failed to create release {escape(options.tag_name)}: {escape(e.message)}[/red]")
            return None

        console.print(f"[green]  Release {escape(options.name)} created[/green] {escape(str(release.get('html_url', '')))}")
        return release

    def create_releases(self, workspaces: list[Workspace]) -> list[dict | None]:
        """Create all releases concurrently; results follow workspace order."""
        for workspace in workspaces:
            self.require_tag(workspace)
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, max(len(workspaces), 1))) as pool:
            return list(pool.map(self.create_release, workspaces))
