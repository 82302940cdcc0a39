"""Release pull request plugin.

In release-PR mode, after every stage succeeded:
1. Commit the version bump
2. Create and push the release branch
3. Ensure the release label and open the pull request
4. Optionally merge it and delete the branch
"""

from collections.abc import Callable
from datetime import date
from typing import Any

from rich.console import Console
from rich.markup import escape

from workspace_release.config.models import GithubPRConfig
from workspace_release.context import PullRequestDescriptor, ReleaseContext, Workspace
from workspace_release.exceptions import ConfigurationError, GitOperationError, ValidationError
from workspace_release.gateway.base import ReleaseGateway
from workspace_release.gateway.github import GitHubGateway, get_github_token
from workspace_release.git import operations as git_ops
from workspace_release.git import queries as git_queries
from workspace_release.params import ReleaseBranchParams, ReleaseParams
from workspace_release.plugins.base import Plugin
from workspace_release.plugins.pr_manager import PullRequestManager
from workspace_release.plugins.workspaces import get_change_labels, release_label_for
from workspace_release.utils.template import PLACEHOLDER_PATTERN, format_template

console = Console()

PERMISSION_DENIED_MARKER = "remote: Permission to"
PERMISSION_HINT = (
    'Token maybe not allow Workflow permissions, can you try to open "Workflow permissions" '
    '-> "Read and write permissions" for this token?'
)
BATCH_COMMIT_PREFIX = "chore(tag): "


def unique(items: list[str]) -> list[str]:
    """De-duplicate, keeping first occurrences in order."""
    return list(dict.fromkeys(item for item in items if item))


class GithubPRPlugin(Plugin):
    """Opens (and optionally merges) the release pull request.

    Args:
        context: Release context of the run
        props: Constructor defaults for the ``github_pr`` section
        gateway: Gateway to use instead of the GitHub REST client
        today: Date source for batch tag names
    """

    plugin_name = "github_pr"
    config_model = GithubPRConfig

    def __init__(
        self,
        context: "ReleaseContext",
        props: dict[str, Any] | None = None,
        gateway: ReleaseGateway | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(context, props)
        self.gateway = gateway
        self.today = today
        self.manager: PullRequestManager | None = None

    def enabled(self, phase: str) -> bool:
        if not self.context.shared.release_pr:
            return False
        return super().enabled(phase)

    def on_before(self, context: "ReleaseContext") -> None:
        get_github_token(context)
        if self.gateway is None:
            config: GithubPRConfig = self.config
            self.gateway = GitHubGateway.from_context(context, config.api_url, config.timeout)
        self.manager = PullRequestManager(self.gateway, dry_run=context.dry_run)

    def on_success(self, context: "ReleaseContext") -> None:
        workspaces = context.workspaces
        if not workspaces:
            raise ValidationError("No workspaces to release")
        if self.manager is None:
            self.on_before(context)

        params = ReleaseParams(self.config, today=self.today)
        branch_params = self.release_branch_params(context, params, workspaces)

        self.commit_changes(context, workspaces)
        self.step(
            "Create Release Branch",
            lambda: self.create_release_branch(context, branch_params),
        )
        pr_number = self.step(
            "Create Release PR",
            lambda: self.create_release_pr(context, params, workspaces, branch_params),
        )

        if context.shared.auto_merge_release_pr:
            self.step(
                f"Merge Release PR({pr_number})",
                lambda: self.manager.merge_pr(
                    pr_number, branch_params.release_branch, context.shared.auto_merge_type
                ),
            )
            self.step(
                f"Checked Release PR({pr_number})",
                lambda: self.manager.checked_pr(pr_number, branch_params.release_branch),
            )
        else:
            console.print(
                f"\n[yellow]Please manually merge PR(#{pr_number}) and complete the publishing process afterwards[/yellow]"
            )

    def commit_message(self, workspaces: list[Workspace]) -> str:
        if len(workspaces) == 1:
            return format_template(self.config.commit_message, workspaces[0].to_dict())
        return BATCH_COMMIT_PREFIX + ",".join(f"{w.name} v{w.version}" for w in workspaces)

    def commit_changes(self, context: "ReleaseContext", workspaces: list[Workspace]) -> None:
        message = self.commit_message(workspaces)
        self.log_verbose(f"commit message: {message}")
        git_ops.add_all(context.shell)
        git_ops.commit(context.shell, message, self.config.commit_args)

    def release_branch_params(
        self,
        context: "ReleaseContext",
        params: ReleaseParams,
        workspaces: list[Workspace],
    ) -> ReleaseBranchParams:
        """Derive the tag and branch names and reject unrendered placeholders.

        Raises:
            ConfigurationError: If a name is not a string or still holds a placeholder
        """
        branch_params = params.get_release_branch_params(workspaces, context.shared)
        if not isinstance(branch_params.tag_name, str):
            raise ConfigurationError("Tag name is not a string", details=repr(branch_params.tag_name))

        names = (("Tag name", branch_params.tag_name), ("Release branch", branch_params.release_branch))
        for what, value in names:
            match = PLACEHOLDER_PATTERN.search(value)
            if match:
                raise ConfigurationError(
                    f"{what} '{value}' has an unresolved placeholder",
                    details=f"No value for '{match.group(1)}' in the template context",
                    fix_hint="Use snake_case keys such as {{tag_name}} and {{pkg_name}} in branch templates",
                )
        return branch_params

    def create_release_branch(
        self,
        context: "ReleaseContext",
        branch_params: ReleaseBranchParams,
    ) -> None:
        """Cut the release branch from the current branch and push it.

        Raises:
            GitOperationError: If fetch, checkout or push fails
        """
        shell = context.shell
        source_branch = context.source_branch
        current_branch = context.shared.current_branch or git_queries.get_current_branch(shell)
        release_branch = branch_params.release_branch

        try:
            git_ops.fetch(shell, "origin", [source_branch, current_branch])
            git_ops.checkout_new_branch(shell, release_branch, current_branch)
            git_ops.push(shell, "origin", release_branch)
        except GitOperationError as e:
            if PERMISSION_DENIED_MARKER in str(e):
                console.print(f"[yellow]  {escape(PERMISSION_HINT)}[/yellow]")
            raise

        console.print(f"[green]  Release branch {escape(release_branch)} pushed[/green]")

    def build_labels(self, context: "ReleaseContext", workspaces: list[Workspace]) -> list[str]:
        label = self.manager.create_release_pr_label(context.shared.label)
        labels = [label.name or "", *get_change_labels(context)]
        if self.config.push_change_labels:
            labels.extend(release_label_for(context).to_change_labels(w.path for w in workspaces))
        return unique(labels)

    def create_release_pr(
        self,
        context: "ReleaseContext",
        params: ReleaseParams,
        workspaces: list[Workspace],
        branch_params: ReleaseBranchParams,
    ) -> str:
        labels = self.build_labels(context, workspaces)
        template_context = context.get_template_context()
        descriptor = PullRequestDescriptor(
            title=params.get_pr_title(branch_params, template_context),
            body=params.get_pr_body(workspaces, template_context),
            base=context.source_branch,
            head=branch_params.release_branch,
            labels=labels,
        )
        config: GithubPRConfig = self.config
        return self.manager.create_release_pr(
            descriptor,
            dry_run_create_pr=config.dry_run_create_pr,
            dry_run_pr_number=config.dry_run_pr_number,
        )
