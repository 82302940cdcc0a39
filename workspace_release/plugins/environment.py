"""Environment check: fills in repository identity and reports the setup."""

from rich.console import Console
from rich.markup import escape

from workspace_release.context import ReleaseContext
from workspace_release.exceptions import GitOperationError
from workspace_release.git import queries as git_queries
from workspace_release.plugins.base import Plugin

console = Console()


class EnvironmentPlugin(Plugin):
    """Resolves the current branch and the GitHub owner/repo from git.

    Values already present in the shared options are kept.
    """

    plugin_name = "environment"

    def on_before(self, context: "ReleaseContext") -> None:
        shared = context.shared
        shell = context.shell
        updates: dict[str, str] = {}

        if not shared.current_branch:
            updates["current_branch"] = git_queries.get_current_branch(shell)

        if not shared.author_name or not shared.repo_name:
            try:
                remote_url = git_queries.get_remote_url(shell)
            except GitOperationError:
                remote_url = ""
            repo_info = git_queries.parse_repo_info(remote_url) if remote_url else None
            if repo_info:
                owner, repo = repo_info
                if not shared.author_name:
                    updates["author_name"] = owner
                if not shared.repo_name:
                    updates["repo_name"] = repo
            else:
                console.print(
                    "[yellow]  Warning: could not read a GitHub repository from remote 'origin'[/yellow]"
                )

        if updates:
            context.set_shared(**updates)

        shared = context.shared
        repository = (
            f"{shared.author_name}/{shared.repo_name}"
            if shared.author_name and shared.repo_name
            else "unknown"
        )
        console.print(f"[dim]  Source branch:  {escape(context.source_branch)}[/dim]")
        console.print(f"[dim]  Current branch: {escape(shared.current_branch or '')}[/dim]")
        console.print(f"[dim]  Release env:    {escape(context.release_env)}[/dim]")
        console.print(f"[dim]  Repository:     {escape(repository)}[/dim]")
        console.print(f"[dim]  Mode:           {'release PR' if shared.release_pr else 'publish'}[/dim]")
        if context.dry_run:
            console.print("[yellow]  Dry run: no changes will be made[/yellow]")
