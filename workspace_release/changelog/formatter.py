"""Markdown rendering of parsed commits."""

from collections.abc import Sequence
from typing import Any

from workspace_release.changelog.git_changelog import CommitValue
from workspace_release.config.models import CommitTypeConfig
from workspace_release.utils.template import format_template

DEFAULT_COMMIT_TEMPLATE = "\n- {{scope_header}} {{message}} {{commit_link}} {{pr_link}}"


class ChangelogFormatter:
    """Groups commits by type and renders one markdown line per commit.

    Args:
        types: Sections to render, in order; hidden types are left out
        repo_url: Repository web URL used for commit and PR links
        format_template: Template of one commit line
    """

    def __init__(
        self,
        types: Sequence[CommitTypeConfig],
        repo_url: str | None = None,
        format_template: str | None = None,
    ) -> None:
        self.types = list(types)
        self.repo_url = repo_url.rstrip("/") if repo_url else None
        self.template = format_template or DEFAULT_COMMIT_TEMPLATE

    def format(self, commits: list[CommitValue]) -> list[str]:
        """Render commits as changelog lines."""
        grouped: dict[str | None, list[CommitValue]] = {}
        for commit in commits:
            grouped.setdefault(commit.commitlint.type, []).append(commit)

        lines: list[str] = []
        for type_config in self.types:
            if type_config.hidden:
                continue
            type_commits = grouped.get(type_config.type, [])
            if not type_commits:
                continue

            lines.append(type_config.section or type_config.type)
            for commit in type_commits:
                lines.append(self.format_commit(commit))
                if commit.commitlint.body:
                    lines.extend(f"  {line.strip()}" for line in commit.commitlint.body.split("\n"))
        return lines

    def format_commit(self, commit: CommitValue) -> str:
        commitlint = commit.commitlint
        scope_header = self.format_scope(commitlint.scope) if commitlint.scope else ""
        commit_link = ""
        if commit.hash:
            commit_link = self.format_link(commit.hash[:7], self._url(f"commit/{commit.hash}"))
        pr_link = ""
        if commit.pr_number:
            pr_link = self.format_link(f"#{commit.pr_number}", self._url(f"pull/{commit.pr_number}"))

        values: dict[str, Any] = {
            "hash": commit.hash,
            "subject": commit.subject,
            "type": commitlint.type,
            "scope": commitlint.scope,
            "message": commitlint.message,
            "commitlint": commitlint,
            "pr_number": commit.pr_number,
            "scope_header": scope_header,
            "commit_link": commit_link,
            "pr_link": pr_link,
        }
        return format_template(self.template, values)

    def _url(self, suffix: str) -> str | None:
        return f"{self.repo_url}/{suffix}" if self.repo_url else None

    @staticmethod
    def format_link(target: str, url: str | None = None) -> str:
        return f"([{target}]({url}))" if url else f"({target})"

    @staticmethod
    def format_scope(scope: str) -> str:
        return f"**{scope}:**"
