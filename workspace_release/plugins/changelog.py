"""Changelog plugin.

For every workspace:
1. Find the previous tag and build a markdown changelog from git history
2. In release-PR mode, write a changeset file and bump versions with the
   changesets CLI
3. Derive the tag name from the (possibly bumped) version
"""

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from workspace_release.changelog import ChangelogFormatter, GitChangelog, flatten_commits
from workspace_release.config.defaults import MANIFEST_PATH
from workspace_release.config.models import ChangelogConfig
from workspace_release.context import ReleaseContext, Workspace
from workspace_release.exceptions import ConfigurationError
from workspace_release.git import queries as git_queries
from workspace_release.plugins.base import Plugin
from workspace_release.plugins.workspaces import get_change_labels
from workspace_release.utils.template import format_template

console = Console()

INCREMENT_LABELS = {"increment:major": "major", "increment:minor": "minor"}
MAX_WORKERS = 8


def changeset_file_name(workspace: Workspace) -> str:
    name = f"{workspace.name}-{workspace.version}.md"
    return name.replace("/", "_").replace("\\", "_")


def changeset_content(workspace: Workspace, increment: str) -> str:
    return f"---\n'{workspace.name}': '{increment}'\n---\n\n{workspace.changelog or ''}"


class ChangelogPlugin(Plugin):
    """Builds changelogs, changesets and tag names."""

    plugin_name = "changelog"
    config_model = ChangelogConfig

    def runs_changeset(self, context: "ReleaseContext") -> bool:
        return bool(context.shared.release_pr) and not self.config.skip_changeset

    @property
    def changeset_root(self) -> Path:
        return self.context.root_path / self.config.changeset_root

    def on_before(self, context: "ReleaseContext") -> None:
        if self.runs_changeset(context) and not self.changeset_root.is_dir():
            raise ConfigurationError(
                f"Changeset directory not found: {self.changeset_root}",
                fix_hint="Run 'npx changeset init' or set changelog.skip_changeset",
            )

    def on_exec(self, context: "ReleaseContext") -> None:
        workspaces = context.workspaces or []

        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, max(len(workspaces), 1))) as pool:
            workspaces = list(pool.map(self.generate_changelog, workspaces))
        context.set_workspaces(workspaces)

        if self.runs_changeset(context):
            increment = self.get_increment(context)
            self.step("Changeset", lambda: self.write_changesets(context, workspaces, increment))
            self.step("Changeset Version", lambda: context.shell.exec(self.config.changeset_command))
            workspaces = [self.reload_version(workspace) for workspace in workspaces]

        context.set_workspaces([self.with_tag_name(workspace) for workspace in workspaces])

    @property
    def repo_url(self) -> str | None:
        shared = self.context.shared
        if shared.author_name and shared.repo_name:
            return f"https://github.com/{shared.author_name}/{shared.repo_name}"
        return None

    def generate_changelog(self, workspace: Workspace) -> Workspace:
        """Return a copy of workspace with last_tag and changelog filled in."""
        config: ChangelogConfig = self.config
        values = workspace.to_dict()
        shell = self.context.shell

        last_tag = git_queries.get_latest_tag(shell, format_template(config.tag_match, values))
        if not last_tag:
            last_tag = format_template(config.tag_template, values)

        commits = GitChangelog(shell).get_commits(last_tag, workspace.path)
        formatter = ChangelogFormatter(config.types, self.repo_url, config.format_template)
        lines = formatter.format(flatten_commits(commits))
        self.log_verbose(f"{workspace.name}: {len(commits)} commit(s) since {last_tag}")
        return workspace.with_updates(last_tag=last_tag, changelog="\n".join(lines))

    def get_increment(self, context: "ReleaseContext") -> str:
        """Version increment: an increment label wins over configuration."""
        labels = get_change_labels(context)
        for label, increment in INCREMENT_LABELS.items():
            if label in labels:
                return increment
        return self.config.increment

    def write_changesets(
        self,
        context: "ReleaseContext",
        workspaces: list[Workspace],
        increment: str,
    ) -> list[Path]:
        """Write one changeset file per workspace; existing files are kept."""
        written: list[Path] = []
        for workspace in workspaces:
            target = self.changeset_root / changeset_file_name(workspace)
            content = changeset_content(workspace, increment)

            if target.exists():
                console.print(f"[yellow]  Changeset {escape(target.name)} already exists, skipping[/yellow]")
                continue
            if context.dry_run:
                console.print(f"[yellow]\\[DRY RUN][/yellow] Would write {escape(str(target))}:")
                console.print(f"[dim]{escape(content)}[/dim]")
                continue

            target.write_text(content, encoding="utf-8")
            written.append(target)
        return written

    def reload_version(self, workspace: Workspace) -> Workspace:
        """Re-read the manifest after the version bump."""
        manifest = Path(workspace.root) / MANIFEST_PATH
        try:
            package_json = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read package manifest {manifest}", details=str(e)) from e
        version = package_json.get("version") if isinstance(package_json, dict) else None
        if not version:
            raise ConfigurationError(f"Package manifest {manifest} has no version")
        return workspace.with_updates(version=str(version), package_json=package_json)

    def with_tag_name(self, workspace: Workspace) -> Workspace:
        tag_name = format_template(self.config.tag_template, workspace.to_dict())
        return workspace.with_updates(tag_name=tag_name)
