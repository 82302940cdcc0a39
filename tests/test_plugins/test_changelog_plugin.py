"""Tests for the changelog plugin against a real repository."""

import json
import subprocess
import sys
from pathlib import Path

import pytest

from workspace_release.context import Workspace
from workspace_release.exceptions import ConfigurationError
from workspace_release.plugins.changelog import ChangelogPlugin, changeset_content, changeset_file_name
from workspace_release.plugins.workspaces import WorkspacesPlugin

BUMP_SCRIPT = """
import json, pathlib, sys
for path in sys.argv[1:]:
    manifest = pathlib.Path(path)
    data = json.loads(manifest.read_text())
    major, minor, patch = data["version"].split(".")
    data["version"] = f"{major}.{minor}.{int(patch) + 1}"
    manifest.write_text(json.dumps(data))
"""


def commit_file(repo: Path, relative: str, message: str) -> None:
    target = repo / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(message)
    subprocess.run(["git", "add", "."], cwd=repo, check=True, capture_output=True)
    subprocess.run(["git", "commit", "-m", message], cwd=repo, check=True, capture_output=True)


@pytest.fixture
def history(monorepo: Path) -> Path:
    commit_file(monorepo, "packages/pkg-a/src/button.ts", "feat(button): add size prop (#12)")
    commit_file(monorepo, "packages/pkg-a/src/input.ts", "fix: trim input")
    commit_file(monorepo, "packages/pkg-b/src/x.ts", "feat: b only")
    commit_file(monorepo, "packages/pkg-a/README.md", "chore: tidy readme")
    return monorepo


def base_options(**extra) -> dict:
    return {
        "author_name": "acme",
        "repo_name": "mono",
        "packages_directories": ["packages/pkg-a", "packages/pkg-b"],
        "workspaces": {"change_labels": ["changes:packages/pkg-a"]},
        **extra,
    }


def resolved(make_context, root: Path, **kwargs):
    context = make_context(root=root, **kwargs)
    WorkspacesPlugin(context).on_before(context)
    return context


class TestHelpers:
    """Tests for changeset helpers."""

    def test_file_name_replaces_separators(self) -> None:
        """Scoped names become flat file names."""
        workspace = Workspace(name="@scope/a", version="1.0.0", path="p", root="/r")
        assert changeset_file_name(workspace) == "@scope_a-1.0.0.md"

    def test_content(self) -> None:
        """The changeset front matter names the package and increment."""
        workspace = Workspace(name="@scope/a", version="1.0.0", path="p", root="/r", changelog="- x")
        assert changeset_content(workspace, "minor") == "---\n'@scope/a': 'minor'\n---\n\n- x"


class TestPublishMode:
    """Changelog stage without changesets."""

    def test_changelog_and_tag_name(self, make_context, history: Path) -> None:
        """Each workspace gets its changelog, last tag and tag name."""
        context = resolved(make_context, history, options=base_options())
        plugin = ChangelogPlugin(context)

        plugin.on_before(context)
        plugin.on_exec(context)

        (workspace,) = context.workspaces
        assert workspace.last_tag == "@scope/a@1.0.0"
        assert workspace.tag_name == "@scope/a@1.0.0"
        assert "#### ✨ Features" in workspace.changelog
        assert "**button:** add size prop" in workspace.changelog
        assert "([#12](https://github.com/acme/mono/pull/12))" in workspace.changelog
        assert "trim input" in workspace.changelog
        assert "b only" not in workspace.changelog
        assert "tidy readme" not in workspace.changelog

    def test_changes_since_existing_tag(self, make_context, history: Path) -> None:
        """Commits before the latest matching tag are left out."""
        subprocess.run(
            ["git", "tag", "-a", "@scope/a@1.0.0", "-m", "a"], cwd=history, check=True, capture_output=True
        )
        commit_file(history, "packages/pkg-a/src/late.ts", "perf: faster")

        context = resolved(make_context, history, options=base_options())
        ChangelogPlugin(context).on_exec(context)

        changelog = context.workspaces[0].changelog
        assert "faster" in changelog
        assert "add size prop" not in changelog

    def test_custom_tag_template(self, make_context, history: Path) -> None:
        """tag_template drives the derived tag name."""
        context = resolved(
            make_context, history, options=base_options(changelog={"tag_template": "v{{version}}"})
        )
        ChangelogPlugin(context).on_exec(context)
        assert context.workspaces[0].tag_name == "v1.0.0"


class TestReleasePRMode:
    """Changelog stage with changesets."""

    def test_missing_changeset_directory(self, make_context, history: Path) -> None:
        """on_before requires the changeset directory."""
        context = resolved(make_context, history, options=base_options(release_pr=True))
        with pytest.raises(ConfigurationError, match="Changeset directory not found"):
            ChangelogPlugin(context).on_before(context)

    def test_skip_changeset(self, make_context, history: Path) -> None:
        """skip_changeset turns the directory check off."""
        context = resolved(
            make_context, history, options=base_options(release_pr=True, changelog={"skip_changeset": True})
        )
        plugin = ChangelogPlugin(context)
        assert not plugin.runs_changeset(context)
        plugin.on_before(context)

    def test_writes_changesets_and_bumps(self, make_context, history: Path, temp_dir: Path) -> None:
        """Changesets are written, the version command runs and versions are re-read."""
        (history / ".changeset").mkdir()
        script = temp_dir / "bump.py"
        script.write_text(BUMP_SCRIPT)
        manifest = history / "packages" / "pkg-a" / "package.json"
        command = f'"{sys.executable}" "{script}" "{manifest}"'

        context = resolved(
            make_context,
            history,
            options=base_options(release_pr=True, changelog={"changeset_command": command}),
        )
        plugin = ChangelogPlugin(context)
        plugin.on_before(context)
        plugin.on_exec(context)

        changeset = history / ".changeset" / "@scope_a-1.0.0.md"
        assert changeset.read_text().startswith("---\n'@scope/a': 'patch'\n---\n\n")
        (workspace,) = context.workspaces
        assert workspace.version == "1.0.1"
        assert workspace.tag_name == "@scope/a@1.0.1"
        assert json.loads(manifest.read_text())["version"] == "1.0.1"

    def test_increment_label_wins(self, make_context, history: Path) -> None:
        """increment:minor in the change labels overrides the configured increment."""
        options = base_options(release_pr=True, changelog={"increment": "patch"})
        options["workspaces"] = {"change_labels": ["changes:packages/pkg-a", "increment:minor"]}
        context = resolved(make_context, history, options=options)

        assert ChangelogPlugin(context).get_increment(context) == "minor"

    def test_existing_changeset_kept(self, make_context, history: Path) -> None:
        """An existing changeset file is not overwritten."""
        (history / ".changeset").mkdir()
        existing = history / ".changeset" / "@scope_a-1.0.0.md"
        existing.write_text("manual")

        context = resolved(make_context, history, options=base_options(release_pr=True))
        plugin = ChangelogPlugin(context)
        written = plugin.write_changesets(context, context.workspaces, "patch")

        assert written == []
        assert existing.read_text() == "manual"

    def test_dry_run_writes_nothing(self, make_context, history: Path) -> None:
        """In dry-run changesets are printed and the command is not run."""
        (history / ".changeset").mkdir()
        context = resolved(make_context, history, options=base_options(release_pr=True), dry_run=True)
        plugin = ChangelogPlugin(context)
        plugin.on_before(context)
        plugin.on_exec(context)

        assert list((history / ".changeset").iterdir()) == []
        assert context.workspaces[0].version == "1.0.0"
        assert context.workspaces[0].changelog
