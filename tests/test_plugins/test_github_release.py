"""Tests for the GitHub release plugin."""

import pytest
from fakes import FakeGateway, RecordingShell

from workspace_release.context import Workspace
from workspace_release.exceptions import GatewayError, ValidationError
from workspace_release.plugins.github_release import MAX_BODY_LENGTH, GithubReleasePlugin, truncate_body

TOKEN_ENV = {"GITHUB_TOKEN": "ghp_test"}


def make_workspace(name: str, version: str, tag_name: str | None = None) -> Workspace:
    return Workspace(
        name=name,
        version=version,
        path=f"packages/{name}",
        root=f"/repo/packages/{name}",
        changelog=f"- {name} fixes",
        tag_name=tag_name if tag_name is not None else f"{name}@{version}",
    )


@pytest.fixture
def release_plugin(make_context):
    def factory(options: dict | None = None, dry_run: bool = False, shell: RecordingShell | None = None):
        context = make_context(options=options, env=TOKEN_ENV, dry_run=dry_run)
        context.shell = shell or RecordingShell(dry_run=dry_run)
        gateway = FakeGateway()
        plugin = GithubReleasePlugin(context, gateway=gateway)
        plugin.on_before(context)
        return context, plugin, gateway

    return factory


class TestTruncateBody:
    """Tests for release body truncation."""

    def test_short_body_unchanged(self) -> None:
        """Bodies under the limit are kept."""
        assert truncate_body("notes") == "notes"

    def test_long_body_truncated(self) -> None:
        """Long bodies are cut and marked."""
        body = truncate_body("x" * (MAX_BODY_LENGTH + 10))
        assert len(body) == MAX_BODY_LENGTH + 3
        assert body.endswith("...")


class TestGithubRelease:
    """Tests for GithubReleasePlugin."""

    def test_disabled_in_release_pr_mode(self, make_context) -> None:
        """Releases are only created in publish mode."""
        context = make_context(options={"release_pr": True})
        assert not GithubReleasePlugin(context).enabled("on_success")

    def test_create_tags_skips_existing(self, release_plugin) -> None:
        """Existing tags are left alone and the rest are pushed."""
        shell = RecordingShell({"git tag --list a@1.0.0": "a@1.0.0"})
        context, plugin, _ = release_plugin(shell=shell)

        created = plugin.create_tags(context, [make_workspace("a", "1.0.0"), make_workspace("b", "2.0.0")])

        assert created == ["b@2.0.0"]
        assert shell.commands == [
            "git tag --list a@1.0.0",
            "git tag --list b@2.0.0",
            "git tag -a b@2.0.0 -m Release b v2.0.0",
            "git push origin --tags",
        ]

    def test_push_tags_disabled(self, release_plugin) -> None:
        """push_tags: false keeps tags local."""
        context, plugin, _ = release_plugin(options={"github_release": {"push_tags": False}})
        plugin.create_tags(context, [make_workspace("a", "1.0.0")])
        assert "git push origin --tags" not in context.shell.commands

    def test_releases_keep_order(self, release_plugin) -> None:
        """One release per workspace, results in workspace order."""
        _, plugin, gateway = release_plugin()
        workspaces = [make_workspace(name, "1.0.0") for name in ("a", "b", "c", "d")]

        results = plugin.create_releases(workspaces)

        assert [r["html_url"].rsplit("/", 1)[-1] for r in results] == ["a@1.0.0", "b@1.0.0", "c@1.0.0", "d@1.0.0"]
        options = sorted((call["options"] for call in gateway.called("create_release")), key=lambda o: o.tag_name)
        assert options[0].name == "a v1.0.0"
        assert options[0].body == "- a fixes"
        assert options[0].make_latest == "true"

    def test_auto_generate_sends_empty_body(self, release_plugin) -> None:
        """auto_generate lets GitHub write the notes."""
        _, plugin, _ = release_plugin(options={"github_release": {"auto_generate": True}})
        options = plugin.release_options(make_workspace("a", "1.0.0"))
        assert options.body == ""
        assert options.generate_release_notes is True

    def test_missing_tag_name(self, release_plugin) -> None:
        """A workspace without tag name fails before any release is created."""
        _, plugin, gateway = release_plugin()
        with pytest.raises(ValidationError, match="TagName is undefined"):
            plugin.create_releases([make_workspace("a", "1.0.0"), make_workspace("b", "1.0.0", tag_name="")])
        assert gateway.calls == []

    def test_gateway_failure_reported(self, release_plugin) -> None:
        """A failed release is reported and yields None."""
        _, plugin, gateway = release_plugin()
        gateway.errors["create_release"] = GatewayError("Server error", status=500)
        assert plugin.create_release(make_workspace("a", "1.0.0")) is None

    def test_dry_run(self, release_plugin) -> None:
        """Dry-run creates no release."""
        context, plugin, gateway = release_plugin(dry_run=True)
        context.set_workspaces([make_workspace("a", "1.0.0")])

        plugin.on_success(context)

        assert gateway.calls == []
        assert "git tag -a a@1.0.0 -m Release a v1.0.0" in context.shell.commands
