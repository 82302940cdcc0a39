"""Unit tests for release identifier derivation."""

import re
from datetime import date

import pytest

from workspace_release.config.models import ReleaseParamsConfig, SharedOptions
from workspace_release.context import Workspace
from workspace_release.exceptions import ConfigurationError, ValidationError
from workspace_release.params import ReleaseBranchParams, ReleaseParams


def workspace(name: str, version: str, changelog: str | None = None, tag_name: str | None = None) -> Workspace:
    return Workspace(
        name=name,
        version=version,
        path=f"packages/{name}",
        root=f"/repo/packages/{name}",
        changelog=changelog,
        tag_name=tag_name,
    )


def fixed_today() -> date:
    return date(2024, 5, 17)


@pytest.fixture
def shared(clean_env: None) -> SharedOptions:
    return SharedOptions(source_branch="master", release_env="production")


class TestSingleWorkspace:
    """Tests for single-workspace releases."""

    def test_default_branch_params(self, shared: SharedOptions) -> None:
        """One workspace is tagged with its version on release-<version>."""
        params = ReleaseParams().get_release_branch_params([workspace("pkg", "1.2.0")], shared)
        assert params == ReleaseBranchParams(tag_name="1.2.0", release_branch="release-1.2.0")

    def test_deterministic(self, shared: SharedOptions) -> None:
        """Repeated derivation gives identical names."""
        workspaces = [workspace("pkg", "1.2.0")]
        deriver = ReleaseParams()
        assert deriver.get_release_branch_params(workspaces, shared) == deriver.get_release_branch_params(
            workspaces, shared
        )

    def test_custom_branch_template(self, clean_env: None) -> None:
        """Branch templates see pkg_name and the shared options."""
        shared = SharedOptions(branch_name="{{release_env}}/{{pkg_name}}-{{tag_name}}", release_env="beta")
        params = ReleaseParams().get_release_branch_params([workspace("pkg", "2.0.0")], shared)
        assert params.release_branch == "beta/pkg-2.0.0"

    def test_missing_placeholder_left_literal(self, clean_env: None) -> None:
        """Unknown template keys stay in the branch name."""
        shared = SharedOptions(branch_name="release-{{nope}}")
        params = ReleaseParams().get_release_branch_params([workspace("pkg", "1.0.0")], shared)
        assert params.release_branch == "release-{{nope}}"

    def test_release_name(self) -> None:
        """A single workspace is named after itself."""
        assert ReleaseParams().get_release_name([workspace("pkg", "1.0.0")]) == "pkg"


class TestBatch:
    """Tests for batch releases."""

    def test_tag_name_embeds_count_and_date(self, shared: SharedOptions) -> None:
        """Two workspaces give batch-2-<ISO date>."""
        params = ReleaseParams().get_release_branch_params(
            [workspace("a", "1.0.0"), workspace("b", "2.0.0")], shared
        )
        assert re.match(r"^batch-2-\d{4}-\d{2}-\d{2}$", params.tag_name)

    def test_branch_name_with_fixed_date(self, shared: SharedOptions) -> None:
        """The batch branch lists the release name and count."""
        deriver = ReleaseParams(today=fixed_today)
        params = deriver.get_release_branch_params(
            [workspace("a", "1.0.0"), workspace("b", "2.0.0")], shared
        )
        assert params.tag_name == "batch-2-2024-05-17"
        assert params.release_branch == "batch-a@1.0.0_b@2.0.0-2-packages"

    def test_release_name_truncated(self) -> None:
        """Only max_workspace entries are named inline."""
        config = ReleaseParamsConfig(max_workspace=2, multi_workspace_separator="+")
        names = [workspace(n, "1.0.0") for n in ("a", "b", "c")]
        assert ReleaseParams(config).get_release_name(names) == "a@1.0.0+b@1.0.0"

    def test_non_string_template(self, shared: SharedOptions) -> None:
        """A non-string batch template is a configuration error."""
        config = ReleaseParamsConfig(batch_tag_name=123)
        with pytest.raises(ConfigurationError, match="not a string"):
            ReleaseParams(config).get_release_tag_name([workspace("a", "1"), workspace("b", "1")])

    def test_empty_workspaces(self, shared: SharedOptions) -> None:
        """Deriving names without workspaces fails."""
        with pytest.raises(ValidationError):
            ReleaseParams().get_release_branch_params([], shared)


class TestPullRequestText:
    """Tests for PR title and body."""

    def test_title(self, shared: SharedOptions) -> None:
        """pkg_name in the title is the release branch."""
        context = {**shared.model_dump(), "env": "production", "branch": "master"}
        branch_params = ReleaseBranchParams(tag_name="1.2.0", release_branch="release-1.2.0")

        title = ReleaseParams().get_pr_title(branch_params, context)
        assert title == "[release-1.2.0 Release] Branch:master, Tag:1.2.0, Env:production"

    def test_config_title_overrides_shared(self, shared: SharedOptions) -> None:
        """A plugin-level pr_title wins."""
        config = ReleaseParamsConfig(pr_title="Release {{tag_name}}")
        branch_params = ReleaseBranchParams(tag_name="1.2.0", release_branch="release-1.2.0")
        assert ReleaseParams(config).get_pr_title(branch_params, shared.model_dump()) == "Release 1.2.0"

    def test_single_body(self, shared: SharedOptions) -> None:
        """One workspace contributes its tag name and changelog."""
        body = ReleaseParams().get_pr_body(
            [workspace("pkg", "1.2.0", changelog="- fixed", tag_name="pkg@1.2.0")],
            shared.model_dump(),
        )
        assert body == "This PR includes version bump to pkg@1.2.0\n\n- fixed"

    def test_batch_body(self, shared: SharedOptions) -> None:
        """A batch lists every workspace with its changelog."""
        body = ReleaseParams().get_pr_body(
            [workspace("a", "1.0.0", changelog="- a"), workspace("b", "2.0.0", changelog="- b")],
            shared.model_dump(),
        )
        assert body.startswith("This PR includes version bump to a@1.0.0 b@2.0.0\n\n")
        assert "\n## a 1.0.0\n- a\n" in body
        assert "\n## b 2.0.0\n- b\n" in body
        assert body.index("## a") < body.index("## b")

    def test_title_not_string(self, shared: SharedOptions) -> None:
        """A non-string title template is rejected."""
        branch_params = ReleaseBranchParams(tag_name="1", release_branch="r")
        with pytest.raises(ConfigurationError):
            ReleaseParams(ReleaseParamsConfig(pr_title=["x"])).get_pr_title(branch_params, {})
