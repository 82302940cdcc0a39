"""Unit tests for release pull request operations."""

import pytest
from fakes import FakeGateway

from workspace_release.config.models import LabelConfig
from workspace_release.context import PullRequestDescriptor
from workspace_release.exceptions import ConfigurationError, GatewayError, RemoteConflict, RemoteNotFound
from workspace_release.plugins.pr_manager import PullRequestManager, parse_existing_pr_number

LABEL = LabelConfig(name="CI-Release", description="Release PR", color="#1A7F37")


def descriptor(labels: list[str] | None = None) -> PullRequestDescriptor:
    return PullRequestDescriptor(
        title="[release-1.2.0 Release] Branch:master, Tag:1.2.0, Env:production",
        body="This PR includes version bump to 1.2.0",
        base="master",
        head="release-1.2.0",
        labels=labels if labels is not None else ["CI-Release"],
    )


class TestRepository:
    """Tests for the repository name shown in messages."""

    def test_from_gateway(self) -> None:
        """owner/repo comes from the gateway."""
        assert PullRequestManager(FakeGateway(owner="octo", repo="site")).repository == "octo/site"

    def test_dry_run_message(self, capsys) -> None:
        """Dry-run PR creation names the repository."""
        PullRequestManager(FakeGateway(owner="octo", repo="site"), dry_run=True).create_release_pr(descriptor())
        assert "Would create PR in octo/site" in capsys.readouterr().out


class TestCreateLabel:
    """Tests for create_release_pr_label."""

    def test_creates_label_without_hash(self) -> None:
        """The color is sent without its leading '#'."""
        gateway = FakeGateway()
        result = PullRequestManager(gateway).create_release_pr_label(LABEL)

        assert result == LABEL
        assert gateway.called("create_label") == [
            {"name": "CI-Release", "description": "Release PR", "color": "1A7F37"}
        ]

    def test_incomplete_label(self) -> None:
        """A label without color fails before any remote call."""
        gateway = FakeGateway()
        with pytest.raises(ConfigurationError, match="Label is not valid"):
            PullRequestManager(gateway).create_release_pr_label(LabelConfig(name="x", description="y"))
        assert gateway.calls == []

    def test_dry_run(self) -> None:
        """In dry-run the label is returned without a remote call."""
        gateway = FakeGateway()
        assert PullRequestManager(gateway, dry_run=True).create_release_pr_label(LABEL) == LABEL
        assert gateway.calls == []

    def test_existing_label(self) -> None:
        """A 422 means the label already exists and counts as success."""
        gateway = FakeGateway()
        gateway.errors["create_label"] = RemoteConflict("Validation Failed: already_exists")
        assert PullRequestManager(gateway).create_release_pr_label(LABEL) == LABEL

    def test_other_failure(self) -> None:
        """Other gateway errors propagate."""
        gateway = FakeGateway()
        gateway.errors["create_label"] = GatewayError("Bad credentials", status=401)
        with pytest.raises(GatewayError, match="Bad credentials"):
            PullRequestManager(gateway).create_release_pr_label(LABEL)


class TestCreatePR:
    """Tests for create_release_pr."""

    def test_creates_and_labels(self) -> None:
        """The PR is opened and labelled with a second call."""
        gateway = FakeGateway(pr_number="42")
        number = PullRequestManager(gateway).create_release_pr(descriptor(["CI-Release", "changes:packages/a"]))

        assert number == "42"
        assert gateway.called("create_pull_request")[0]["head"] == "release-1.2.0"
        assert gateway.called("add_labels") == [
            {"issue_number": "42", "labels": ["CI-Release", "changes:packages/a"]}
        ]

    def test_dry_run_placeholder(self) -> None:
        """Dry-run returns the placeholder number and makes no call."""
        gateway = FakeGateway()
        assert PullRequestManager(gateway, dry_run=True).create_release_pr(descriptor()) == "999999"
        assert gateway.calls == []

    def test_plugin_level_dry_run(self) -> None:
        """dry_run_create_pr alone also skips the gateway."""
        gateway = FakeGateway()
        number = PullRequestManager(gateway).create_release_pr(
            descriptor(), dry_run_create_pr=True, dry_run_pr_number="123"
        )
        assert number == "123"
        assert gateway.calls == []

    def test_empty_number(self) -> None:
        """A PR without number is a failure."""
        gateway = FakeGateway(pr_number="")
        with pytest.raises(GatewayError, match="prNumber is empty"):
            PullRequestManager(gateway).create_release_pr(descriptor())

    def test_idempotent_retry(self) -> None:
        """A second identical call recovers the number from the 422 message."""
        gateway = FakeGateway(pr_number="42")
        manager = PullRequestManager(gateway)

        first = manager.create_release_pr(descriptor())
        gateway.errors["create_pull_request"] = RemoteConflict(
            "Validation Failed: A pull request already exists for acme:release-1.2.0 (pull request #42)."
        )
        second = manager.create_release_pr(descriptor())

        assert first == second == "42"

    def test_existing_without_number(self) -> None:
        """An unparseable 'already exists' message fails loudly."""
        gateway = FakeGateway()
        gateway.errors["create_pull_request"] = RemoteConflict(
            "Validation Failed: A pull request already exists for acme:release-1.2.0."
        )
        with pytest.raises(RemoteConflict, match="could not be determined"):
            PullRequestManager(gateway).create_release_pr(descriptor())

    def test_other_conflict(self) -> None:
        """422 errors that are not 'already exists' propagate unchanged."""
        gateway = FakeGateway()
        gateway.errors["create_pull_request"] = RemoteConflict("Validation Failed: No commits between")
        with pytest.raises(RemoteConflict, match="No commits between"):
            PullRequestManager(gateway).create_release_pr(descriptor())

    def test_label_failure_propagates(self) -> None:
        """A label attachment failure reaches the caller after the PR exists."""
        gateway = FakeGateway()
        gateway.errors["add_labels"] = GatewayError("Server error", status=500)
        with pytest.raises(GatewayError, match="Server error"):
            PullRequestManager(gateway).create_release_pr(descriptor())
        assert len(gateway.called("create_pull_request")) == 1

    def test_parse_existing_pr_number(self) -> None:
        """The number is read from 'pull request #N'."""
        assert parse_existing_pr_number("A Pull Request #7 exists") == "7"
        assert parse_existing_pr_number("nothing here") is None


class TestMergeAndCleanup:
    """Tests for merge_pr and checked_pr."""

    def test_merge(self) -> None:
        """The PR is merged with the requested method."""
        gateway = FakeGateway()
        PullRequestManager(gateway).merge_pr("42", "release-1.2.0", "rebase")
        assert gateway.called("merge_pull_request") == [{"pull_number": "42", "merge_method": "rebase"}]

    def test_merge_without_number(self) -> None:
        """A missing number is a no-op."""
        gateway = FakeGateway()
        PullRequestManager(gateway).merge_pr("", "release-1.2.0")
        assert gateway.calls == []

    def test_merge_dry_run(self) -> None:
        """Dry-run merges nothing."""
        gateway = FakeGateway()
        PullRequestManager(gateway, dry_run=True).merge_pr("42", "release-1.2.0")
        assert gateway.calls == []

    def test_checked_deletes_branch(self) -> None:
        """The PR is looked up and its branch deleted."""
        gateway = FakeGateway()
        PullRequestManager(gateway).checked_pr("42", "release-1.2.0")
        assert [name for name, _ in gateway.calls] == ["get_pull_request", "delete_branch"]
        assert gateway.called("delete_branch") == [{"ref": "heads/release-1.2.0"}]

    def test_checked_not_found(self, capsys) -> None:
        """A PR that is gone is a warning, not an error."""
        gateway = FakeGateway()
        gateway.errors["get_pull_request"] = RemoteNotFound("Not Found")

        PullRequestManager(gateway).checked_pr("42", "release-1.2.0")
        assert gateway.called("delete_branch") == []
        out = capsys.readouterr().out
        assert "PR #42 or branch release-1.2.0 not found" in out
        assert "Failed to check PR" not in out

    def test_checked_branch_not_found(self, capsys) -> None:
        """A branch that is gone is a warning as well."""
        gateway = FakeGateway()
        gateway.errors["delete_branch"] = RemoteNotFound("Reference does not exist")
        PullRequestManager(gateway).checked_pr("42", "release-1.2.0")

        out = capsys.readouterr().out
        assert "not found" in out
        assert "Failed to check PR" not in out
        assert "has been deleted" not in out

    def test_checked_other_error(self) -> None:
        """Other failures propagate."""
        gateway = FakeGateway()
        gateway.errors["get_pull_request"] = GatewayError("Server error", status=502)
        with pytest.raises(GatewayError):
            PullRequestManager(gateway).checked_pr("42", "release-1.2.0")

    def test_checked_dry_run(self) -> None:
        """Dry-run makes no calls."""
        gateway = FakeGateway()
        PullRequestManager(gateway, dry_run=True).checked_pr("42", "release-1.2.0")
        assert gateway.calls == []
