"""Release identifier derivation.

Computes the tag name, release branch, PR title and PR body for one
workspace or a batch of workspaces. Everything here is a pure function of
the workspaces, the shared options and the injected date source.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from workspace_release.config.defaults import BATCH_PR_BODY
from workspace_release.config.models import ReleaseParamsConfig, SharedOptions
from workspace_release.context import Workspace
from workspace_release.exceptions import ConfigurationError, ValidationError
from workspace_release.utils.template import format_template


@dataclass(frozen=True)
class ReleaseBranchParams:
    """Derived names of a release."""

    tag_name: str
    release_branch: str


class ReleaseParams:
    """Derives release identifiers.

    Args:
        config: Naming configuration (batch templates, separators, limits)
        today: Date source for batch tag names
    """

    def __init__(
        self,
        config: ReleaseParamsConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or ReleaseParamsConfig()
        self.today = today

    def _require(self, workspaces: list[Workspace]) -> None:
        if not workspaces:
            raise ValidationError(
                "No workspaces to derive release names from",
                fix_hint="Resolve workspaces before deriving release names",
            )

    def _entry(self, workspace: Workspace) -> str:
        return f"{workspace.name}{self.config.workspace_version_separator}{workspace.version}"

    def get_release_name(self, workspaces: list[Workspace]) -> str:
        """Short name of the release.

        A single workspace is named after itself. A batch lists its first
        ``max_workspace`` entries as ``name@version``.
        """
        self._require(workspaces)
        if len(workspaces) == 1:
            return workspaces[0].name
        entries = [self._entry(workspace) for workspace in workspaces[: self.config.max_workspace]]
        return self.config.multi_workspace_separator.join(entries)

    def get_release_tag_name(self, workspaces: list[Workspace]) -> str:
        """Tag name: the version for one workspace, a dated name for a batch."""
        self._require(workspaces)
        if len(workspaces) == 1:
            return workspaces[0].version
        template = self._template(self.config.batch_tag_name, "Batch tag name")
        return format_template(
            template,
            {"length": len(workspaces), "date": self.today().isoformat()},
        )

    def get_release_branch_name(
        self,
        workspaces: list[Workspace],
        tag_name: str,
        shared: SharedOptions,
    ) -> str:
        """Release branch name rendered from the branch templates."""
        self._require(workspaces)
        release_name = self.get_release_name(workspaces)
        values: dict[str, Any] = {
            **shared.model_dump(),
            "pkg_name": release_name,
            "release_name": release_name,
            "tag_name": tag_name,
        }
        if len(workspaces) == 1:
            template = shared.branch_name
        else:
            template = self.config.batch_branch_name
            values["length"] = len(workspaces)
        return format_template(self._template(template, "Branch name"), values)

    def get_release_branch_params(
        self,
        workspaces: list[Workspace],
        shared: SharedOptions,
    ) -> ReleaseBranchParams:
        tag_name = self.get_release_tag_name(workspaces)
        return ReleaseBranchParams(
            tag_name=tag_name,
            release_branch=self.get_release_branch_name(workspaces, tag_name, shared),
        )

    def get_pr_title(
        self,
        branch_params: ReleaseBranchParams,
        context: dict[str, Any],
    ) -> str:
        """PR title; ``pkg_name`` is the release branch."""
        template = self.config.pr_title or context.get("pr_title")
        return format_template(
            self._template(template, "PR title"),
            {
                **context,
                "tag_name": branch_params.tag_name,
                "pkg_name": branch_params.release_branch,
            },
        )

    def get_pr_body(self, workspaces: list[Workspace], context: dict[str, Any]) -> str:
        """PR body: the changelog of one workspace, or one section per workspace."""
        self._require(workspaces)
        template = self.config.pr_body or context.get("pr_body")

        if len(workspaces) == 1:
            workspace = workspaces[0]
            tag_name = workspace.tag_name or workspace.version
            changelog = workspace.changelog or ""
        else:
            tag_name = " ".join(self._entry(workspace) for workspace in workspaces)
            changelog = "\n".join(
                format_template(BATCH_PR_BODY, workspace.to_dict()) for workspace in workspaces
            )

        return format_template(
            self._template(template, "PR body"),
            {**context, "tag_name": tag_name, "changelog": changelog},
        )

    @staticmethod
    def _template(value: Any, what: str) -> str:
        if not isinstance(value, str):
            raise ConfigurationError(
                f"{what} template is not a string",
                details=f"Got {type(value).__name__}: {value!r}",
            )
        return value
