"""Release pull request operations with retry-safe error handling.

Remote mutations are not idempotent, so the expected "already done" answers
are recognised and treated as success:
- creating a label that exists (422)
- opening a pull request that exists (422, number parsed from the message)
- cleaning up a pull request or branch that is gone (404)

Every other gateway failure is reported and re-raised.
"""

import re

from rich.console import Console
from rich.markup import escape

from workspace_release.config.defaults import DEFAULT_AUTO_MERGE_TYPE, DEFAULT_DRY_RUN_PR_NUMBER
from workspace_release.config.models import LabelConfig
from workspace_release.context import PullRequestDescriptor
from workspace_release.exceptions import ConfigurationError, GatewayError, RemoteConflict, RemoteNotFound
from workspace_release.gateway.base import ReleaseGateway

console = Console()

EXISTING_PR_PATTERN = re.compile(r"pull request #(\d+)", re.IGNORECASE)


def parse_existing_pr_number(message: str) -> str | None:
    match = EXISTING_PR_PATTERN.search(message)
    return match.group(1) if match else None


class PullRequestManager:
    """Creates, labels, merges and cleans up release pull requests.

    Args:
        gateway: Remote gateway for the repository
        dry_run: Log intended remote calls instead of making them
    """

    def __init__(self, gateway: ReleaseGateway, dry_run: bool = False) -> None:
        self.gateway = gateway
        self.dry_run = dry_run

    @property
    def repository(self) -> str:
        return f"{self.gateway.owner}/{self.gateway.repo}"

    def create_release_pr_label(self, label: LabelConfig) -> LabelConfig:
        """Ensure the release label exists.

        Raises:
            ConfigurationError: If name, description or color is missing
            GatewayError: On failures other than "already exists"
        """
        if not label.is_complete():
            raise ConfigurationError(
                "Label is not valid, skipping creation",
                details=f"name={label.name!r} description={label.description!r} color={label.color!r}",
                fix_hint="Set label.name, label.description and label.color",
            )

        if self.dry_run:
            console.print(
                f"[yellow]\\[DRY RUN][/yellow] Would create label '{escape(label.name or '')}' "
                f"({escape(label.color or '')}) in {escape(self.repository)}"
            )
            return label

        try:
            self.gateway.create_label(
                name=label.name or "",
                description=label.description or "",
                color=(label.color or "").replace("#", ""),
            )
        except RemoteConflict:
            console.print(f"[yellow]  Label {escape(label.name or '')} already exists, skipping![/yellow]")
            return label
        except GatewayError as e:
            console.print(f"[red]  Failed to create label {escape(label.name or '')}: {escape(e.message)}[/red]")
            raise

        console.print(f"[green]  Label {escape(label.name or '')} created[/green]")
        return label

    def create_release_pr(
        self,
        descriptor: PullRequestDescriptor,
        dry_run_create_pr: bool = False,
        dry_run_pr_number: str = DEFAULT_DRY_RUN_PR_NUMBER,
    ) -> str:
        """Open the release pull request and attach its labels.

        Returns:
            The pull request number (an existing one when already open)

        Raises:
            RemoteConflict: If the PR exists but its number cannot be parsed
            GatewayError: On any other failure
        """
        if self.dry_run or dry_run_create_pr:
            console.print(f"[yellow]\\[DRY RUN][/yellow] Would create PR in {escape(self.repository)}")
            console.print(f"[dim]  title:  {escape(descriptor.title)}[/dim]")
            console.print(f"[dim]  base:   {escape(descriptor.base)}  head: {escape(descriptor.head)}[/dim]")
            console.print(f"[dim]  labels: {escape(', '.join(descriptor.labels))}[/dim]")
            return dry_run_pr_number

        try:
            pull_request = self.gateway.create_pull_request(
                title=descriptor.title,
                body=descriptor.body,
                base=descriptor.base,
                head=descriptor.head,
            )
            pr_number = pull_request.number
            if not pr_number:
                raise GatewayError("CreateReleasePR Failed, prNumber is empty")

            console.print(f"[green]  Created PR #{pr_number} {escape(pull_request.url)}[/green]")

            if descriptor.labels:
                self.gateway.add_labels(issue_number=pr_number, labels=descriptor.labels)
            return pr_number

        except RemoteConflict as e:
            text = f"{e.message} {e.details or ''}"
            if "already exists" not in text:
                console.print(f"[red]  Failed to create PR: {escape(e.message)}[/red]")
                raise

            existing = parse_existing_pr_number(text)
            if existing is None:
                raise RemoteConflict(
                    "Pull request already exists but its number could not be determined",
                    details=e.message,
                    fix_hint=f"Close or merge the open pull request for '{descriptor.head}' and retry",
                ) from e

            console.print(f"[yellow]  PR #{existing} already exists, reusing it[/yellow]")
            return existing

        except GatewayError as e:
            console.print(f"[red]  Failed to create PR: {escape(e.message)}[/red]")
            raise

    def merge_pr(
        self,
        pr_number: str | None,
        release_branch: str,
        merge_method: str = DEFAULT_AUTO_MERGE_TYPE,
    ) -> None:
        """Merge the release pull request; a missing number is a no-op."""
        if not pr_number:
            console.print("[red]  Failed to merge PR: PR number is empty[/red]")
            return

        if self.dry_run:
            console.print(
                f"[yellow]\\[DRY RUN][/yellow] Would merge PR #{pr_number} with method "
                f"'{merge_method}' in repo {escape(self.repository)}, branch {escape(release_branch)}"
            )
            return

        self.gateway.merge_pull_request(pull_number=pr_number, merge_method=merge_method)
        console.print(f"[green]  Merged PR #{pr_number} ({merge_method})[/green]")

    def checked_pr(self, pr_number: str, release_branch: str) -> None:
        """Confirm the PR exists and delete its branch.

        A PR or branch that is already gone is reported as a warning.

        Raises:
            GatewayError: On failures other than 404
        """
        if self.dry_run:
            console.print(
                f"[yellow]\\[DRY RUN][/yellow] Would delete branch {escape(release_branch)} "
                f"of PR #{pr_number}"
            )
            return

        try:
            self.gateway.get_pull_request(pull_number=pr_number)
            self.gateway.delete_branch(ref=f"heads/{release_branch}")
        except RemoteNotFound:
            console.print(
                f"[yellow]  PR #{pr_number} or branch {escape(release_branch)} not found[/yellow]"
            )
            return
        except GatewayError as e:
            console.print(f"[red]  Failed to check PR #{pr_number}: {escape(e.message)}[/red]")
            raise

        console.print(f"[green]  Branch {escape(release_branch)} has been deleted[/green]")
