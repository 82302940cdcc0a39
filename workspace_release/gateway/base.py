"""Abstract remote release gateway.

The gateway is the only component that talks to the hosting service. Its
failures are GatewayError instances carrying the HTTP status, so callers can
recognise "already exists" (422) and "not found" (404).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class PullRequestInfo:
    """A pull request as returned by the gateway."""

    number: str
    url: str = ""
    state: str = ""
    head: str = ""


@dataclass
class ReleaseOptions:
    """Fields of a hosted release."""

    tag_name: str
    name: str
    body: str = ""
    draft: bool = False
    prerelease: bool = False
    make_latest: str = "true"
    generate_release_notes: bool = False


class ReleaseGateway(ABC):
    """Remote pull request, label, branch and release operations.

    Implementations must tolerate concurrent create_release calls for
    different tags.
    """

    owner: str
    repo: str

    @abstractmethod
    def create_pull_request(self, title: str, body: str, base: str, head: str) -> PullRequestInfo:
        """Open a pull request.

        Raises:
            RemoteConflict: If a pull request for head already exists
            GatewayError: On any other failure
        """

    @abstractmethod
    def merge_pull_request(self, pull_number: str, merge_method: str = "squash") -> None:
        """Merge a pull request with the given method."""

    @abstractmethod
    def get_pull_request(self, pull_number: str) -> PullRequestInfo:
        """Fetch a pull request.

        Raises:
            RemoteNotFound: If the pull request does not exist
        """

    @abstractmethod
    def delete_branch(self, ref: str) -> None:
        """Delete a ref such as ``heads/release-1.0.0``.

        Raises:
            RemoteNotFound: If the ref does not exist
        """

    @abstractmethod
    def create_label(self, name: str, description: str, color: str) -> dict[str, Any]:
        """Create a repository label.

        Raises:
            RemoteConflict: If a label with this name exists
        """

    @abstractmethod
    def add_labels(self, issue_number: str, labels: list[str]) -> None:
        """Attach labels to a pull request."""

    @abstractmethod
    def create_release(self, options: ReleaseOptions) -> dict[str, Any]:
        """Create a release for an existing tag."""
