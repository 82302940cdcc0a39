"""GitHub REST implementation of the release gateway.

Uses urllib with a bearer token. HTTP failures are converted into
GatewayError subclasses through GatewayError.from_status.
"""

import json
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from workspace_release import __version__
from workspace_release.exceptions import ConfigurationError, GatewayError
from workspace_release.gateway.base import PullRequestInfo, ReleaseGateway, ReleaseOptions

if TYPE_CHECKING:
    from workspace_release.context import ReleaseContext

DEFAULT_API_URL = "https://api.github.com"
TOKEN_ENV_KEYS = ("GITHUB_TOKEN", "PAT_TOKEN")


def get_github_token(context: "ReleaseContext") -> str:
    """Return GITHUB_TOKEN, falling back to PAT_TOKEN.

    Raises:
        ConfigurationError: If neither is set
    """
    for key in TOKEN_ENV_KEYS:
        token = context.get_env(key)
        if token:
            return token
    raise ConfigurationError(
        "GITHUB_TOKEN or PAT_TOKEN environment variable is not set.",
        fix_hint="Export a token with contents and pull-requests write permissions",
    )


def error_message(status: int | None, body: str) -> str:
    """Build a readable message from a GitHub error response.

    GitHub reports ``{"message": ..., "errors": [{"message"|"code": ...}]}``;
    the nested entries carry the useful part for 422 responses.
    """
    try:
        data = json.loads(body) if body else {}
    except json.JSONDecodeError:
        return body.strip() or f"HTTP {status}"
    if not isinstance(data, dict):
        return body.strip()

    parts = [str(data.get("message") or f"HTTP {status}")]
    for error in data.get("errors") or []:
        if isinstance(error, dict):
            detail = error.get("message") or error.get("code")
            if detail:
                parts.append(str(detail))
        elif error:
            parts.append(str(error))
    return ": ".join(parts)


class GitHubGateway(ReleaseGateway):
    """GitHub REST API client scoped to one repository.

    Args:
        owner: Repository owner
        repo: Repository name
        token: Token with contents and pull-requests write access
        api_url: API base URL (GitHub Enterprise uses a different one)
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: int = 30,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_context(
        cls,
        context: "ReleaseContext",
        api_url: str = DEFAULT_API_URL,
        timeout: int = 30,
    ) -> "GitHubGateway":
        """Build a gateway from the run's token and repository identity.

        Raises:
            ConfigurationError: If no token is set or the repository is unknown
        """
        token = get_github_token(context)
        owner = context.shared.author_name
        repo = context.shared.repo_name
        if not owner or not repo:
            raise ConfigurationError(
                "GitHub repository owner and name are unknown",
                fix_hint="Set 'author_name' and 'repo_name', or add a GitHub 'origin' remote",
            )
        return cls(owner, repo, token, api_url=api_url, timeout=timeout)

    @property
    def repo_path(self) -> str:
        return f"/repos/{quote(self.owner)}/{quote(self.repo)}"

    def request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Send one API request and decode the JSON response.

        Raises:
            GatewayError: On HTTP errors and transport failures
        """
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(
            f"{self.api_url}{path}",
            data=data,
            method=method,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
                "User-Agent": f"workspace-release/{__version__}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raw = e.read().decode("utf-8", errors="replace")
            raise GatewayError.from_status(e.code, error_message(e.code, raw), details=raw) from e
        except urllib.error.URLError as e:
            raise GatewayError(
                f"Cannot reach {self.api_url}",
                details=str(e.reason),
                fix_hint="Check network connectivity",
            ) from e

        if not body:
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise GatewayError(f"Invalid JSON from {method} {path}", details=body[:500]) from e

    @staticmethod
    def _pull_request(data: dict[str, Any]) -> PullRequestInfo:
        number = data.get("number")
        return PullRequestInfo(
            number=str(number) if number is not None else "",
            url=data.get("html_url") or "",
            state=data.get("state") or "",
            head=(data.get("head") or {}).get("ref") or "",
        )

    def create_pull_request(self, title: str, body: str, base: str, head: str) -> PullRequestInfo:
        data = self.request(
            "POST",
            f"{self.repo_path}/pulls",
            {"title": title, "body": body, "base": base, "head": head},
        )
        return self._pull_request(data)

    def merge_pull_request(self, pull_number: str, merge_method: str = "squash") -> None:
        self.request(
            "PUT",
            f"{self.repo_path}/pulls/{pull_number}/merge",
            {"merge_method": merge_method},
        )

    def get_pull_request(self, pull_number: str) -> PullRequestInfo:
        return self._pull_request(self.request("GET", f"{self.repo_path}/pulls/{pull_number}"))

    def delete_branch(self, ref: str) -> None:
        self.request("DELETE", f"{self.repo_path}/git/refs/{quote(ref)}")

    def create_label(self, name: str, description: str, color: str) -> dict[str, Any]:
        data: dict[str, Any] = self.request(
            "POST",
            f"{self.repo_path}/labels",
            {"name": name, "description": description, "color": color},
        )
        return data

    def add_labels(self, issue_number: str, labels: list[str]) -> None:
        self.request(
            "POST",
            f"{self.repo_path}/issues/{issue_number}/labels",
            {"labels": labels},
        )

    def create_release(self, options: ReleaseOptions) -> dict[str, Any]:
        data: dict[str, Any] = self.request(
            "POST",
            f"{self.repo_path}/releases",
            {
                "tag_name": options.tag_name,
                "name": options.name,
                "body": options.body,
                "draft": options.draft,
                "prerelease": options.prerelease,
                "make_latest": options.make_latest,
                "generate_release_notes": options.generate_release_notes,
            },
        )
        return data
