"""Remote release gateway: abstract contract and GitHub implementation."""

from workspace_release.gateway.base import PullRequestInfo, ReleaseGateway, ReleaseOptions
from workspace_release.gateway.github import GitHubGateway

__all__ = [
    "ReleaseGateway",
    "PullRequestInfo",
    "ReleaseOptions",
    "GitHubGateway",
]
