"""Changelog generation from git history."""

from workspace_release.changelog.formatter import ChangelogFormatter
from workspace_release.changelog.git_changelog import (
    Commitlint,
    CommitValue,
    GitChangelog,
    flatten_commits,
    parse_commit_body,
    parse_commitlint,
)

__all__ = [
    "ChangelogFormatter",
    "Commitlint",
    "CommitValue",
    "GitChangelog",
    "flatten_commits",
    "parse_commit_body",
    "parse_commitlint",
]
