"""Commit history reading and conventional-commit parsing.

Reads ``git log`` for one workspace directory and turns every commit into a
CommitValue. Squash-merged pull requests list their original commits in the
body as ``* type(scope): message`` lines; those are split out as
sub-commits so each one lands in the right changelog section.
"""

import re
from dataclasses import dataclass, field

from workspace_release.git import queries as git_queries
from workspace_release.utils.shell import Shell

TITLE_PATTERN = re.compile(r"^(?:([a-z]+)(?:\((.*?)\))?: )?(.+)$", re.IGNORECASE)
PR_NUMBER_PATTERN = re.compile(r"\(#(\d+)\)")
TRAILING_PR_PATTERN = re.compile(r"\s*\(#\d+\)\s*$")

SKIPPED_BODY_PREFIXES = ("Co-authored-by:", "Signed-off-by:", "---------")


@dataclass
class Commitlint:
    """Parsed conventional-commit title."""

    message: str
    type: str | None = None
    scope: str | None = None
    body: str | None = None


@dataclass
class CommitValue:
    """One commit ready for changelog formatting."""

    hash: str
    subject: str
    commitlint: Commitlint
    body: str = ""
    pr_number: str | None = None
    commits: list["CommitValue"] = field(default_factory=list)


def parse_commitlint(subject: str, body: str | None = None) -> Commitlint:
    """Parse ``type(scope): message`` out of a commit title.

    A trailing ``(#123)`` is removed before matching. Titles without a
    type keep the whole text as message.
    """
    title = subject.strip().split("\n")[0] if subject.strip() else ""
    cleaned = TRAILING_PR_PATTERN.sub("", title)
    match = TITLE_PATTERN.match(cleaned)
    body_text = body.strip() if body and body.strip() else None

    if not match:
        return Commitlint(message=title, body=body_text)

    commit_type, scope, message = match.groups()
    return Commitlint(
        message=message.strip(),
        type=commit_type.lower() if commit_type else None,
        scope=scope.strip() if scope else None,
        body=body_text,
    )


def parse_pr_number(title: str) -> str | None:
    match = PR_NUMBER_PATTERN.search(title)
    return match.group(1) if match else None


def clean_body(body: str) -> str:
    """Drop trailer and separator lines from a commit body."""
    lines = [
        line.rstrip()
        for line in body.splitlines()
        if line.strip() and not line.strip().startswith(SKIPPED_BODY_PREFIXES)
    ]
    return "\n".join(lines)


def parse_commit_body(body: str, parent_hash: str = "", pr_number: str | None = None) -> list[CommitValue]:
    """Split a squash-merge body into sub-commits.

    ``* feat(x): msg`` starts a sub-commit and following ``- detail`` lines
    become its body.

    Returns:
        Sub-commits in body order, empty when the body lists none
    """
    commits: list[CommitValue] = []
    current_title: str | None = None
    current_body: list[str] = []

    def flush() -> None:
        if current_title is None:
            return
        sub_body = "\n".join(current_body)
        commits.append(
            CommitValue(
                hash=parent_hash,
                subject=current_title,
                body=sub_body,
                commitlint=parse_commitlint(current_title, sub_body),
                pr_number=parse_pr_number(current_title) or pr_number,
            )
        )

    for raw_line in body.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(SKIPPED_BODY_PREFIXES):
            continue
        if line.startswith("*"):
            flush()
            current_title = line.lstrip("*").strip()
            current_body = []
        elif line.startswith("-") and current_title is not None:
            current_body.append(line)

    flush()
    return commits


def flatten_commits(commits: list[CommitValue]) -> list[CommitValue]:
    """Replace every squash commit by its sub-commits."""
    flat: list[CommitValue] = []
    for commit in commits:
        if commit.commits:
            flat.extend(commit.commits)
        else:
            flat.append(commit)
    return flat


class GitChangelog:
    """Reads commits of one workspace from git history.

    Args:
        shell: Shell bound to the repository root
    """

    def __init__(self, shell: Shell) -> None:
        self.shell = shell

    def resolve_tag(self, tag: str | None) -> str:
        """Return tag when it exists, otherwise the root commit."""
        if tag and git_queries.tag_exists(self.shell, tag):
            return tag
        return git_queries.get_root_commit(self.shell)

    def get_commits(self, from_tag: str | None, path: str | None = None, to: str = "HEAD") -> list[CommitValue]:
        """Commits after ``from_tag`` up to ``to`` touching ``path``."""
        start = self.resolve_tag(from_tag)
        if not start:
            return []
        raw = git_queries.get_log(self.shell, start, to, path)
        return self.parse_log(raw)

    @staticmethod
    def parse_log(raw: str) -> list[CommitValue]:
        """Parse get_log output into commits, newest first."""
        commits: list[CommitValue] = []
        for chunk in raw.split(git_queries.LOG_DELIMITER):
            lines = chunk.strip("\n").split("\n")
            if len(lines) < 2 or not lines[0].strip():
                continue
            commit_hash = lines[0].strip()
            subject = lines[1].strip()
            body = "\n".join(lines[2:]).strip()
            commits.append(GitChangelog.to_commit_value(commit_hash, subject, body))
        return commits

    @staticmethod
    def to_commit_value(commit_hash: str, subject: str, body: str = "") -> CommitValue:
        pr_number = parse_pr_number(subject)
        sub_commits = parse_commit_body(body, commit_hash, pr_number) if body else []
        cleaned = clean_body(body) if body and not sub_commits else ""
        return CommitValue(
            hash=commit_hash,
            subject=subject,
            body=cleaned,
            commitlint=parse_commitlint(subject, cleaned),
            pr_number=pr_number,
            commits=sub_commits,
        )
