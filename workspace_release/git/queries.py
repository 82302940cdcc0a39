"""Git state query operations.

Read-only commands always run, even when the shell is in dry-run mode,
so a dry run sees the real repository. Failures are raised as
GitOperationError.
"""

import re

from workspace_release.exceptions import GitOperationError
from workspace_release.utils.shell import Shell, ShellError

GITHUB_REMOTE_PATTERN = re.compile(r"github\.com[:/]([^/]+)/([^/.]+)(?:\.git)?$")

# Separates commits in get_log output
LOG_DELIMITER = "----------------------"
LOG_FORMAT = f"%H%n%s%n%b%n{LOG_DELIMITER}"


def _query(shell: Shell, cmd: list[str], message: str, fix_hint: str | None = None) -> str:
    try:
        return shell.exec(cmd, dry_run=False)
    except ShellError as e:
        raise GitOperationError(message, details=str(e), fix_hint=fix_hint) from e


def get_current_branch(shell: Shell) -> str:
    """Get the name of the checked-out branch.

    Raises:
        GitOperationError: If unable to determine current branch
    """
    return _query(
        shell,
        ["git", "rev-parse", "--abbrev-ref", "HEAD"],
        "Failed to get current branch name",
        fix_hint="Ensure you are in a git repository with at least one commit",
    )


def get_remote_url(shell: Shell, remote: str = "origin") -> str:
    """Get the URL of a git remote.

    Raises:
        GitOperationError: If remote does not exist
    """
    return _query(
        shell,
        ["git", "config", "--get", f"remote.{remote}.url"],
        f"Failed to get URL for remote '{remote}'",
        fix_hint=f"Ensure remote '{remote}' exists. Run 'git remote -v' to list remotes.",
    )


def parse_repo_info(url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub remote URL, or None."""
    match = GITHUB_REMOTE_PATTERN.search(url.strip())
    if not match:
        return None
    return (match.group(1), match.group(2))


def get_changed_files(shell: Shell, source_branch: str, remote: str = "origin") -> list[str]:
    """List files changed on HEAD relative to the merge base with a branch.

    Args:
        shell: Shell bound to the repository
        source_branch: Branch to compare against
        remote: Remote holding the branch

    Returns:
        Repository-relative file paths

    Raises:
        GitOperationError: If the diff fails (e.g. branch not fetched)
    """
    output = _query(
        shell,
        ["git", "diff", "--name-only", f"{remote}/{source_branch}...HEAD"],
        f"Failed to list files changed since {remote}/{source_branch}",
        fix_hint=f"Run 'git fetch {remote} {source_branch}' first",
    )
    return [line.strip() for line in output.splitlines() if line.strip()]


def get_latest_tag(shell: Shell, match: str) -> str | None:
    """Get the most recently created tag matching a glob.

    Args:
        shell: Shell bound to the repository
        match: Tag glob (e.g. "pkg-a@*")

    Returns:
        Tag name, or None if no tag matches
    """
    output = _query(
        shell,
        [
            "git",
            "for-each-ref",
            "--sort=-creatordate",
            "--format=%(refname:short)|%(creatordate:iso8601)",
            f"refs/tags/{match}",
        ],
        f"Failed to list tags matching '{match}'",
    )
    for line in output.splitlines():
        name = line.split("|", 1)[0].strip()
        if name:
            return name
    return None


def get_root_commit(shell: Shell) -> str:
    """Get the SHA of the first commit reachable from HEAD."""
    output = _query(
        shell,
        ["git", "rev-list", "--max-parents=0", "HEAD"],
        "Failed to find the root commit",
    )
    lines = output.splitlines()
    return lines[0].strip() if lines else ""


def tag_exists(shell: Shell, name: str) -> bool:
    """Check whether a local tag exists."""
    output = _query(
        shell,
        ["git", "tag", "--list", name],
        f"Failed to look up tag '{name}'",
    )
    return bool(output.strip())


def get_log(shell: Shell, from_ref: str, to_ref: str = "HEAD", path: str | None = None) -> str:
    """Get raw commit log between two refs.

    Each commit is written as SHA, subject and body lines followed by
    LOG_DELIMITER.

    Args:
        shell: Shell bound to the repository
        from_ref: Exclusive start ref
        to_ref: Inclusive end ref
        path: Restrict to commits touching this path

    Returns:
        Raw log output
    """
    cmd = ["git", "log", f"{from_ref}..{to_ref}", f"--format={LOG_FORMAT}"]
    if path:
        cmd.extend(["--", path])
    return _query(shell, cmd, f"Failed to read git log {from_ref}..{to_ref}")
