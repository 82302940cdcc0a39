"""Git state modification operations.

Every function runs through a Shell, so a dry-run shell prints the command
instead of touching the repository. Failures are raised as
GitOperationError.
"""

from workspace_release.exceptions import GitOperationError
from workspace_release.utils.shell import Shell, ShellError


def add_all(shell: Shell) -> None:
    """Stage every change in the working tree.

    Raises:
        GitOperationError: If staging fails
    """
    try:
        shell.exec(["git", "add", "."])
    except ShellError as e:
        raise GitOperationError(
            "Failed to stage changes",
            details=str(e),
            fix_hint="Run 'git status' to inspect the working tree",
        ) from e


def commit(shell: Shell, message: str, args: list[str] | None = None) -> None:
    """Create a git commit from the staged changes.

    Args:
        shell: Shell bound to the repository
        message: Commit message
        args: Extra ``git commit`` arguments (e.g. ``--no-verify``)

    Raises:
        GitOperationError: If commit fails or there is nothing to commit
    """
    cmd = ["git", "commit", "-m", message, *(args or [])]
    try:
        shell.exec(cmd)
    except ShellError as e:
        raise GitOperationError(
            "Failed to create git commit",
            details=str(e),
            fix_hint="Ensure there are staged changes. Run 'git status' to check.",
        ) from e


def fetch(shell: Shell, remote: str = "origin", refs: list[str] | None = None) -> None:
    """Fetch refs from a remote.

    Raises:
        GitOperationError: If fetch fails
    """
    cmd = ["git", "fetch", remote, *(refs or [])]
    try:
        shell.exec(cmd)
    except ShellError as e:
        raise GitOperationError(
            f"Failed to fetch from remote '{remote}'",
            details=str(e),
            fix_hint="Check network connectivity and remote access",
        ) from e


def checkout_new_branch(shell: Shell, branch: str, start_point: str | None = None) -> None:
    """Create and switch to a new branch.

    Args:
        shell: Shell bound to the repository
        branch: New branch name
        start_point: Commit-ish the branch starts from (default: HEAD)

    Raises:
        GitOperationError: If the branch exists or checkout fails
    """
    cmd = ["git", "checkout", "-b", branch]
    if start_point:
        cmd.append(start_point)
    try:
        shell.exec(cmd)
    except ShellError as e:
        raise GitOperationError(
            f"Failed to create branch '{branch}'",
            details=str(e),
            fix_hint=f"Delete the existing branch with 'git branch -D {branch}' and retry",
        ) from e


def push(shell: Shell, remote: str = "origin", branch: str | None = None) -> None:
    """Push a branch to a remote.

    Raises:
        GitOperationError: If push fails
    """
    cmd = ["git", "push", remote]
    if branch:
        cmd.append(branch)
    try:
        shell.exec(cmd)
    except ShellError as e:
        target = branch or "current branch"
        raise GitOperationError(
            f"Failed to push {target} to remote '{remote}'",
            details=str(e),
            fix_hint="Ensure remote exists and you have push access. Check network connectivity.",
        ) from e


def tag(shell: Shell, name: str, message: str | None = None) -> None:
    """Create an annotated git tag.

    Args:
        shell: Shell bound to the repository
        name: Tag name (e.g., "pkg-a@1.2.0")
        message: Tag annotation message (defaults to tag name)

    Raises:
        GitOperationError: If tag creation fails or tag already exists
    """
    tag_message = message if message is not None else name
    try:
        shell.exec(["git", "tag", "-a", name, "-m", tag_message])
    except ShellError as e:
        raise GitOperationError(
            f"Failed to create git tag '{name}'",
            details=str(e),
            fix_hint=f"Ensure tag '{name}' doesn't already exist. Run 'git tag -d {name}' to delete it first.",
        ) from e


def push_tags(shell: Shell, remote: str = "origin") -> None:
    """Push all local tags to a remote.

    Raises:
        GitOperationError: If push fails
    """
    try:
        shell.exec(["git", "push", remote, "--tags"])
    except ShellError as e:
        raise GitOperationError(
            f"Failed to push tags to remote '{remote}'",
            details=str(e),
            fix_hint="Ensure you have push access to the remote",
        ) from e
