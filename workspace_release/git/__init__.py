"""Git operations and utilities.

This module provides a clean API for the git commands the pipeline runs.
All operations go through a Shell and raise GitOperationError on failures.
"""

from workspace_release.git.operations import (
    add_all,
    checkout_new_branch,
    commit,
    fetch,
    push,
    push_tags,
    tag,
)
from workspace_release.git.queries import (
    LOG_DELIMITER,
    get_changed_files,
    get_current_branch,
    get_latest_tag,
    get_log,
    get_remote_url,
    get_root_commit,
    parse_repo_info,
    tag_exists,
)

__all__ = [
    # Query operations
    "get_current_branch",
    "get_remote_url",
    "parse_repo_info",
    "get_changed_files",
    "get_latest_tag",
    "get_root_commit",
    "tag_exists",
    "get_log",
    "LOG_DELIMITER",
    # Modification operations
    "add_all",
    "commit",
    "fetch",
    "checkout_new_branch",
    "push",
    "tag",
    "push_tags",
]
