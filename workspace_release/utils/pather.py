"""Segment-aware path comparisons.

Changed-file lists from git and configured package directories rarely agree
on separators, leading ``./`` or trailing slashes. These helpers normalise
both sides and compare whole path segments, so ``packages/a`` never matches
``packages/ab/index.ts``.
"""

from pathlib import PurePosixPath


def to_segments(path: str) -> list[str]:
    """Split a path into normalised segments.

    Backslashes are treated as separators, ``.`` and empty segments are
    dropped.

    Args:
        path: Relative or absolute path

    Returns:
        List of path segments
    """
    normalised = path.replace("\\", "/").strip()
    return [part for part in PurePosixPath(normalised).parts if part not in ("", ".")]


def is_sub_path(parent: str, child: str) -> bool:
    """Check whether child lies inside parent (or is parent itself).

    Args:
        parent: Directory path
        child: Candidate path

    Returns:
        True if every segment of parent prefixes child
    """
    parent_parts = to_segments(parent)
    child_parts = to_segments(child)
    if not parent_parts:
        return False
    return child_parts[: len(parent_parts)] == parent_parts


def starts_with(path: str, prefix: str) -> bool:
    """Segment-aware ``str.startswith`` for paths."""
    return is_sub_path(prefix, path)
