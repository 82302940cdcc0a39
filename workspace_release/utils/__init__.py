"""Utility modules for the release pipeline."""

from workspace_release.utils.pather import is_sub_path, starts_with
from workspace_release.utils.shell import Shell, ShellError, run, strip_ansi
from workspace_release.utils.template import format_template, render_template

__all__ = [
    # Shell utilities
    "run",
    "strip_ansi",
    "Shell",
    "ShellError",
    # Template utilities
    "format_template",
    "render_template",
    # Path utilities
    "is_sub_path",
    "starts_with",
]
