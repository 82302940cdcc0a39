"""Placeholder substitution for branch names, PR text and changelog lines.

Templates use ``{{ dotted.path }}`` placeholders. Lookups walk mappings,
sequences (numeric segments) and object attributes. A placeholder whose path
cannot be resolved is left in the output untouched, so rendering never fails;
callers that turn the result into a git ref must validate it themselves.
"""

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_$\-]+(?:\.[A-Za-z0-9_$\-]+)*)\s*\}\}")

_MISSING = object()


def lookup(context: Any, path: str) -> Any:
    """Resolve a dotted path against a context value.

    Args:
        context: Mapping, sequence or object to search
        path: Dotted path such as ``workspace.name`` or ``items.0``

    Returns:
        The resolved value, or a private sentinel when any segment is missing
    """
    current = context
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, str):
            if not segment.isdigit() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        elif hasattr(current, segment) and not segment.startswith("_"):
            current = getattr(current, segment)
        else:
            return _MISSING
    return current


def to_text(value: Any) -> str:
    """Render a resolved value as template text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping | list | tuple):
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def format_template(template: str, context: Mapping[str, Any] | None = None) -> str:
    """Substitute ``{{key}}`` placeholders in a string.

    Args:
        template: Template text
        context: Values available to placeholders

    Returns:
        Rendered text; unresolved placeholders are kept literally
    """
    if not template:
        return template
    values = context or {}

    def replace(match: re.Match[str]) -> str:
        value = lookup(values, match.group(1))
        if value is _MISSING:
            return match.group(0)
        return to_text(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def render_template(value: Any, context: Mapping[str, Any] | None = None) -> Any:
    """Render placeholders recursively inside JSON-shaped data.

    Strings are formatted, lists and dicts are rebuilt with rendered members
    (dict keys are left as-is), and every other scalar is returned unchanged.

    Args:
        value: String, number, bool, None, list or dict
        context: Values available to placeholders

    Returns:
        A new value with every string rendered
    """
    if isinstance(value, str):
        return format_template(value, context)
    if isinstance(value, Mapping):
        return {key: render_template(item, context) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [render_template(item, context) for item in value]
    return value
