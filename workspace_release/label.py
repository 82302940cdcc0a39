"""Mapping between package directories, changed files and change labels."""

from collections.abc import Callable, Iterable

from workspace_release.config.defaults import DEFAULT_CHANGE_PACKAGES_LABEL
from workspace_release.utils.pather import starts_with
from workspace_release.utils.template import format_template

Comparator = Callable[[str, str], bool]


class ReleaseLabel:
    """Decides which package directories a set of changes touches.

    Args:
        change_packages_label: Label pattern; ``{{name}}`` is replaced by the
            package path (e.g. ``changes:{{name}}``)
        packages_directories: Configured package directories
        compare: Optional ``(changed_path, package_path) -> bool``; defaults
            to a segment-aware prefix test
    """

    def __init__(
        self,
        change_packages_label: str = DEFAULT_CHANGE_PACKAGES_LABEL,
        packages_directories: list[str] | None = None,
        compare: Comparator | None = None,
    ) -> None:
        self.change_packages_label = change_packages_label
        self.packages_directories = list(packages_directories or [])
        self._compare = compare

    def compare(self, changed_path: str, package_path: str) -> bool:
        """Check whether a changed path belongs to a package directory."""
        if self._compare is not None:
            return bool(self._compare(changed_path, package_path))
        return starts_with(changed_path, package_path)

    def to_change_label(self, path: str) -> str:
        return format_template(self.change_packages_label, {"name": path})

    def to_change_labels(self, paths: Iterable[str]) -> list[str]:
        return [self.to_change_label(path) for path in paths]

    def pick(self, changed: Iterable[str], packages: list[str] | None = None) -> list[str]:
        """Select the package directories touched by the changes.

        Args:
            changed: Changed file paths
            packages: Candidate directories (defaults to packages_directories)

        Returns:
            Matching directories, in the order of ``packages``
        """
        candidates = self.packages_directories if packages is None else packages
        changed_paths = list(changed)
        return [
            package
            for package in candidates
            if any(self.compare(path, package) for path in changed_paths)
        ]

    def pick_by_labels(self, labels: Iterable[str], packages: list[str] | None = None) -> list[str]:
        """Select the package directories whose change label is present."""
        candidates = self.packages_directories if packages is None else packages
        label_set = set(labels)
        return [package for package in candidates if self.to_change_label(package) in label_set]
