"""Workspace resolver plugin.

Decides which packages take part in the release:
1. A pinned ``workspaces.workspace`` is used alone.
2. Otherwise changed package directories are found from change labels, or
   from ``git diff`` against the source branch.
3. Each directory's ``package.json`` provides name and version.
4. ``publish_path`` narrows the result to one workspace.
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from workspace_release.config.defaults import MANIFEST_PATH
from workspace_release.config.models import WorkspacesConfig
from workspace_release.context import Workspace
from workspace_release.exceptions import ConfigurationError, ValidationError
from workspace_release.git import queries as git_queries
from workspace_release.label import ReleaseLabel
from workspace_release.plugins.base import Plugin

if TYPE_CHECKING:
    from workspace_release.context import ReleaseContext

console = Console()


def get_change_labels(context: "ReleaseContext") -> list[str]:
    """Externally supplied change labels, empty when none were given."""
    if not context.has_config(WorkspacesPlugin.plugin_name):
        return []
    return list(context.get_config(WorkspacesPlugin.plugin_name).change_labels or [])


def release_label_for(context: "ReleaseContext") -> ReleaseLabel:
    shared = context.shared
    return ReleaseLabel(shared.change_packages_label, shared.packages_directories)


def read_workspace(root_path: Path, path: str) -> Workspace:
    """Build a workspace from its manifest.

    Args:
        root_path: Repository root
        path: Workspace directory relative to root_path

    Raises:
        ConfigurationError: If the manifest is missing, unreadable or lacks name/version
    """
    workspace_root = (root_path / path).resolve()
    manifest = workspace_root / MANIFEST_PATH
    try:
        package_json = json.loads(manifest.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(
            f"Package manifest not found: {manifest}",
            fix_hint="Check 'packages_directories' in the release configuration",
        ) from None
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read package manifest {manifest}", details=str(e)) from e

    if not isinstance(package_json, dict) or not package_json.get("name") or not package_json.get("version"):
        raise ConfigurationError(
            f"Package manifest {manifest} has no name or version",
            fix_hint="Every released package needs 'name' and 'version' in package.json",
        )

    return Workspace(
        name=str(package_json["name"]),
        version=str(package_json["version"]),
        path=path,
        root=str(workspace_root),
        package_json=package_json,
    )


class WorkspacesPlugin(Plugin):
    """Resolves the workspaces under release."""

    plugin_name = "workspaces"
    config_model = WorkspacesConfig

    def on_before(self, context: "ReleaseContext") -> None:
        workspaces = self.resolve(context)
        context.set_workspaces(workspaces)
        if len(workspaces) == 1:
            context.set_shared(package_json=workspaces[0].package_json)

        for workspace in workspaces:
            console.print(
                f"[green]  {escape(workspace.name)}@{escape(workspace.version)}[/green] [dim]({escape(workspace.path)})[/dim]"
            )

    def resolve(self, context: "ReleaseContext") -> list[Workspace]:
        """Compute the workspaces of this run.

        Raises:
            ConfigurationError: On manifest problems or an unmatched publish_path
            ValidationError: If nothing is left to release
        """
        config: WorkspacesConfig = self.config

        if config.workspace is not None:
            pinned = config.workspace
            workspace = Workspace(
                name=pinned.name,
                version=pinned.version,
                path=pinned.path,
                root=pinned.root or str((context.root_path / pinned.path).resolve()),
                package_json=pinned.package_json,
            )
            # Pinned workspaces are resolved once per run
            context.set_config(self.plugin_name, skip=True)
            return [workspace]

        paths = self.get_changed_packages(context)
        self.log_verbose(f"changed packages: {', '.join(paths) or 'none'}")
        workspaces = [read_workspace(context.root_path, path) for path in paths]

        if not workspaces:
            raise ValidationError(
                "No changes to publish packages",
                fix_hint="Commit changes under 'packages_directories' or pass --skip-check-package",
            )

        if context.shared.publish_path:
            workspaces = [self.match_publish_path(context, workspaces)]
        return workspaces

    def get_changed_packages(self, context: "ReleaseContext") -> list[str]:
        """Package directories that changed, in configuration order."""
        config: WorkspacesConfig = self.config
        directories = list(context.shared.packages_directories)
        label = release_label_for(context)

        if config.skip_check_package:
            return directories
        if config.change_labels:
            return label.pick_by_labels(config.change_labels, directories)

        changed_files = git_queries.get_changed_files(context.shell, context.source_branch)
        return label.pick(changed_files, directories)

    @staticmethod
    def match_publish_path(context: "ReleaseContext", workspaces: list[Workspace]) -> Workspace:
        target = Path(context.shared.publish_path)
        if not target.is_absolute():
            target = context.root_path / target
        target = target.resolve()

        for workspace in workspaces:
            if Path(workspace.root).resolve() == target:
                return workspace

        raise ConfigurationError(
            f"No workspace matches publish_path '{context.shared.publish_path}'",
            details=f"Resolved workspaces: {', '.join(w.path for w in workspaces) or 'none'}",
        )
