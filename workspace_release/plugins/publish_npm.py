"""npm publish plugin.

Publishes every released workspace in publish mode, authenticating through
a workspace-level ``.npmrc`` written from NPM_TOKEN.
"""

from pathlib import Path
from urllib.parse import urlparse

from rich.console import Console
from rich.markup import escape

from workspace_release.config.models import PublishNpmConfig
from workspace_release.context import ReleaseContext, Workspace
from workspace_release.exceptions import ConfigurationError, PublishError
from workspace_release.plugins.base import Plugin
from workspace_release.utils.shell import ShellError

console = Console()

DEFAULT_REGISTRY = "https://registry.npmjs.org"


def auth_line(registry: str, token: str) -> str:
    """npm auth entry for a registry, e.g. ``//registry.npmjs.org/:_authToken=...``."""
    parsed = urlparse(registry)
    host_path = f"{parsed.netloc}{parsed.path}".rstrip("/") if parsed.netloc else registry.strip("/")
    return f"//{host_path}/:_authToken={token}"


class PublishNpmPlugin(Plugin):
    """Runs ``npm publish`` for each workspace."""

    plugin_name = "publish_npm"
    config_model = PublishNpmConfig

    def enabled(self, phase: str) -> bool:
        if self.context.shared.release_pr:
            return False
        return super().enabled(phase)

    def get_token(self) -> str:
        token = self.context.get_env("NPM_TOKEN")
        if not token:
            raise ConfigurationError(
                "NPM_TOKEN is not set.",
                fix_hint="Export an npm automation token as NPM_TOKEN",
            )
        return token

    def on_before(self, context: "ReleaseContext") -> None:
        self.get_token()

    def on_success(self, context: "ReleaseContext") -> None:
        workspaces = context.workspaces or []
        self.step("Publish to NPM", lambda: [self.publish(context, w) for w in workspaces])

    def write_npmrc(self, context: "ReleaseContext", workspace: Workspace) -> Path | None:
        """Add the registry auth entry to the workspace's .npmrc.

        Returns:
            Path of the .npmrc, or None when skip_npmrc leaves auth to the environment
        """
        if self.config.skip_npmrc:
            self.log_verbose(f"skip_npmrc set, not writing .npmrc for {workspace.name}")
            return None

        npmrc = Path(workspace.root) / ".npmrc"
        line = auth_line(self.config.registry, self.get_token())

        if context.dry_run:
            console.print(f"[yellow]\\[DRY RUN][/yellow] Would write registry auth to {escape(str(npmrc))}")
            return npmrc

        existing = npmrc.read_text(encoding="utf-8") if npmrc.exists() else ""
        if line not in existing.splitlines():
            separator = "" if not existing or existing.endswith("\n") else "\n"
            try:
                npmrc.write_text(f"{existing}{separator}{line}\n", encoding="utf-8")
            except OSError as e:
                raise PublishError(
                    f"Cannot write {npmrc}",
                    details=str(e),
                    fix_hint="Check write permissions of the workspace directory",
                ) from e
        return npmrc

    def publish(self, context: "ReleaseContext", workspace: Workspace) -> str:
        """Publish one workspace.

        Raises:
            PublishError: If npm publish fails
        """
        config: PublishNpmConfig = self.config
        self.write_npmrc(context, workspace)

        cmd = ["npm", "publish", "--access", config.access]
        if config.registry.rstrip("/") != DEFAULT_REGISTRY:
            cmd.extend(["--registry", config.registry])
        cmd.extend(config.publish_args)

        try:
            output = context.shell.exec(cmd, cwd=Path(workspace.root))
        except ShellError as e:
            raise PublishError(
                f"Failed to publish {workspace.name}@{workspace.version}",
                details=str(e),
                fix_hint="Check that NPM_TOKEN may publish this package and the version is new",
            ) from e

        console.print(f"[green]  Published {escape(workspace.name)}@{escape(workspace.version)}[/green]")
        return output
