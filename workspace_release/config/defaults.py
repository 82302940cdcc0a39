"""Default values and starter configuration generation.

Holds the constants every stage falls back to, and the helpers behind
``workspace-release init-config``, which detects workspace directories and
the GitHub remote of the repository.
"""

import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from workspace_release.exceptions import ConfigurationError
from workspace_release.git.queries import parse_repo_info

MANIFEST_PATH = "package.json"
DEFAULT_SOURCE_BRANCH = "master"
DEFAULT_RELEASE_ENV = "development"
DEFAULT_AUTO_MERGE_TYPE = "squash"
DEFAULT_DRY_RUN_PR_NUMBER = "999999"

DEFAULT_CHANGE_PACKAGES_LABEL = "changes:{{name}}"
DEFAULT_BRANCH_NAME = "release-{{tag_name}}"
BATCH_BRANCH_NAME = "batch-{{release_name}}-{{length}}-packages"
BATCH_TAG_NAME = "batch-{{length}}-{{date}}"
MAX_WORKSPACE = 3
MULTI_WORKSPACE_SEPARATOR = "_"
WORKSPACE_VERSION_SEPARATOR = "@"

DEFAULT_PR_TITLE = "[{{pkg_name}} Release] Branch:{{branch}}, Tag:{{tag_name}}, Env:{{env}}"
DEFAULT_PR_BODY = "This PR includes version bump to {{tag_name}}\n\n{{changelog}}"
BATCH_PR_BODY = "\n## {{name}} {{version}}\n{{changelog}}\n"
DEFAULT_COMMIT_MESSAGE = "chore(tag): {{name}} v{{version}}"
DEFAULT_RELEASE_NAME = "{{name}} v{{version}}"

DEFAULT_TAG_TEMPLATE = "{{name}}@{{version}}"
DEFAULT_TAG_MATCH = "{{name}}@*"
DEFAULT_CHANGESET_COMMAND = "pnpm changeset version --no-changelog"

DEFAULT_LABEL = {
    "name": "CI-Release",
    "description": "Release pull request created by workspace-release",
    "color": "#1A7F37",
}

DEFAULT_TYPES: list[dict[str, Any]] = [
    {"type": "feat", "section": "#### ✨ Features"},
    {"type": "fix", "section": "#### 🐞 Bug Fixes"},
    {"type": "perf", "section": "#### ⚡ Performance"},
    {"type": "refactor", "section": "#### 🔨 Refactoring"},
    {"type": "docs", "section": "#### 📝 Documentation"},
    {"type": "chore", "hidden": True},
    {"type": "test", "hidden": True},
    {"type": "ci", "hidden": True},
]


def get_git_remote_url(project_root: Path, remote: str = "origin") -> str | None:
    """Get the URL of a git remote.

    Args:
        project_root: Project root directory
        remote: Remote name (default: origin)

    Returns:
        Remote URL or None if not found
    """
    try:
        result = subprocess.run(
            ["git", "config", "--get", f"remote.{remote}.url"],
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        pass
    return None


def get_git_default_branch(project_root: Path) -> str:
    """Detect the branch releases should target.

    Args:
        project_root: Project root directory

    Returns:
        Default branch name (main or master)
    """
    try:
        result = subprocess.run(
            ["git", "symbolic-ref", "--short", "HEAD"],
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            branch = result.stdout.strip()
            if branch in ("main", "master"):
                return branch
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        pass

    return DEFAULT_SOURCE_BRANCH


def detect_package_manager(project_root: Path) -> str:
    """Detect the Node.js package manager.

    Args:
        project_root: Project root directory

    Returns:
        Package manager name (pnpm, yarn, bun, npm)
    """
    if (project_root / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (project_root / "yarn.lock").exists():
        return "yarn"
    if (project_root / "bun.lockb").exists():
        return "bun"

    package_json = project_root / MANIFEST_PATH
    if package_json.exists():
        try:
            data = json.loads(package_json.read_text())
            pm = data.get("packageManager", "")
            if pm:
                # Format: pnpm@8.0.0
                return str(pm.split("@")[0])
        except (json.JSONDecodeError, OSError):
            pass

    return "npm"


def detect_packages_directories(project_root: Path) -> list[str]:
    """Find workspace directories that hold a package manifest.

    Looks one level below ``packages/`` and ``apps/``.

    Args:
        project_root: Project root directory

    Returns:
        Sorted relative directory paths
    """
    directories: list[str] = []
    for parent in ("packages", "apps"):
        base = project_root / parent
        if not base.is_dir():
            continue
        for manifest in sorted(base.glob(f"*/{MANIFEST_PATH}")):
            directories.append(manifest.parent.relative_to(project_root).as_posix())
    return directories


def changeset_command_for(package_manager: str) -> str:
    """Return the changesets version command for a package manager."""
    runners = {
        "pnpm": "pnpm changeset",
        "yarn": "yarn changeset",
        "bun": "bunx changeset",
        "npm": "npx changeset",
    }
    return f"{runners.get(package_manager, 'npx changeset')} version --no-changelog"


def generate_default_config(project_root: Path) -> dict[str, Any]:
    """Build a starter configuration from what the repository looks like.

    Args:
        project_root: Project root directory

    Returns:
        Configuration dictionary ready to be dumped as YAML
    """
    remote_url = get_git_remote_url(project_root)
    repo_info = parse_repo_info(remote_url) if remote_url else None
    package_manager = detect_package_manager(project_root)

    config: dict[str, Any] = {
        "source_branch": get_git_default_branch(project_root),
        "packages_directories": detect_packages_directories(project_root),
        "change_packages_label": DEFAULT_CHANGE_PACKAGES_LABEL,
        "branch_name": DEFAULT_BRANCH_NAME,
        "auto_merge_release_pr": False,
        "auto_merge_type": DEFAULT_AUTO_MERGE_TYPE,
        "label": dict(DEFAULT_LABEL),
    }
    if repo_info:
        config["author_name"], config["repo_name"] = repo_info

    config["changelog"] = {
        "changeset_root": ".changeset",
        "changeset_command": changeset_command_for(package_manager),
        "tag_template": DEFAULT_TAG_TEMPLATE,
        "tag_match": DEFAULT_TAG_MATCH,
    }
    config["github_pr"] = {"push_change_labels": False}
    config["publish_npm"] = {"access": "public"}
    config["github_release"] = {"release_name": DEFAULT_RELEASE_NAME}
    return config


def generate_config_header() -> str:
    """Generate the YAML header comment."""
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    return f"""# ============================================================================
# Workspace Release Configuration - release.yml
# ============================================================================
# Auto-generated on {now}
#
# Top-level keys are shared options. Each plugin reads its own section:
#   workspaces, changelog, github_pr, publish_npm, github_release
#
# To regenerate with auto-detected values:
#   workspace-release init-config --force
# ============================================================================

"""


def write_default_config(output_path: Path, project_root: Path | None = None) -> None:
    """Generate and write the starter configuration file.

    Args:
        output_path: Path to write configuration
        project_root: Project root directory (defaults to cwd)

    Raises:
        ConfigurationError: If file cannot be written
    """
    if project_root is None:
        project_root = Path.cwd()

    config = generate_default_config(project_root)
    shared = {key: value for key, value in config.items() if not isinstance(value, dict) or key == "label"}
    sections = [key for key in config if key not in shared]

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(generate_config_header())
            f.write(
                yaml.safe_dump(
                    shared,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                )
            )
            for section_key in sections:
                f.write(f"\n# {'-' * 76}\n# {section_key}\n# {'-' * 76}\n")
                f.write(
                    yaml.safe_dump(
                        {section_key: config[section_key]},
                        default_flow_style=False,
                        sort_keys=False,
                        allow_unicode=True,
                    )
                )

    except PermissionError:
        raise ConfigurationError(
            f"Permission denied writing config to {output_path}",
            fix_hint="Check file permissions or use a different location",
        ) from None
    except OSError as e:
        raise ConfigurationError(
            f"Failed to write config to {output_path}",
            details=str(e),
            fix_hint="Check disk space and path validity",
        ) from e
