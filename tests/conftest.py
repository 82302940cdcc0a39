"""Pytest fixtures for workspace release tests.

Provides common fixtures for:
- Temporary project directories
- Git repository setup
- Monorepos with workspace manifests
- Release contexts with a scrubbed environment
"""

import json
import os
import subprocess
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from workspace_release.context import ReleaseContext


def git(cwd: Path, *args: str) -> str:
    """Run a git command in a test repository and return its stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def write_manifest(directory: Path, name: str, version: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    manifest = directory / "package.json"
    manifest.write_text(json.dumps({"name": name, "version": version}, indent=2))
    return manifest


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory
    """
    yield tmp_path
    # Cleanup handled by pytest's tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory.

    Returns:
        Path to project directory
    """
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def git_repo(project_dir: Path) -> Path:
    """Create a git repository in the project directory.

    Returns:
        Path to git repository
    """
    git(project_dir, "init", "-b", "master")
    git(project_dir, "config", "user.email", "test@test.com")
    git(project_dir, "config", "user.name", "Test User")
    git(project_dir, "config", "commit.gpgsign", "false")
    git(project_dir, "config", "tag.gpgsign", "false")
    return project_dir


@pytest.fixture
def monorepo(git_repo: Path) -> Path:
    """Create a committed monorepo with three workspaces.

    Layout:
        packages/pkg-a  (@scope/a 1.0.0)
        packages/pkg-b  (@scope/b 2.1.0)
        apps/web        (web 0.3.0)

    Returns:
        Path to repository root
    """
    (git_repo / "package.json").write_text(json.dumps({"name": "root", "private": True}))
    write_manifest(git_repo / "packages" / "pkg-a", "@scope/a", "1.0.0")
    write_manifest(git_repo / "packages" / "pkg-b", "@scope/b", "2.1.0")
    write_manifest(git_repo / "apps" / "web", "web", "0.3.0")

    git(git_repo, "add", ".")
    git(git_repo, "commit", "-m", "chore: initial commit")
    return git_repo


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Temporarily clean environment variables.

    Removes RELEASE_*, FE_RELEASE* and token variables during test.
    """
    prefixes = ("RELEASE_", "FE_RELEASE")
    names = {"GITHUB_TOKEN", "PAT_TOKEN", "NPM_TOKEN", "NODE_ENV"}
    old_env = {}
    for key in list(os.environ.keys()):
        if key.startswith(prefixes) or key in names:
            old_env[key] = os.environ.pop(key)

    yield

    os.environ.update(old_env)


@pytest.fixture
def make_context(clean_env: None, project_dir: Path) -> Callable[..., ReleaseContext]:
    """Factory for release contexts rooted at the project directory.

    The environment passed to the context is explicit, so tests never
    depend on the machine running them.
    """

    def factory(
        options: dict[str, Any] | None = None,
        overrides: dict[str, Any] | None = None,
        env: dict[str, str] | None = None,
        dry_run: bool = False,
        verbose: bool = False,
        root: Path | None = None,
    ) -> ReleaseContext:
        merged: dict[str, Any] = {"root_path": str(root or project_dir)}
        merged.update(options or {})
        return ReleaseContext(
            options=merged,
            overrides=overrides or {},
            dry_run=dry_run,
            verbose=verbose,
            env=env if env is not None else {},
        )

    return factory
