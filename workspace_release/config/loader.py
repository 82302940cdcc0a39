"""Configuration file loading utilities.

Supports loading configuration from YAML and TOML files with:
- Automatic format detection
- Error reporting with file location
- Layered merging of file options and command-line overrides
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from workspace_release.config.models import SharedOptions
from workspace_release.exceptions import ConfigurationError

CONFIG_SEARCH_PATHS = [
    "release.yml",
    "release.yaml",
    ".release.yml",
    "config/release.yml",
    "release.toml",
]


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as dictionary

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or use 'workspace-release init-config' to generate one",
        ) from None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration in {path} must be a mapping",
            details=f"Got {type(data).__name__}",
        )
    return data


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML configuration file.

    Args:
        path: Path to the TOML file

    Returns:
        Parsed TOML as dictionary

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
            return data
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or use 'workspace-release init-config' to generate one",
        ) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


def find_config(path: Path | str | None = None, project_root: Path | None = None) -> Path:
    """Locate the configuration file.

    An explicit path must exist. Without one, the standard locations in
    CONFIG_SEARCH_PATHS are tried in order.

    Args:
        path: Explicit path to config file
        project_root: Project root directory (defaults to cwd)

    Returns:
        Path of the configuration file

    Raises:
        ConfigurationError: If no configuration file exists
    """
    if project_root is None:
        project_root = Path.cwd()

    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = project_root / config_path
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                fix_hint="Check the --config path",
            )
        return config_path

    for search_path in CONFIG_SEARCH_PATHS:
        candidate = project_root / search_path
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "No configuration file found",
        details=f"Searched in: {', '.join(CONFIG_SEARCH_PATHS)}",
        fix_hint="Run 'workspace-release init-config' to create a configuration file",
    )


def load_options(path: Path | str | None = None, project_root: Path | None = None) -> dict[str, Any]:
    """Load raw release options from file.

    Search order if path not specified:
    1. release.yml
    2. release.yaml
    3. .release.yml
    4. config/release.yml
    5. release.toml

    Args:
        path: Explicit path to config file
        project_root: Project root directory (defaults to cwd)

    Returns:
        Options dictionary

    Raises:
        ConfigurationError: If config not found, unreadable or of unknown format
    """
    config_path = find_config(path, project_root)

    if config_path.suffix in (".yml", ".yaml"):
        return load_yaml(config_path)
    if config_path.suffix == ".toml":
        return load_toml(config_path)
    raise ConfigurationError(
        f"Unsupported config format: {config_path.suffix}",
        fix_hint="Use .yml, .yaml, or .toml extension",
    )


def merge_options(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge option layers, later layers winning.

    Mappings merge key by key; any other value (lists included) replaces
    the earlier one. None values in a later layer are ignored so unset
    command-line flags never clobber file options.

    Returns:
        A new merged dictionary; inputs are not modified
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is None:
                continue
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = merge_options(current, value)
            elif isinstance(value, Mapping):
                merged[key] = merge_options(value)
            else:
                merged[key] = value
    return merged


def load_shared(options: Mapping[str, Any]) -> SharedOptions:
    """Validate the shared (top-level) options.

    Plugin sections in ``options`` are ignored here.

    Raises:
        ConfigurationError: If a shared option has the wrong type
    """
    try:
        return SharedOptions(**dict(options))
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid shared release options",
            details=str(e),
            fix_hint="Check the configuration values match expected types",
        ) from e
