"""Workspace release pipeline for monorepos."""

__version__ = "0.1.0"

from workspace_release.exceptions import (
    ConfigurationError,
    GatewayError,
    GitOperationError,
    PublishError,
    ReleaseError,
    ReleaseSkipped,
    RemoteConflict,
    RemoteNotFound,
    ValidationError,
)

__all__ = [
    "__version__",
    "ReleaseError",
    "ReleaseSkipped",
    "ConfigurationError",
    "ValidationError",
    "GitOperationError",
    "PublishError",
    "GatewayError",
    "RemoteConflict",
    "RemoteNotFound",
]
