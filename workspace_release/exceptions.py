"""Custom exception hierarchy for the workspace release pipeline.

Exit codes follow Unix conventions:
- 0: Release skipped on purpose (FE_RELEASE=false)
- 1: General error
- 2: Configuration error
- 3: Validation error
- 4: Git error
- 5: Publish error
- 7: Remote gateway error
"""


class ReleaseError(Exception):
    """Base exception for all release errors.

    All release-related exceptions inherit from this class.
    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ReleaseSkipped(ReleaseError):
    """The release was switched off through the environment.

    Raised when FE_RELEASE is "false", before any plugin is loaded.
    """

    exit_code = 0


class ConfigurationError(ReleaseError):
    """Configuration errors.

    Raised when:
    - Config file not found or has invalid syntax (YAML/TOML)
    - Config values fail validation
    - A required token (GITHUB_TOKEN, PAT_TOKEN, NPM_TOKEN) is missing
    - The release label is incomplete
    - A template is not a string
    - A workspace manifest is missing or empty
    """

    exit_code = 2


class ValidationError(ReleaseError):
    """Release preconditions that do not hold.

    Raised when:
    - No workspace changed since the source branch
    - A workspace has no tag name when a release is created
    """

    exit_code = 3


class GitOperationError(ReleaseError):
    """Git operation failures.

    Raised when:
    - checkout, fetch, push or commit fails
    - A query against the repository fails
    """

    exit_code = 4


class PublishError(ReleaseError):
    """Publishing failures.

    Raised when:
    - npm publish fails
    - Registry authentication cannot be written
    """

    exit_code = 5


class GatewayError(ReleaseError):
    """Remote release gateway failures.

    Carries the HTTP status of the failed call (None for transport errors)
    so callers can classify the failure.
    """

    exit_code = 7

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(message, details=details, fix_hint=fix_hint)
        self.status = status

    @classmethod
    def from_status(
        cls,
        status: int | None,
        message: str,
        details: str | None = None,
    ) -> "GatewayError":
        """Build the most specific gateway error for an HTTP status.

        Args:
            status: HTTP status code of the failed call
            message: Error message reported by the remote
            details: Raw response body or extra context

        Returns:
            RemoteConflict for 422, RemoteNotFound for 404, GatewayError otherwise
        """
        if status == RemoteConflict.status_code:
            return RemoteConflict(message, details=details)
        if status == RemoteNotFound.status_code:
            return RemoteNotFound(message, details=details)
        return cls(message, status=status, details=details)


class RemoteConflict(GatewayError):
    """HTTP 422: the resource already exists or the request is unprocessable."""

    status_code = 422

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(
            message, status=self.status_code, details=details, fix_hint=fix_hint
        )


class RemoteNotFound(GatewayError):
    """HTTP 404: the pull request, branch or repository does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(
            message, status=self.status_code, details=details, fix_hint=fix_hint
        )
