"""Task error taxonomy.

Every failure of a review run surfaces as exactly one of these exceptions.
Core modules raise them; only the CLI layer turns them into an Azure
Pipelines task result. Nothing here is retried.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for errors that fail the pipeline task."""

    kind = "task"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PreflightError(TaskError):
    """A required executable or runtime version is missing on the agent."""

    kind = "preflight"


class ConfigurationError(TaskError):
    """A required input is missing (after fallbacks) or malformed."""

    kind = "configuration"


class ApiError(TaskError):
    """The Azure DevOps REST API returned an unexpected response."""

    kind = "api"

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(ApiError):
    """HTTP 401 (or the 203 sign-in page Azure DevOps serves for a bad PAT)."""

    kind = "authentication"

    def __init__(self, url: str, status_code: int = 401):
        message = (
            f"Authentication failed ({status_code}) for {url}. "
            "Check that the Azure DevOps PAT is valid and has the 'Code (Read & Write)' scope, "
            "or that the build service identity can access the repository."
        )
        super().__init__(message, status_code=status_code)


class NotFoundError(ApiError):
    """HTTP 404, or an expected resource that the API did not return."""

    kind = "not-found"

    def __init__(self, message: str, status_code: int | None = 404):
        super().__init__(message, status_code=status_code)


class ValidationError(TaskError):
    """User-supplied prompt content cannot be used."""

    kind = "validation"


class ProvisioningError(TaskError):
    """The Copilot CLI could not be installed."""

    kind = "provisioning"


class ReviewTimeoutError(TaskError):
    """A spawned process outlived its deadline and was asked to terminate."""

    kind = "timeout"

    def __init__(self, message: str, timeout_seconds: float):
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class SubprocessError(TaskError):
    """A spawned process could not start or exited non-zero."""

    kind = "subprocess"

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode
