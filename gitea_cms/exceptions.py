"""Gitea CMS backend exception classes."""

API_NAME = "Gitea"


class GiteaCMSError(Exception):
    """Base exception for all Gitea CMS backend errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(GiteaCMSError):
    """Raised when backend configuration is invalid or missing."""

    pass


class LoginError(GiteaCMSError):
    """Raised when an authentication strategy cannot complete a login."""

    pass


class APIError(GiteaCMSError):
    """
    Raised when the hosting service rejects a request.

    Attributes:
        status: HTTP status code, or None when no response was received
        api_name: Name of the service that produced the error
    """

    def __init__(
        self, message: str, status: int | None = None, api_name: str = API_NAME
    ) -> None:
        self.status = status
        self.api_name = api_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.status is None:
            return f"[{self.api_name}] {self.message}"
        return f"[{self.api_name} {self.status}] {self.message}"


class AuthenticationError(APIError):
    """Raised when the access token is missing or rejected (401)."""

    pass


class AuthorizationError(APIError):
    """Raised when access is denied (403)."""

    pass


class NotFoundError(APIError):
    """Raised when a resource is not found (404)."""

    pass


class ConflictError(APIError):
    """Raised on conflicts reported by the service (409)."""

    pass


class RateLimitedError(APIError):
    """Raised when rate limited (429)."""

    def __init__(
        self,
        message: str,
        retry_after: int,
        status: int | None = 429,
        api_name: str = API_NAME,
    ) -> None:
        super().__init__(message, status, api_name)
        self.retry_after = retry_after


class ValidationError(APIError):
    """Raised on other client errors (4xx)."""

    pass


class ServerError(APIError):
    """Raised on server errors (5xx) and connection failures."""

    pass


class ConflictingBranchError(APIError):
    """Raised when a draft branch cannot be created because a prefix branch exists."""

    def __init__(self, branch: str, conflicting_branch: str) -> None:
        self.branch = branch
        self.conflicting_branch = conflicting_branch
        super().__init__(
            f"Failed creating branch '{branch}' since there is already a branch "
            f"named '{conflicting_branch}'. Please delete the "
            f"'{conflicting_branch}' branch and try again",
            500,
        )


class DiffLimitError(APIError):
    """Raised when a comparison reports too many changed files to process."""

    pass


class RebaseError(APIError):
    """Raised when rebasing a pull request reports a merge error."""

    pass


class RebaseTimeoutError(RebaseError):
    """Raised when a rebase is still in progress after the polling budget."""

    pass


class EditorialWorkflowError(GiteaCMSError):
    """
    Raised on editorial workflow failures.

    ``not_under_editorial_workflow`` is True when the entry simply has no open
    pull request, which callers treat as a recoverable condition.
    """

    def __init__(self, message: str, not_under_editorial_workflow: bool) -> None:
        super().__init__(message)
        self.not_under_editorial_workflow = not_under_editorial_workflow
