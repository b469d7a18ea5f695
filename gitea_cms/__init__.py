"""Gitea CMS backend - store and version CMS content in a Gitea repository."""

from gitea_cms.auth import (
    AuthType,
    Credentials,
    ImplicitAuthenticator,
    LoginRequest,
    NetlifyAuthenticator,
    PkceAuthenticator,
    create_authenticator,
)
from gitea_cms.cache import ContentCache, InMemoryCache
from gitea_cms.client import AsyncGiteaCMSClient
from gitea_cms.config import BackendConfig, CommitAuthor, RepositoryRef
from gitea_cms.content_keys import (
    WorkflowStatus,
    branch_from_content_key,
    generate_content_key,
    parse_content_key,
)
from gitea_cms.cursor import Cursor
from gitea_cms.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    ConflictingBranchError,
    DiffLimitError,
    EditorialWorkflowError,
    GiteaCMSError,
    LoginError,
    NotFoundError,
    RateLimitedError,
    RebaseError,
    RebaseTimeoutError,
    ServerError,
    ValidationError,
)
from gitea_cms.logging import configure_logging, get_logger
from gitea_cms.request import ApiRequest, RequestBuilder
from gitea_cms.transport import AsyncHTTPTransport, RetryConfig
from gitea_cms.types import (
    CommitAction,
    CommitItem,
    DataFile,
    DiffEntry,
    MediaFile,
    PersistOptions,
    PreviewState,
    PreviewStatus,
    PullRequest,
    UnpublishedEntry,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main client
    "AsyncGiteaCMSClient",
    # Configuration
    "BackendConfig",
    "CommitAuthor",
    "RepositoryRef",
    # Content keys
    "WorkflowStatus",
    "generate_content_key",
    "parse_content_key",
    "branch_from_content_key",
    # Types
    "CommitAction",
    "CommitItem",
    "DataFile",
    "MediaFile",
    "PersistOptions",
    "DiffEntry",
    "PullRequest",
    "UnpublishedEntry",
    "PreviewState",
    "PreviewStatus",
    "Cursor",
    # Cache
    "ContentCache",
    "InMemoryCache",
    # Authentication
    "AuthType",
    "LoginRequest",
    "Credentials",
    "PkceAuthenticator",
    "ImplicitAuthenticator",
    "NetlifyAuthenticator",
    "create_authenticator",
    # Exceptions
    "GiteaCMSError",
    "APIError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ValidationError",
    "ServerError",
    "ConflictingBranchError",
    "DiffLimitError",
    "RebaseError",
    "RebaseTimeoutError",
    "EditorialWorkflowError",
    "ConfigurationError",
    "LoginError",
    # Transport
    "ApiRequest",
    "RequestBuilder",
    "AsyncHTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
