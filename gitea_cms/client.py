"""
Gitea CMS backend async client.

Provides the interface a CMS host uses to store content in a Gitea repository.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

import httpx

from gitea_cms.cache import ContentCache, InMemoryCache
from gitea_cms.clients import BranchesClient, CommitsClient, FilesClient, PullsClient
from gitea_cms.config import BackendConfig
from gitea_cms.polling import Sleep
from gitea_cms.transport import AsyncHTTPTransport, RetryConfig
from gitea_cms.types.files import (
    CommitResult,
    DataFile,
    MediaFile,
    PersistableFile,
    PersistOptions,
)
from gitea_cms.types.users import User
from gitea_cms.workflow import EditorialWorkflow


class AsyncGiteaCMSClient:
    """
    Async client for storing CMS content in a Gitea repository.

    Aggregates the resource clients and the editorial workflow engine.

    Example:
        ```python
        import asyncio
        from gitea_cms import AsyncGiteaCMSClient, BackendConfig, DataFile, PersistOptions

        async def main():
            config = BackendConfig(repo="owner/site", token="...", branch="main")
            async with AsyncGiteaCMSClient(config) as client:
                await client.persist_files(
                    [DataFile(path="content/posts/hello.md", raw="# Hello", slug="hello")],
                    [],
                    PersistOptions(
                        commit_message="Create post hello",
                        use_workflow=True,
                        collection_name="posts",
                    ),
                )

        asyncio.run(main())
        ```
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        config: BackendConfig,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        cache: ContentCache | None = None,
        sleep: Sleep = asyncio.sleep,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Backend configuration
            timeout: Request timeout in seconds (default: 30.0)
            retry_config: Configuration for retry behavior (optional)
            cache: Cache for file reads (default: in-memory)
            sleep: Coroutine function used while waiting on rebases
            http_transport: Custom httpx transport (optional)
        """
        self.config = config
        self.timeout = timeout
        self.cache = cache if cache is not None else InMemoryCache()

        self._transport = AsyncHTTPTransport(
            api_root=config.api_root,
            token=config.token,
            timeout=timeout,
            retry_config=retry_config,
            http_transport=http_transport,
        )

        self.files = FilesClient(self._transport, config, self.cache)
        self.branches = BranchesClient(self._transport, config)
        self.commits = CommitsClient(self._transport, config, self.files, self.branches)
        self.pulls = PullsClient(self._transport, config, sleep)
        self.workflow = EditorialWorkflow(
            config, self.files, self.commits, self.branches, self.pulls
        )

    @classmethod
    def from_env(
        cls,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        cache: ContentCache | None = None,
    ) -> "AsyncGiteaCMSClient":
        """
        Create a client from ``GITEA_CMS_*`` environment variables.

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        return cls(
            BackendConfig.from_env(),
            timeout=timeout,
            retry_config=retry_config,
            cache=cache,
        )

    @property
    def transport(self) -> AsyncHTTPTransport:
        """Get the underlying async HTTP transport (for advanced use cases)."""
        return self._transport

    async def user(self) -> User:
        """Get the authenticated user."""
        return User.from_api(await self._transport.request_json("/user"))

    async def has_write_access(self) -> bool:
        """Check whether the authenticated user can push to the repository."""
        repo = await self._transport.request_json(self.config.repo_url)
        permissions = (repo or {}).get("permissions") or {}
        return bool(permissions.get("push"))

    async def persist_files(
        self,
        data_files: Sequence[DataFile],
        media_files: Sequence[MediaFile],
        options: PersistOptions,
    ) -> CommitResult:
        """
        Save an entry and its media.

        With ``options.use_workflow`` the files go to the entry's draft branch,
        otherwise they are committed directly to the configured branch.
        """
        files: list[PersistableFile] = [*data_files, *media_files]
        if options.use_workflow:
            slug = data_files[0].slug if data_files else None
            if not slug:
                raise ValueError("Editorial workflow saves need a data file with a slug")
            return await self.workflow.persist(files, slug, options)

        items = await self.commits.get_commit_items(files, self.config.branch)
        return await self.commits.upload_and_commit(items, commit_message=options.commit_message)

    async def delete_files(self, paths: Sequence[str], commit_message: str) -> CommitResult:
        return await self.commits.delete_files(paths, commit_message)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "AsyncGiteaCMSClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()
