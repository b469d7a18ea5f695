"""Repository files and tree listing resource client."""

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from gitea_cms.cache import cached, file_cache_key, metadata_cache_key
from gitea_cms.cursor import Cursor
from gitea_cms.exceptions import GiteaCMSError, NotFoundError
from gitea_cms.logging import get_logger
from gitea_cms.request import ApiRequest
from gitea_cms.types.files import FileMetadata, TreeEntry

if TYPE_CHECKING:
    from gitea_cms.cache import ContentCache
    from gitea_cms.config import BackendConfig
    from gitea_cms.transport import AsyncHTTPTransport

# Largest page size the tree endpoint accepts
MAX_PAGE_SIZE = 100

BLOB_ID_HEADER = "X-Gitlab-Blob-Id"

logger = get_logger("files")


class FilesClient:
    """Client for reading files and listing repository trees."""

    def __init__(
        self,
        transport: "AsyncHTTPTransport",
        config: "BackendConfig",
        cache: "ContentCache",
    ) -> None:
        """
        Initialize the files client.

        Args:
            transport: Async HTTP transport for making requests
            config: Backend configuration
            cache: Cache for file contents and metadata
        """
        self.transport = transport
        self.config = config
        self.cache = cache

    def _file_url(self, path: str) -> str:
        return f"{self.config.repo_url}/repository/files/{quote(path, safe='')}"

    async def read_file(
        self,
        path: str,
        sha: str | None = None,
        parse_text: bool = True,
        branch: str | None = None,
    ) -> str | bytes:
        """
        Read a file's raw content.

        Args:
            path: Repository path of the file
            sha: Blob sha used as cache key (optional)
            parse_text: Return text when True, bytes otherwise
            branch: Ref to read from (default: the configured branch)

        Returns:
            File content as str or bytes
        """
        request = ApiRequest(
            url=f"{self._file_url(path)}/raw",
            params={"ref": branch or self.config.branch},
            cache="no-store",
        )

        async def fetch_content() -> str | bytes:
            if parse_text:
                return await self.transport.request_text(request)
            return await self.transport.request_bytes(request)

        key = file_cache_key(sha, parse_text) if sha else None
        return await cached(self.cache, key, fetch_content)

    async def read_file_metadata(self, path: str, sha: str | None = None) -> FileMetadata:
        """
        Get the author and date of the last commit touching ``path``.

        Metadata is best effort: any failure yields empty values.
        """

        async def fetch_metadata() -> FileMetadata:
            try:
                commits = await self.transport.request_json(
                    ApiRequest(
                        url=f"{self.config.repo_url}/repository/commits",
                        params={"path": path, "ref_name": self.config.branch},
                    )
                )
                commit = commits[0]
                return FileMetadata(
                    author=commit.get("author_name") or commit.get("author_email") or "",
                    updated_on=commit.get("authored_date") or "",
                )
            except (GiteaCMSError, IndexError, KeyError, TypeError) as e:
                logger.debug("No metadata for %s: %s", path, e)
                return FileMetadata(author="", updated_on="")

        key = metadata_cache_key(sha) if sha else None
        return await cached(self.cache, key, fetch_metadata)

    async def file_exists(self, path: str, branch: str) -> bool:
        """
        Check whether ``path`` exists on ``branch`` without transferring it.

        Raises:
            APIError: On failures other than 404
        """
        try:
            await self.transport.request_text(
                ApiRequest(
                    url=self._file_url(path), method="HEAD", params={"ref": branch}
                )
            )
        except NotFoundError:
            return False
        return True

    async def get_file_id(self, path: str, branch: str) -> str:
        """
        Return the blob id of ``path`` on ``branch``.

        A path missing from the branch, such as a file the draft deletes, has
        an empty id.

        Raises:
            APIError: On failures other than 404
        """
        response = await self.transport.send(
            ApiRequest(url=self._file_url(path), method="HEAD", params={"ref": branch})
        )
        if response.status_code == 404:
            return ""
        self.transport.parse_text(response)
        return response.headers.get(BLOB_ID_HEADER, "")

    async def fetch_cursor(self, req: ApiRequest) -> Cursor:
        """Get a cursor without retrieving the entries, using a HEAD request."""
        response = await self.transport.send(req.with_method("HEAD"))
        return Cursor.from_response(response)

    async def fetch_cursor_and_entries(
        self, req: ApiRequest
    ) -> tuple[list[TreeEntry], Cursor]:
        """
        Fetch one page of a listing together with its cursor.

        A 404 for the listing yields no entries (the directory does not exist).
        """
        response = await self.transport.send(req.with_method("GET"))
        cursor = Cursor.from_response(response)
        try:
            data: list[dict[str, Any]] = self.transport.parse_json(response) or []
        except NotFoundError:
            data = []
        return [TreeEntry.from_api(entry) for entry in data], cursor

    def _tree_request(self, path: str, branch: str, recursive: bool, **params: Any) -> ApiRequest:
        return ApiRequest(
            url=f"{self.config.repo_url}/repository/tree",
            params={"path": path, "ref": branch, "recursive": recursive, **params},
        )

    async def list_files(
        self, path: str, recursive: bool = False
    ) -> tuple[list[TreeEntry], Cursor]:
        """List the files of the first page under ``path`` and return its cursor."""
        entries, cursor = await self.fetch_cursor_and_entries(
            self._tree_request(path, self.config.branch, recursive)
        )
        return [entry for entry in entries if entry.is_file], cursor

    async def traverse_cursor(
        self, cursor: Cursor, action: str
    ) -> tuple[list[TreeEntry], Cursor]:
        """
        Follow a cursor action.

        Raises:
            ValueError: If the action is not available on the cursor
        """
        entries, new_cursor = await self.fetch_cursor_and_entries(cursor.request_for(action))
        return [entry for entry in entries if entry.is_file], new_cursor

    async def list_all_files(
        self,
        path: str,
        recursive: bool = False,
        branch: str | None = None,
    ) -> list[TreeEntry]:
        """List every file under ``path``, following ``next`` links to the last page."""
        entries, cursor = await self.fetch_cursor_and_entries(
            self._tree_request(
                path, branch or self.config.branch, recursive, per_page=MAX_PAGE_SIZE
            )
        )
        while cursor.has("next"):
            page, cursor = await self.fetch_cursor_and_entries(cursor.request_for("next"))
            entries.extend(page)
        return [entry for entry in entries if entry.is_file]
