"""
Commits resource client.

Builds batches of commit items from CMS files and submits each batch as a
single commit.
"""

import asyncio
import posixpath
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from gitea_cms.exceptions import APIError, ConflictingBranchError, NotFoundError
from gitea_cms.logging import get_logger
from gitea_cms.request import ApiRequest
from gitea_cms.types.files import CommitAction, CommitItem, CommitResult, PersistableFile

if TYPE_CHECKING:
    from gitea_cms.clients.branches import BranchesClient
    from gitea_cms.clients.files import FilesClient
    from gitea_cms.config import BackendConfig
    from gitea_cms.transport import AsyncHTTPTransport

logger = get_logger("commits")


class CommitsClient:
    """Client for building and submitting commits."""

    def __init__(
        self,
        transport: "AsyncHTTPTransport",
        config: "BackendConfig",
        files: "FilesClient",
        branches: "BranchesClient",
    ) -> None:
        """
        Initialize the commits client.

        Args:
            transport: Async HTTP transport for making requests
            config: Backend configuration
            files: Files client used for existence checks and listings
            branches: Branches client used to diagnose branch conflicts
        """
        self.transport = transport
        self.config = config
        self.files = files
        self.branches = branches

    async def get_commit_items(
        self, files: Sequence[PersistableFile], branch: str
    ) -> list[CommitItem]:
        """
        Classify files into commit items against ``branch``.

        Runs in two phases: every file is classified concurrently as create,
        update or move, then moved directories are expanded so their other
        files move along with them.
        """
        items = list(
            await asyncio.gather(*(self._classify(file, branch) for file in files))
        )
        return items + await self._expand_moved_directories(items, branch)

    async def _classify(self, file: PersistableFile, branch: str) -> CommitItem:
        path = file.path.lstrip("/")
        new_path = file.new_path.lstrip("/") if file.new_path else None
        content = file.to_base64()

        if not await self.files.file_exists(path, branch):
            return CommitItem(CommitAction.CREATE, path, base64_content=content)

        if new_path is None:
            return CommitItem(CommitAction.UPDATE, path, base64_content=content)

        action = CommitAction.MOVE if new_path != path else CommitAction.UPDATE
        return CommitItem(action, new_path, old_path=path, base64_content=content)

    async def _expand_moved_directories(
        self, items: list[CommitItem], branch: str
    ) -> list[CommitItem]:
        moves = [
            (item, posixpath.dirname(item.old_path), posixpath.dirname(item.path))
            for item in items
            if item.action is CommitAction.MOVE and item.old_path
        ]
        # Moving within a directory, or out of the repository root, moves nothing else
        moves = [
            (item, source, dest) for item, source, dest in moves if source and source != dest
        ]
        if not moves:
            return []

        listings = await asyncio.gather(
            *(
                self.files.list_all_files(source, recursive=True, branch=branch)
                for _, source, _ in moves
            )
        )

        queued = {item.old_path or item.path for item in items}
        expanded: list[CommitItem] = []
        for (_, source, dest), children in zip(moves, listings):
            prefix = f"{source}/"
            for child in children:
                if child.path in queued or not child.path.startswith(prefix):
                    continue
                queued.add(child.path)
                expanded.append(
                    CommitItem(
                        CommitAction.MOVE,
                        posixpath.join(dest, child.path[len(prefix):]),
                        old_path=child.path,
                    )
                )
        return expanded

    async def upload_and_commit(
        self,
        items: Sequence[CommitItem],
        commit_message: str = "",
        branch: str | None = None,
        new_branch: bool = False,
    ) -> CommitResult:
        """
        Submit ``items`` as one commit.

        Args:
            items: Commit items to apply
            commit_message: Commit message
            branch: Target branch (default: the configured branch)
            new_branch: Create ``branch`` from the configured branch first

        Raises:
            ConflictingBranchError: If the new branch clashes with an existing one
            APIError: On other failures
        """
        branch = branch or self.config.branch
        body: dict[str, Any] = {
            "branch": branch,
            "commit_message": commit_message,
            "actions": [item.to_action() for item in items],
        }
        if new_branch:
            body["start_branch"] = self.config.branch
        if self.config.commit_author:
            body["author_name"] = self.config.commit_author.name
            body["author_email"] = self.config.commit_author.email

        try:
            data = await self.transport.request_json(
                ApiRequest(
                    url=f"{self.config.repo_url}/repository/commits",
                    method="POST",
                    body=body,
                )
            )
        except APIError as e:
            if new_branch and f"Could not update {branch}" in e.message:
                await self._raise_on_conflicting_branches(branch, e)
            raise

        logger.debug("Committed %d item(s) to %s", len(items), branch)
        return CommitResult.from_api(data or {})

    async def _raise_on_conflicting_branches(self, branch: str, cause: APIError) -> None:
        # A ref "cms/posts/a" cannot coexist with a ref "cms" or "cms/posts"
        parts = branch.split("/")
        candidates = ["/".join(parts[:index]) for index in range(1, len(parts))]

        async def existing(name: str) -> str | None:
            try:
                return (await self.branches.get_branch(name)).name
            except NotFoundError:
                return None

        found = await asyncio.gather(*(existing(name) for name in candidates))
        conflicting = next((name for name in found if name), None)
        if conflicting:
            raise ConflictingBranchError(branch, conflicting) from cause

    async def delete_files(self, paths: Sequence[str], commit_message: str) -> CommitResult:
        """Delete ``paths`` from the configured branch in one commit."""
        items = [CommitItem(CommitAction.DELETE, path) for path in paths]
        return await self.upload_and_commit(items, commit_message=commit_message)
