"""Branches resource client."""

from typing import TYPE_CHECKING
from urllib.parse import quote

from gitea_cms.request import ApiRequest
from gitea_cms.types.users import Branch

if TYPE_CHECKING:
    from gitea_cms.config import BackendConfig
    from gitea_cms.transport import AsyncHTTPTransport


class BranchesClient:
    """Client for branch operations."""

    def __init__(self, transport: "AsyncHTTPTransport", config: "BackendConfig") -> None:
        self.transport = transport
        self.config = config

    def _branch_url(self, branch: str) -> str:
        return f"{self.config.repo_url}/repository/branches/{quote(branch, safe='')}"

    async def get_branch(self, branch: str) -> Branch:
        """
        Get a branch.

        Raises:
            NotFoundError: If the branch does not exist
        """
        data = await self.transport.request_json(self._branch_url(branch))
        return Branch.from_api(data)

    async def get_default_branch(self) -> Branch:
        return await self.get_branch(self.config.branch)

    async def delete_branch(self, branch: str) -> None:
        await self.transport.request_text(
            ApiRequest(url=self._branch_url(branch), method="DELETE")
        )

    async def is_sha_exists_in_branch(self, branch: str, sha: str) -> bool:
        """Check whether commit ``sha`` is reachable from ``branch``."""
        refs = await self.transport.request_json(
            ApiRequest(
                url=f"{self.config.repo_url}/repository/commits/{quote(sha, safe='')}/refs",
                params={"type": "branch"},
            )
        )
        return any(ref.get("name") == branch for ref in refs or [])
