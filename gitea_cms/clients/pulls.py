"""Async pull requests resource client."""

import re
from typing import TYPE_CHECKING, Any

from gitea_cms.content_keys import (
    DEFAULT_PR_BODY,
    MERGE_COMMIT_MESSAGE,
    WorkflowStatus,
    is_cms_branch,
    is_cms_label,
    status_to_label,
)
from gitea_cms.exceptions import (
    DiffLimitError,
    EditorialWorkflowError,
    RebaseError,
    RebaseTimeoutError,
)
from gitea_cms.logging import get_logger
from gitea_cms.polling import Sleep, poll
from gitea_cms.request import ApiRequest
from gitea_cms.types.pulls import (
    CommitStatus,
    DiffEntry,
    DiffStatus,
    PreviewStatus,
    PullRequest,
    RebaseState,
)

if TYPE_CHECKING:
    from gitea_cms.config import BackendConfig
    from gitea_cms.transport import AsyncHTTPTransport

# Comparisons at or above this many changed files are refused
DIFF_LIMIT = 1000

REBASE_POLL_INTERVAL = 1.0
REBASE_MAX_POLLS = 10

# TODO: match raster image extensions too; only SVG is flagged by path and
# other images rely on the service marking the diff as binary.
_BINARY_PATH_RE = re.compile(r"\.svg$")

logger = get_logger("pulls")


class PullsClient:
    """Async client for pull request operations."""

    def __init__(
        self,
        transport: "AsyncHTTPTransport",
        config: "BackendConfig",
        sleep: Sleep,
    ) -> None:
        """
        Initialize the pulls client.

        Args:
            transport: Async HTTP transport for making requests
            config: Backend configuration
            sleep: Coroutine function used between rebase polls
        """
        self.transport = transport
        self.config = config
        self.sleep = sleep

    def _pull_url(self, pull_request: PullRequest) -> str:
        return f"{self.config.repo_url}/pull/{pull_request.iid}"

    async def get_pull_requests(self, source_branch: str | None = None) -> list[PullRequest]:
        """
        List open CMS pull requests targeting the configured branch.

        Only pull requests from a CMS branch that carry a CMS status label are
        returned.
        """
        params: dict[str, Any] = {
            "state": "opened",
            "labels": "Any",
            "target_branch": self.config.branch,
        }
        if source_branch:
            params["source_branch"] = source_branch

        data = await self.transport.request_json(
            ApiRequest(url=f"{self.config.repo_url}/pulls", params=params)
        )
        pulls = [PullRequest.from_api(pr) for pr in data or []]
        return [
            pr
            for pr in pulls
            if is_cms_branch(pr.source_branch)
            and any(is_cms_label(label, self.config.cms_label_prefix) for label in pr.labels)
        ]

    async def get_branch_pull_request(self, branch: str) -> PullRequest:
        """
        Get the open pull request for a draft branch.

        Raises:
            EditorialWorkflowError: If the branch has no open CMS pull request
        """
        pulls = await self.get_pull_requests(source_branch=branch)
        pulls = [pr for pr in pulls if pr.source_branch == branch]
        if not pulls:
            raise EditorialWorkflowError(
                "content is not under editorial workflow", True
            )
        return pulls[0]

    async def create(self, branch: str, title: str, status: WorkflowStatus | str) -> None:
        """Open a pull request from ``branch`` with a single status label."""
        await self.transport.request_json(
            ApiRequest(
                url=f"{self.config.repo_url}/pulls",
                method="POST",
                params={
                    "source_branch": branch,
                    "target_branch": self.config.branch,
                    "title": title,
                    "description": DEFAULT_PR_BODY,
                    "labels": status_to_label(status, self.config.cms_label_prefix),
                    "remove_source_branch": True,
                    "squash": self.config.squash_merges,
                },
            )
        )

    async def rebase(self, pull_request: PullRequest) -> RebaseState:
        """
        Rebase a pull request onto its target branch and wait for completion.

        Polls every second, at most ten times.

        Raises:
            RebaseError: As soon as the service reports a merge error
            RebaseTimeoutError: If the rebase is still running after the last poll
        """
        initial = RebaseState.from_api(
            await self.transport.request_json(
                ApiRequest(url=f"{self._pull_url(pull_request)}/rebase", method="PUT")
            )
        )

        async def fetch_state() -> RebaseState:
            return RebaseState.from_api(
                await self.transport.request_json(
                    ApiRequest(
                        url=self._pull_url(pull_request),
                        params={"include_rebase_in_progress": True},
                    )
                )
            )

        def is_done(state: RebaseState) -> bool:
            if state.merge_error:
                raise RebaseError(
                    f"Rebase error: {state.merge_error}", None, self.transport.api_name
                )
            return not state.rebase_in_progress

        result = await poll(
            initial,
            fetch_state,
            is_done,
            max_attempts=REBASE_MAX_POLLS,
            interval=REBASE_POLL_INTERVAL,
            sleep=self.sleep,
        )
        if not result.done:
            raise RebaseTimeoutError(
                "Timed out rebasing merge request", None, self.transport.api_name
            )

        logger.debug("Rebased pull request %s after %d poll(s)", pull_request.iid, result.attempts)
        return result.value

    async def update_labels(self, pull_request: PullRequest, labels: list[str]) -> None:
        await self.transport.request_json(
            ApiRequest(
                url=self._pull_url(pull_request),
                method="PUT",
                params={"labels": ",".join(labels)},
            )
        )

    async def merge(self, pull_request: PullRequest) -> None:
        """Merge a pull request and remove its source branch."""
        await self.transport.request_json(
            ApiRequest(
                url=f"{self._pull_url(pull_request)}/merge",
                method="PUT",
                params={
                    "merge_commit_message": MERGE_COMMIT_MESSAGE,
                    "squash_commit_message": MERGE_COMMIT_MESSAGE,
                    "squash": self.config.squash_merges,
                    "should_remove_source_branch": True,
                },
            )
        )

    async def close(self, pull_request: PullRequest) -> None:
        await self.transport.request_json(
            ApiRequest(
                url=self._pull_url(pull_request),
                method="PUT",
                params={"state_event": "close"},
            )
        )

    async def get_differences(self, to: str, from_: str | None = None) -> list[DiffEntry]:
        """
        Compare two refs.

        Args:
            to: Ref with the changes
            from_: Base ref (default: the configured branch)

        Raises:
            DiffLimitError: If the comparison has DIFF_LIMIT or more changed files
        """
        from_ = from_ or self.config.branch
        if to == from_:
            return []

        result = await self.transport.request_json(
            ApiRequest(
                url=f"{self.config.repo_url}/repository/compare",
                params={"from": from_, "to": to},
            )
        )
        diffs: list[dict[str, Any]] = (result or {}).get("diffs") or []

        if len(diffs) >= DIFF_LIMIT:
            raise DiffLimitError("Diff limit reached", None, self.transport.api_name)

        return [_parse_diff(diff) for diff in diffs]

    async def get_statuses(self, pull_request: PullRequest, branch: str) -> list[PreviewStatus]:
        """Get CI statuses of the pull request's head commit, normalized for display."""
        data = await self.transport.request_json(
            ApiRequest(
                url=f"{self.config.repo_url}/repository/commits/{pull_request.sha}/statuses",
                params={"ref": branch},
            )
        )
        return [
            PreviewStatus.from_commit_status(CommitStatus.from_api(status))
            for status in data or []
        ]


def _parse_diff(data: dict[str, Any]) -> DiffEntry:
    if data.get("new_file"):
        status = DiffStatus.ADDED
    elif data.get("deleted_file"):
        status = DiffStatus.DELETED
    elif data.get("renamed_file"):
        status = DiffStatus.RENAMED
    else:
        status = DiffStatus.MODIFIED

    new_path = data.get("new_path") or ""
    return DiffEntry(
        status=status,
        old_path=data.get("old_path") or "",
        new_path=new_path,
        new_file=bool(data.get("new_file")),
        binary=(data.get("diff") or "").startswith("Binary")
        or bool(_BINARY_PATH_RE.search(new_path)),
    )
