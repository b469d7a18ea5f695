"""
Editorial workflow engine.

A draft entry lives on its own branch with an open pull request against the
base branch. The pull request carries exactly one CMS label that encodes the
draft's workflow status.

    NO_DRAFT --open--> DRAFT_OPEN --update / change status--> DRAFT_OPEN
    DRAFT_OPEN --publish--> MERGED
    DRAFT_OPEN --delete--> CLOSED
"""

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

from gitea_cms.content_keys import (
    WorkflowStatus,
    branch_from_content_key,
    generate_content_key,
    is_cms_label,
    label_to_status,
    parse_content_key,
    status_to_label,
)
from gitea_cms.logging import log_workflow_transition
from gitea_cms.types.files import (
    CommitAction,
    CommitItem,
    CommitResult,
    PersistableFile,
    PersistOptions,
)
from gitea_cms.types.pulls import PreviewStatus, UnpublishedEntry, UnpublishedEntryDiff

if TYPE_CHECKING:
    from gitea_cms.clients.branches import BranchesClient
    from gitea_cms.clients.commits import CommitsClient
    from gitea_cms.clients.files import FilesClient
    from gitea_cms.clients.pulls import PullsClient
    from gitea_cms.config import BackendConfig


class EditorialWorkflow:
    """Branch + pull request + label lifecycle of draft entries."""

    def __init__(
        self,
        config: "BackendConfig",
        files: "FilesClient",
        commits: "CommitsClient",
        branches: "BranchesClient",
        pulls: "PullsClient",
    ) -> None:
        """
        Initialize the workflow engine.

        Raises:
            ValueError: If the configured initial workflow status is unknown
        """
        self.config = config
        self.files = files
        self.commits = commits
        self.branches = branches
        self.pulls = pulls
        self.initial_status = WorkflowStatus(config.initial_workflow_status)

    async def persist(
        self,
        files: Sequence[PersistableFile],
        slug: str,
        options: PersistOptions,
    ) -> CommitResult:
        """
        Save files of an entry under the editorial workflow.

        Opens a draft (new branch and pull request) for a new entry, otherwise
        updates the existing draft.
        """
        if not options.collection_name:
            raise ValueError("collection_name is required for editorial workflow saves")

        content_key = generate_content_key(options.collection_name, slug)
        branch = branch_from_content_key(content_key)

        if not options.unpublished:
            return await self._open(files, branch, options)
        return await self._update(files, branch, options)

    async def _open(
        self,
        files: Sequence[PersistableFile],
        branch: str,
        options: PersistOptions,
    ) -> CommitResult:
        status = WorkflowStatus(options.status) if options.status else self.initial_status
        items = await self.commits.get_commit_items(files, self.config.branch)
        result = await self.commits.upload_and_commit(
            items,
            commit_message=options.commit_message,
            branch=branch,
            new_branch=True,
        )
        await self.pulls.create(branch, options.commit_message, status)
        log_workflow_transition("open", branch, f"status={status.value}")
        return result

    async def _update(
        self,
        files: Sequence[PersistableFile],
        branch: str,
        options: PersistOptions,
    ) -> CommitResult:
        pull_request = await self.pulls.get_branch_pull_request(branch)
        await self.pulls.rebase(pull_request)

        items, diffs = await asyncio.gather(
            self.commits.get_commit_items(files, branch),
            self.pulls.get_differences(branch),
        )

        # Binary files absent from the new file set are deleted explicitly
        written = {item.path for item in items}
        for diff in diffs:
            if diff.binary and diff.path not in written:
                items.append(CommitItem(CommitAction.DELETE, diff.new_path))

        result = await self.commits.upload_and_commit(
            items, commit_message=options.commit_message, branch=branch
        )
        log_workflow_transition("update", branch, f"items={len(items)}")
        return result

    async def retrieve_unpublished_entry(self, content_key: str) -> UnpublishedEntry:
        """Load a draft: its status, changed files with blob ids and last update."""
        collection, slug = parse_content_key(content_key)
        branch = branch_from_content_key(content_key)
        pull_request = await self.pulls.get_branch_pull_request(branch)
        diffs = await self.pulls.get_differences(pull_request.sha)

        async def with_id(path: str, new_file: bool) -> UnpublishedEntryDiff:
            blob_id = await self.files.get_file_id(path, branch)
            return UnpublishedEntryDiff(id=blob_id, path=path, new_file=new_file)

        entry_diffs = await asyncio.gather(*(with_id(d.path, d.new_file) for d in diffs))

        label = next(
            label
            for label in pull_request.labels
            if is_cms_label(label, self.config.cms_label_prefix)
        )
        return UnpublishedEntry(
            collection=collection,
            slug=slug,
            status=label_to_status(label, self.config.cms_label_prefix),
            diffs=list(entry_diffs),
            updated_at=pull_request.updated_at,
        )

    async def list_unpublished_branches(self) -> list[str]:
        log_workflow_transition("list", self.config.branch, "checking for unpublished entries")
        return [pr.source_branch for pr in await self.pulls.get_pull_requests()]

    async def update_status(
        self, collection: str, slug: str, new_status: WorkflowStatus | str
    ) -> None:
        """Replace the draft's CMS label, keeping every other label."""
        branch = branch_from_content_key(generate_content_key(collection, slug))
        pull_request = await self.pulls.get_branch_pull_request(branch)

        prefix = self.config.cms_label_prefix
        labels = [label for label in pull_request.labels if not is_cms_label(label, prefix)]
        labels.append(status_to_label(new_status, prefix))

        await self.pulls.update_labels(pull_request, labels)
        log_workflow_transition("status", branch, f"status={WorkflowStatus(new_status).value}")

    async def publish(self, collection: str, slug: str) -> None:
        """Merge the draft into the base branch."""
        branch = branch_from_content_key(generate_content_key(collection, slug))
        pull_request = await self.pulls.get_branch_pull_request(branch)
        await self.pulls.merge(pull_request)
        log_workflow_transition("publish", branch)

    async def delete(self, collection: str, slug: str) -> None:
        """Discard the draft: close its pull request and delete its branch."""
        branch = branch_from_content_key(generate_content_key(collection, slug))
        pull_request = await self.pulls.get_branch_pull_request(branch)
        await self.pulls.close(pull_request)
        await self.branches.delete_branch(branch)
        log_workflow_transition("delete", branch)

    async def get_statuses(self, collection: str, slug: str) -> list[PreviewStatus]:
        branch = branch_from_content_key(generate_content_key(collection, slug))
        pull_request = await self.pulls.get_branch_pull_request(branch)
        return await self.pulls.get_statuses(pull_request, branch)

    async def get_unpublished_entry_sha(self, collection: str, slug: str) -> str:
        branch = branch_from_content_key(generate_content_key(collection, slug))
        pull_request = await self.pulls.get_branch_pull_request(branch)
        return pull_request.sha
