"""Pull request, diff and status data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gitea_cms.content_keys import WorkflowStatus


class DiffStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class PreviewState(str, Enum):
    """Normalized state of an external CI/deploy status."""

    SUCCESS = "success"
    OTHER = "other"


@dataclass
class PullRequest:
    """Pull request information."""

    iid: int
    sha: str
    source_branch: str
    target_branch: str
    title: str
    state: str  # "opened", "merged", "closed"
    labels: list[str] = field(default_factory=list)
    updated_at: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        labels = [
            label["name"] if isinstance(label, dict) else str(label)
            for label in data.get("labels") or []
        ]
        return cls(
            iid=int(data["iid"]),
            sha=data.get("sha", ""),
            source_branch=data["source_branch"],
            target_branch=data["target_branch"],
            title=data.get("title", ""),
            state=data.get("state", "opened"),
            labels=labels,
            updated_at=data.get("updated_at"),
        )


@dataclass
class RebaseState:
    """Rebase progress of a pull request."""

    rebase_in_progress: bool
    merge_error: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "RebaseState":
        data = data or {}
        return cls(
            rebase_in_progress=bool(data.get("rebase_in_progress", False)),
            merge_error=data.get("merge_error") or None,
        )


@dataclass
class DiffEntry:
    """One changed path between two refs."""

    status: DiffStatus
    old_path: str
    new_path: str
    new_file: bool
    binary: bool

    @property
    def path(self) -> str:
        return self.new_path or self.old_path


@dataclass
class UnpublishedEntryDiff:
    """Changed file of a draft, identified by its blob id on the draft branch."""

    id: str
    path: str
    new_file: bool


@dataclass
class UnpublishedEntry:
    """Editorial draft as stored on its branch and pull request."""

    collection: str
    slug: str
    status: WorkflowStatus
    diffs: list[UnpublishedEntryDiff]
    updated_at: str | None


@dataclass
class CommitStatus:
    """External status reported against a commit."""

    name: str
    status: str
    target_url: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CommitStatus":
        return cls(
            name=data.get("name", ""),
            status=data.get("status", ""),
            target_url=data.get("target_url"),
        )


@dataclass
class PreviewStatus:
    """CI status of a draft, normalized for display."""

    context: str
    state: PreviewState
    target_url: str | None

    @classmethod
    def from_commit_status(cls, status: CommitStatus) -> "PreviewStatus":
        state = PreviewState.SUCCESS if status.status == "success" else PreviewState.OTHER
        return cls(context=status.name, state=state, target_url=status.target_url)
