"""File, tree and commit data models."""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class CommitAction(str, Enum):
    """Kind of change a commit item applies to one path."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MOVE = "move"


@dataclass
class CommitItem:
    """One file-level change queued into a batch commit."""

    action: CommitAction
    path: str
    old_path: str | None = None
    base64_content: str | None = None

    def to_action(self) -> dict[str, str]:
        """Serialize as an entry of the commit endpoint's ``actions`` list."""
        action: dict[str, str] = {"action": self.action.value, "file_path": self.path}
        if self.old_path:
            action["previous_path"] = self.old_path
        if self.base64_content is not None:
            action["content"] = self.base64_content
            action["encoding"] = "base64"
        return action


class PersistableFile(Protocol):
    """A file the CMS wants written to the repository."""

    path: str
    new_path: str | None

    def to_base64(self) -> str: ...


@dataclass
class DataFile:
    """A text entry file produced by the CMS editor."""

    path: str
    raw: str
    slug: str | None = None
    new_path: str | None = None

    def to_base64(self) -> str:
        return base64.b64encode(self.raw.encode("utf-8")).decode("ascii")


@dataclass
class MediaFile:
    """A binary asset uploaded alongside an entry."""

    path: str
    content: bytes
    new_path: str | None = None

    def to_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


@dataclass
class TreeEntry:
    """An entry of a repository tree listing."""

    id: str
    name: str
    path: str
    type: str  # "blob" or "tree"
    mode: str | None = None

    @property
    def is_file(self) -> bool:
        return self.type == "blob"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TreeEntry":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            path=data["path"],
            type=data.get("type", "blob"),
            mode=data.get("mode"),
        )


@dataclass
class FileMetadata:
    """Author and date of the last commit that touched a file."""

    author: str
    updated_on: str


@dataclass
class CommitResult:
    """Commit created by a batch submission."""

    id: str
    short_id: str | None
    message: str | None
    author_name: str | None
    created_at: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CommitResult":
        return cls(
            id=data.get("id", ""),
            short_id=data.get("short_id"),
            message=data.get("message"),
            author_name=data.get("author_name"),
            created_at=data.get("created_at"),
        )


@dataclass
class PersistOptions:
    """Options for persisting an entry."""

    commit_message: str
    use_workflow: bool = False
    collection_name: str | None = None
    unpublished: bool = False
    status: str | None = None
