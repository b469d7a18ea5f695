"""Gitea CMS backend type definitions.

This module exports all data model types used by the backend.
"""

from gitea_cms.types.files import (
    CommitAction,
    CommitItem,
    CommitResult,
    DataFile,
    FileMetadata,
    MediaFile,
    PersistableFile,
    PersistOptions,
    TreeEntry,
)
from gitea_cms.types.pulls import (
    CommitStatus,
    DiffEntry,
    DiffStatus,
    PreviewState,
    PreviewStatus,
    PullRequest,
    RebaseState,
    UnpublishedEntry,
    UnpublishedEntryDiff,
)
from gitea_cms.types.users import Branch, User

__all__ = [
    # File and commit types
    "CommitAction",
    "CommitItem",
    "CommitResult",
    "DataFile",
    "MediaFile",
    "PersistableFile",
    "PersistOptions",
    "FileMetadata",
    "TreeEntry",
    # Pull request types
    "PullRequest",
    "RebaseState",
    "DiffStatus",
    "DiffEntry",
    "UnpublishedEntry",
    "UnpublishedEntryDiff",
    "CommitStatus",
    "PreviewState",
    "PreviewStatus",
    # User and branch types
    "User",
    "Branch",
]
