"""Gitea CMS backend testing utilities.

Provides an in-memory fake of the repository service and fixtures for testing
applications that use the backend.
"""

from gitea_cms.testing.fake import FakeCommit, FakeGiteaServer, FakePull
from gitea_cms.testing.fixtures import (
    RecordingSleep,
    create_client,
    create_data_file,
    create_media_file,
)

__all__ = [
    # Fake service
    "FakeGiteaServer",
    "FakeCommit",
    "FakePull",
    # Helper functions
    "RecordingSleep",
    "create_client",
    "create_data_file",
    "create_media_file",
]
