"""
Pytest fixtures for Gitea CMS backend testing.

Provides a fake repository service and clients wired to it.
"""

from collections.abc import Generator
from typing import Any

import pytest

from gitea_cms.client import AsyncGiteaCMSClient
from gitea_cms.config import BackendConfig
from gitea_cms.testing.fake import FakeGiteaServer
from gitea_cms.transport import RetryConfig
from gitea_cms.types.files import DataFile, MediaFile, PersistOptions

# No waiting between retries in tests
FAST_RETRY = RetryConfig(max_retries=3, max_backoff=0.0, jitter=0.0)


class RecordingSleep:
    """Sleep replacement that records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def create_client(
    server: FakeGiteaServer,
    sleep: RecordingSleep | None = None,
    **config_overrides: Any,
) -> AsyncGiteaCMSClient:
    """Create a client talking to ``server``."""
    return AsyncGiteaCMSClient(
        server.config(**config_overrides),
        retry_config=FAST_RETRY,
        sleep=sleep or RecordingSleep(),
        http_transport=server.transport(),
    )


def create_data_file(
    path: str = "content/posts/hello.md",
    raw: str = "---\ntitle: Hello\n---\nHello world\n",
    slug: str = "hello",
    new_path: str | None = None,
) -> DataFile:
    return DataFile(path=path, raw=raw, slug=slug, new_path=new_path)


def create_media_file(
    path: str = "static/img/hello.png",
    content: bytes = b"\x89PNG\r\n\x1a\n\x00\xff\xfe",
    new_path: str | None = None,
) -> MediaFile:
    return MediaFile(path=path, content=content, new_path=new_path)


# ============================================================================
# Fake Service Fixtures
# ============================================================================


@pytest.fixture
def fake_server() -> FakeGiteaServer:
    """
    Provide an empty fake repository ``owner/site`` on branch ``master``.

    Example:
        ```python
        def test_read(fake_server, client):
            fake_server.seed({"a.md": "A"})
            assert asyncio.run(client.files.read_file("a.md")) == "A"
        ```
    """
    return FakeGiteaServer()


@pytest.fixture
def backend_config(fake_server: FakeGiteaServer) -> BackendConfig:
    return fake_server.config()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def client(
    fake_server: FakeGiteaServer, recording_sleep: RecordingSleep
) -> Generator[AsyncGiteaCMSClient, None, None]:
    """Provide a client connected to ``fake_server``."""
    yield create_client(fake_server, recording_sleep)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_data_file() -> DataFile:
    return create_data_file()


@pytest.fixture
def sample_media_file() -> MediaFile:
    return create_media_file()


@pytest.fixture
def workflow_options() -> PersistOptions:
    """Options for saving a new ``posts`` entry under the editorial workflow."""
    return PersistOptions(
        commit_message="Create Post 'hello'",
        use_workflow=True,
        collection_name="posts",
    )
