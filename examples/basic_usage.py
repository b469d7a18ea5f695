#!/usr/bin/env python3
"""
Basic Gitea CMS backend usage example.

Walks one entry through the editorial workflow against the in-memory fake
service, so it runs without a Gitea instance.
Run with: python examples/basic_usage.py
"""

import asyncio
import logging

from gitea_cms import (
    AsyncGiteaCMSClient,
    ConfigurationError,
    DataFile,
    EditorialWorkflowError,
    GiteaCMSError,
    MediaFile,
    PersistOptions,
    WorkflowStatus,
    configure_logging,
)
from gitea_cms.config import BackendConfig
from gitea_cms.testing import FakeGiteaServer


async def main() -> None:
    print("=== Gitea CMS Backend Basic Usage Example ===\n")

    # 1. Configuration errors
    print("1. Testing configuration validation...")
    try:
        BackendConfig(repo="missing-owner")
    except GiteaCMSError as e:
        assert isinstance(e, ConfigurationError)
        print(f"   Caught ConfigurationError: {e.message}")
    print("\n   OK: Configuration validated\n")

    # 2. Connect to the fake service
    print("2. Connecting to an in-memory repository...")
    server = FakeGiteaServer(owner="acme", name="website", branch="main")
    server.seed({"content/posts/welcome.md": "---\ntitle: Welcome\n---\n"})

    async with AsyncGiteaCMSClient(
        server.config(), http_transport=server.transport()
    ) as client:
        user = await client.user()
        print(f"   Logged in as: {user.login} ({user.name})")
        print(f"   Write access: {await client.has_write_access()}")

        entries = await client.files.list_all_files("content/posts")
        print(f"   Published posts: {[entry.path for entry in entries]}")
        print("\n   OK: Connected\n")

        # 3. Open a draft
        print("3. Saving a new post as a draft...")
        post = DataFile(
            path="content/posts/hello.md",
            raw="---\ntitle: Hello\n---\nFirst draft\n",
            slug="hello",
        )
        cover = MediaFile(path="static/img/hello.png", content=b"\x89PNG\r\n\x1a\n")
        options = PersistOptions(
            commit_message="Create Post 'hello'",
            use_workflow=True,
            collection_name="posts",
        )
        await client.persist_files([post], [cover], options)
        print(f"   Drafts: {await client.workflow.list_unpublished_branches()}")

        entry = await client.workflow.retrieve_unpublished_entry("posts/hello")
        print(f"   Status: {entry.status.value}")
        print(f"   Files: {[diff.path for diff in entry.diffs]}")
        print("\n   OK: Draft opened\n")

        # 4. Update the draft and move it through review
        print("4. Editing the draft and requesting review...")
        post.raw = "---\ntitle: Hello\n---\nSecond draft\n"
        options.unpublished = True
        options.commit_message = "Update Post 'hello'"
        await client.persist_files([post], [], options)
        await client.workflow.update_status("posts", "hello", WorkflowStatus.PENDING_PUBLISH)

        entry = await client.workflow.retrieve_unpublished_entry("posts/hello")
        print(f"   Status: {entry.status.value}")
        print(f"   Files: {[diff.path for diff in entry.diffs]}")
        print("\n   OK: Draft updated\n")

        # 5. Publish
        print("5. Publishing...")
        await client.workflow.publish("posts", "hello")
        print(f"   Drafts: {await client.workflow.list_unpublished_branches()}")
        print(f"   Published: {await client.files.read_file('content/posts/hello.md')!r}")

        try:
            await client.workflow.publish("posts", "hello")
        except EditorialWorkflowError as e:
            print(f"   Publishing again fails: {e.message}")
        print("\n   OK: Published\n")


if __name__ == "__main__":
    configure_logging(level=logging.WARNING, workflow_level=logging.INFO)
    asyncio.run(main())
