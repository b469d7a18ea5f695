"""
Pytest plugin for Gitea CMS backend testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["gitea_cms.testing.conftest"]
"""

# Re-export all fixtures for pytest auto-discovery
from gitea_cms.testing.fixtures import (
    backend_config,
    client,
    fake_server,
    recording_sleep,
    sample_data_file,
    sample_media_file,
    workflow_options,
)

__all__ = [
    "fake_server",
    "backend_config",
    "recording_sleep",
    "client",
    "sample_data_file",
    "sample_media_file",
    "workflow_options",
]
