"""Shared pytest configuration."""

pytest_plugins = ["gitea_cms.testing.conftest"]
