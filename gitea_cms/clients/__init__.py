"""Gitea CMS backend resource clients."""

from gitea_cms.clients.branches import BranchesClient
from gitea_cms.clients.commits import CommitsClient
from gitea_cms.clients.files import FilesClient
from gitea_cms.clients.pulls import PullsClient

__all__ = [
    "BranchesClient",
    "CommitsClient",
    "FilesClient",
    "PullsClient",
]
