"""
Backend configuration.

Holds the static settings an adapter instance is built from. Everything here is
read-only once the client has been constructed.
"""

import os
from dataclasses import dataclass, field
from urllib.parse import quote

from gitea_cms.exceptions import ConfigurationError

DEFAULT_API_ROOT = "https://gitea.com/api/v1"
DEFAULT_BRANCH = "master"
DEFAULT_WORKFLOW_STATUS = "draft"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class CommitAuthor:
    """Author attached to commits created by the backend."""

    name: str
    email: str


@dataclass(frozen=True)
class RepositoryRef:
    """Owner/name pair of the repository plus where to reach it."""

    owner: str
    name: str
    branch: str = DEFAULT_BRANCH
    api_root: str = DEFAULT_API_ROOT

    @classmethod
    def parse(
        cls,
        repo: str,
        branch: str = DEFAULT_BRANCH,
        api_root: str = DEFAULT_API_ROOT,
    ) -> "RepositoryRef":
        """
        Parse an ``owner/name`` repository identifier.

        Raises:
            ConfigurationError: If the identifier is not of the form owner/name
        """
        owner, sep, name = repo.strip("/").partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ConfigurationError(
                f"Invalid repository '{repo}'. Expected the form 'owner/name'"
            )
        return cls(owner=owner, name=name, branch=branch, api_root=api_root)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        """Repository path relative to the API root."""
        return f"/repos/{quote(self.owner, safe='')}/{quote(self.name, safe='')}"


@dataclass(frozen=True)
class BackendConfig:
    """Configuration for the Gitea CMS backend."""

    repo: str
    api_root: str = DEFAULT_API_ROOT
    token: str | None = None
    branch: str = DEFAULT_BRANCH
    squash_merges: bool = False
    initial_workflow_status: str = DEFAULT_WORKFLOW_STATUS
    cms_label_prefix: str = ""
    commit_author: CommitAuthor | None = None
    repository: RepositoryRef = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "repository",
            RepositoryRef.parse(self.repo, self.branch, self.api_root.rstrip("/")),
        )

    @property
    def repo_url(self) -> str:
        return self.repository.url

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "BackendConfig":
        """
        Create a configuration from environment variables.

        Environment variables:
            GITEA_CMS_REPO: Repository as owner/name (required)
            GITEA_CMS_API_ROOT: API root URL (optional)
            GITEA_CMS_TOKEN: Access token (optional)
            GITEA_CMS_BRANCH: Base branch (optional, default: master)
            GITEA_CMS_SQUASH_MERGES: "true" or "false" (optional, default: false)
            GITEA_CMS_INITIAL_STATUS: Initial workflow status (optional, default: draft)
            GITEA_CMS_LABEL_PREFIX: Workflow label prefix (optional)
            GITEA_CMS_AUTHOR_NAME / GITEA_CMS_AUTHOR_EMAIL: Commit author (optional, both or none)

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        env = os.environ if environ is None else environ

        repo = env.get("GITEA_CMS_REPO")
        if not repo:
            raise ConfigurationError("GITEA_CMS_REPO environment variable not set")

        squash_raw = env.get("GITEA_CMS_SQUASH_MERGES", "false").strip().lower()
        if squash_raw in _TRUE_VALUES:
            squash_merges = True
        elif squash_raw in _FALSE_VALUES:
            squash_merges = False
        else:
            raise ConfigurationError(
                f"Invalid GITEA_CMS_SQUASH_MERGES: {squash_raw}. Must be 'true' or 'false'"
            )

        author_name = env.get("GITEA_CMS_AUTHOR_NAME")
        author_email = env.get("GITEA_CMS_AUTHOR_EMAIL")
        if bool(author_name) != bool(author_email):
            raise ConfigurationError(
                "GITEA_CMS_AUTHOR_NAME and GITEA_CMS_AUTHOR_EMAIL must be set together"
            )
        commit_author = None
        if author_name and author_email:
            commit_author = CommitAuthor(name=author_name, email=author_email)

        return cls(
            repo=repo,
            api_root=env.get("GITEA_CMS_API_ROOT", DEFAULT_API_ROOT),
            token=env.get("GITEA_CMS_TOKEN") or None,
            branch=env.get("GITEA_CMS_BRANCH", DEFAULT_BRANCH),
            squash_merges=squash_merges,
            initial_workflow_status=env.get(
                "GITEA_CMS_INITIAL_STATUS", DEFAULT_WORKFLOW_STATUS
            ),
            cms_label_prefix=env.get("GITEA_CMS_LABEL_PREFIX", ""),
            commit_author=commit_author,
        )
