"""
Content keys, draft branch names and workflow status labels.

A content key ``collection/slug`` identifies one editorial draft. Its branch is
``cms/collection/slug``. The workflow status lives on the draft's pull request
as a single label ``{prefix}{status}``.
"""

from enum import Enum

CMS_BRANCH_PREFIX = "cms"
DEFAULT_CMS_LABEL_PREFIX = "netlify-cms/"
DEFAULT_PR_BODY = "Automatically generated by Netlify CMS"
MERGE_COMMIT_MESSAGE = "Automatically generated. Merged on Netlify CMS."


class WorkflowStatus(str, Enum):
    """Editorial workflow status of a draft entry."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    PENDING_PUBLISH = "pending_publish"


def generate_content_key(collection: str, slug: str) -> str:
    """
    Build the content key for a collection entry.

    Raises:
        ValueError: If the collection is empty or contains "/", or the slug is empty
    """
    if not collection or "/" in collection:
        raise ValueError(f"Invalid collection name: {collection!r}")
    if not slug:
        raise ValueError("Slug must not be empty")
    return f"{collection}/{slug}"


def parse_content_key(content_key: str) -> tuple[str, str]:
    """Split a content key into ``(collection, slug)``."""
    collection, sep, slug = content_key.partition("/")
    if not sep or not collection or not slug:
        raise ValueError(f"Invalid content key: {content_key!r}")
    return collection, slug


def branch_from_content_key(content_key: str) -> str:
    return f"{CMS_BRANCH_PREFIX}/{content_key}"


def content_key_from_branch(branch: str) -> str:
    prefix = f"{CMS_BRANCH_PREFIX}/"
    if not branch.startswith(prefix):
        raise ValueError(f"Branch {branch!r} is not a CMS branch")
    return branch[len(prefix):]


def is_cms_branch(branch: str) -> bool:
    """Whether ``branch`` is a draft branch ``cms/collection/slug``."""
    prefix = f"{CMS_BRANCH_PREFIX}/"
    if not branch.startswith(prefix):
        return False
    collection, sep, slug = branch[len(prefix):].partition("/")
    return bool(collection and sep and slug)


def label_prefix(prefix: str | None) -> str:
    return prefix or DEFAULT_CMS_LABEL_PREFIX


def is_cms_label(label: str, prefix: str | None) -> bool:
    return label.startswith(label_prefix(prefix))


def status_to_label(status: WorkflowStatus | str, prefix: str | None) -> str:
    return f"{label_prefix(prefix)}{WorkflowStatus(status).value}"


def label_to_status(label: str, prefix: str | None) -> WorkflowStatus:
    """
    Read the workflow status from a CMS label.

    Raises:
        ValueError: If the label is not a CMS label or names an unknown status
    """
    if not is_cms_label(label, prefix):
        raise ValueError(f"Label {label!r} is not a CMS label")
    return WorkflowStatus(label[len(label_prefix(prefix)):])
