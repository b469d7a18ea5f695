"""
Gitea CMS backend logging utilities.

Provides configurable logging for HTTP requests/responses and editorial
workflow transitions. Ensures access tokens and credentials are never logged.
"""

import logging
import re
from typing import Any

# Create package-specific loggers
_sdk_logger = logging.getLogger("gitea_cms")
_http_logger = logging.getLogger("gitea_cms.http")
_workflow_logger = logging.getLogger("gitea_cms.workflow")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Authorization header values
    (re.compile(r"(Bearer|token)\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), r"\1 [REDACTED]"),
    # Tokens passed as query parameters
    (re.compile(r"([?&](?:access_token|token|code)=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    # Secret/token patterns in serialized payloads
    (re.compile(r"(secret|token|password|code_verifier)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = {
    "authorization",
    "token",
    "access_token",
    "password",
    "secret",
    "code_verifier",
}

# Base64 file content is replaced by its size in logged bodies
_CONTENT_KEYS = {"content"}


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    workflow_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure Gitea CMS backend logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        workflow_level: Log level for editorial workflow logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from gitea_cms.logging import configure_logging

        # Enable debug logging for HTTP requests
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _workflow_logger.setLevel(workflow_level if workflow_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a package logger.

    Args:
        name: Logger name suffix (e.g., "http", "workflow"). If None, returns the main logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"gitea_cms.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Replaces bearer tokens, token query parameters and other credential
    patterns with redacted placeholders.
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    File content is replaced by a length marker so commit payloads stay readable.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of keys to mask (default: authorization, token, password, ...)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif key_lower in _CONTENT_KEYS and isinstance(value, str):
            result[key] = f"<{len(value)} chars>"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: Any = None,
) -> None:
    """Log an HTTP request at DEBUG level with sensitive data masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {mask_sensitive_data(url)}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if isinstance(body, dict):
        log_parts.append(f"body={safe_log_dict(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
) -> None:
    """Log an HTTP response at DEBUG level."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {mask_sensitive_data(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    _http_logger.debug(" | ".join(log_parts))


def log_workflow_transition(
    operation: str,
    branch: str,
    detail: str | None = None,
) -> None:
    """
    Log an editorial workflow transition at INFO level.

    Args:
        operation: Transition name (e.g., "open", "update", "publish")
        branch: Draft branch the transition applies to
        detail: Extra context (optional)
    """
    if not _workflow_logger.isEnabledFor(logging.INFO):
        return

    message = f"{operation}: branch={branch}"
    if detail:
        message = f"{message} | {detail}"

    _workflow_logger.info(message)


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_workflow_transition",
]
