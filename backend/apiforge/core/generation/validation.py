"""Pre-flight checks run before any workspace is touched."""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urlparse

from apiforge.exceptions import ValidationFailed

MAX_NAME_LENGTH = 50
MAX_URL_LENGTH = 500
MAX_PATH_LENGTH = 500
MAX_METADATA_BYTES = 1024 * 1024
MAX_METADATA_KEY_LENGTH = 100

RESERVED_NAMES = frozenset(
    {"node_modules", "dist", "build", "src", "test", "tests", "playwright-workspaces"}
)

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
_DANGEROUS_PATH_CHARS_RE = re.compile(r'[<>:"|?*\x00-\x1f]')
_DRIVE_PREFIX_RE = re.compile(r"^[A-Za-z]:(?=[\\/])")


def validate_project_name(name: str) -> None:
    if not name or not name.strip():
        raise ValidationFailed("Project name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationFailed(f"Project name cannot exceed {MAX_NAME_LENGTH} characters")
    if not _IDENTIFIER_RE.match(name):
        raise ValidationFailed(
            "Project name may only contain letters, digits, hyphens (-) and underscores (_)"
        )
    if name.lower() in RESERVED_NAMES:
        raise ValidationFailed(f"The name '{name}' is reserved and cannot be used")


def validate_base_url(base_url: str) -> None:
    if not base_url or not base_url.strip():
        raise ValidationFailed("Base URL cannot be empty")
    if len(base_url) > MAX_URL_LENGTH:
        raise ValidationFailed(f"Base URL cannot exceed {MAX_URL_LENGTH} characters")
    try:
        parsed = urlparse(base_url)
    except ValueError as exc:
        raise ValidationFailed("Base URL is not a valid URL") from exc
    if parsed.scheme not in ("http", "https"):
        raise ValidationFailed("Base URL must use HTTP or HTTPS")
    if not parsed.hostname:
        raise ValidationFailed("Base URL must include a valid hostname")


def validate_metadata(metadata: Any) -> None:
    if not isinstance(metadata, dict):
        raise ValidationFailed("Metadata must be an object")
    try:
        encoded = json.dumps(metadata)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed("Metadata values must be JSON serialisable") from exc
    if len(encoded.encode("utf-8")) > MAX_METADATA_BYTES:
        raise ValidationFailed("Metadata cannot exceed 1MB")

    for key in metadata:
        if not isinstance(key, str) or not key:
            raise ValidationFailed("Metadata keys must be non-empty strings")
        if len(key) > MAX_METADATA_KEY_LENGTH:
            raise ValidationFailed(
                f"Metadata keys cannot exceed {MAX_METADATA_KEY_LENGTH} characters"
            )
        if not _IDENTIFIER_RE.match(key):
            raise ValidationFailed(
                "Metadata keys may only contain letters, digits, hyphens (-) and underscores (_)"
            )


def validate_project_configuration(
    name: str,
    base_url: str,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Validate the inputs of a project creation request."""
    validate_project_name(name)
    validate_base_url(base_url)
    if metadata is not None:
        validate_metadata(metadata)


def validate_workspace_path(workspace_path: str) -> None:
    if not workspace_path or not workspace_path.strip():
        raise ValidationFailed("Workspace path cannot be empty")
    # A leading drive designator (C:\) is the only place ':' may appear.
    if _DANGEROUS_PATH_CHARS_RE.search(_DRIVE_PREFIX_RE.sub("", workspace_path, count=1)):
        raise ValidationFailed("Workspace path contains forbidden characters")
    if len(workspace_path) > MAX_PATH_LENGTH:
        raise ValidationFailed(f"Workspace path cannot exceed {MAX_PATH_LENGTH} characters")
