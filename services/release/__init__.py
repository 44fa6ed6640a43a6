"""Public API for the release host package."""

from __future__ import annotations

from services.release.constants import (
    API_URL,
    DMG_CONTENT_TYPE,
    RECENT_RELEASES_PAGE_SIZE,
    UPLOAD_TIMEOUT,
)
from services.release.github import GitHubReleaseClient, ReleaseClient, build_release_client
from services.release.models import Release, ReleaseAsset
from services.release.versioning import derive_next_version, next_version, version_prefix

__all__ = [
    "API_URL",
    "DMG_CONTENT_TYPE",
    "RECENT_RELEASES_PAGE_SIZE",
    "UPLOAD_TIMEOUT",
    "GitHubReleaseClient",
    "Release",
    "ReleaseAsset",
    "ReleaseClient",
    "build_release_client",
    "derive_next_version",
    "next_version",
    "version_prefix",
]
