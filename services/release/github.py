"""Minimal client for the GitHub Releases REST API."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from app.config import DeployConfig
from services.errors import ReleaseHostError
from services.release.constants import (
    API_URL,
    API_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    RECENT_RELEASES_PAGE_SIZE,
    UPLOAD_TIMEOUT,
    USER_AGENT,
)
from services.release.models import Release, ReleaseAsset


_LOGGER = logging.getLogger(__name__)


class ReleaseClient(Protocol):
    """Operations the pipeline needs from a release host."""

    def list_releases(self, per_page: int = 30, page: int = 1) -> list[Release]:
        """Return releases ordered from newest to oldest."""

    def latest_release(self) -> Release | None:
        """Return the most recently created release, if any."""

    def find_release_by_tag(
        self, tag: str, per_page: int = RECENT_RELEASES_PAGE_SIZE
    ) -> Release:
        """Return the single recent release tagged ``tag``."""

    def rename_asset(self, asset_id: int, name: str) -> ReleaseAsset:
        """Rename an existing release asset."""

    def upload_asset(
        self,
        release: Release,
        path: Path,
        name: str,
        content_type: str,
        timeout: float = UPLOAD_TIMEOUT,
    ) -> ReleaseAsset:
        """Upload ``path`` to ``release`` under ``name``."""


class GitHubReleaseClient:
    """Query and modify releases of a single GitHub repository."""

    def __init__(
        self,
        user: str,
        repo: str,
        token: str,
        *,
        api_url: str = API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._user = user
        self._repo = repo
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self._user}/{self._repo}"

    def list_releases(self, per_page: int = 30, page: int = 1) -> list[Release]:
        url = f"{self._repo_api_url}/releases?per_page={per_page}&page={page}"
        payload = self._request_json("GET", url)
        if not isinstance(payload, list):
            raise ReleaseHostError(f"Unexpected releases payload from {url}")
        return [Release.from_payload(entry) for entry in payload if isinstance(entry, dict)]

    def latest_release(self) -> Release | None:
        """Return the most recently created release, drafts included."""

        releases = self.list_releases(per_page=1)
        return releases[0] if releases else None

    def find_release_by_tag(
        self, tag: str, per_page: int = RECENT_RELEASES_PAGE_SIZE
    ) -> Release:
        matches = [
            release for release in self.list_releases(per_page=per_page) if release.tag_name == tag
        ]
        if len(matches) != 1:
            raise ReleaseHostError(
                f"Expected exactly one release tagged {tag} but found {len(matches)}"
            )
        return matches[0]

    def rename_asset(self, asset_id: int, name: str) -> ReleaseAsset:
        url = f"{self._repo_api_url}/releases/assets/{asset_id}"
        payload = self._request_json("PATCH", url, body={"name": name})
        if not isinstance(payload, dict):
            raise ReleaseHostError(f"Unexpected asset payload from {url}")
        return ReleaseAsset.from_payload(payload)

    def upload_asset(
        self,
        release: Release,
        path: Path,
        name: str,
        content_type: str,
        timeout: float = UPLOAD_TIMEOUT,
    ) -> ReleaseAsset:
        if not release.upload_url:
            raise ReleaseHostError(f"Release {release.tag_name} has no upload URL")
        base_url = release.upload_url.split("{", 1)[0]
        url = f"{base_url}?name={quote(name)}"
        data = Path(path).read_bytes()
        _LOGGER.info("Uploading %s (%d bytes) to release %s", name, len(data), release.tag_name)
        payload = self._request_json(
            "POST",
            url,
            data=data,
            content_type=content_type,
            timeout=timeout,
        )
        if not isinstance(payload, dict):
            raise ReleaseHostError(f"Unexpected upload payload from {url}")
        return ReleaseAsset.from_payload(payload)

    @property
    def _repo_api_url(self) -> str:
        return f"{self._api_url}/repos/{self._user}/{self._repo}"

    def _request_json(
        self,
        method: str,
        url: str,
        *,
        body: dict | None = None,
        data: bytes | None = None,
        content_type: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": API_VERSION,
        }
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            content_type = "application/json"
        if content_type is not None:
            headers["Content-Type"] = content_type

        request = Request(url, data=data, headers=headers, method=method)
        _LOGGER.debug("%s %s", method, url)
        try:
            with urlopen(request, timeout=timeout or self._timeout) as response:  # nosec - GitHub API over HTTPS
                raw = response.read()
        except HTTPError as exc:
            raise ReleaseHostError(f"{method} {url} failed with HTTP {exc.code}") from exc
        except (OSError, URLError) as exc:
            raise ReleaseHostError(f"{method} {url} failed: {exc}") from exc

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ReleaseHostError(f"{method} {url} returned invalid JSON") from exc


def build_release_client(config: DeployConfig) -> GitHubReleaseClient | None:
    """Return a client for the configured repository, or ``None`` without credentials."""

    if not config.can_use_github:
        _LOGGER.debug("GitHub credentials not configured; release host disabled")
        return None
    return GitHubReleaseClient(config.github.user, config.github.repo, config.github.token)


__all__ = ["GitHubReleaseClient", "ReleaseClient", "build_release_client"]
