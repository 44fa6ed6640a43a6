"""Data models describing releases on the release host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class ReleaseAsset:
    """A binary file attached to a release."""

    id: int
    name: str
    content_type: str = ""
    size: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ReleaseAsset":
        return cls(
            id=int(payload.get("id") or 0),
            name=str(payload.get("name") or ""),
            content_type=str(payload.get("content_type") or ""),
            size=int(payload.get("size") or 0),
        )


@dataclass(frozen=True)
class Release:
    """A tagged release and the assets uploaded to it."""

    id: int
    tag_name: str
    name: str = ""
    draft: bool = False
    prerelease: bool = False
    html_url: str = ""
    upload_url: str = ""
    assets: Tuple[ReleaseAsset, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Release":
        assets = payload.get("assets") or []
        return cls(
            id=int(payload.get("id") or 0),
            tag_name=str(payload.get("tag_name") or ""),
            name=str(payload.get("name") or ""),
            draft=bool(payload.get("draft")),
            prerelease=bool(payload.get("prerelease")),
            html_url=str(payload.get("html_url") or ""),
            upload_url=str(payload.get("upload_url") or ""),
            assets=tuple(
                ReleaseAsset.from_payload(asset) for asset in assets if isinstance(asset, Mapping)
            ),
        )

    def find_asset(self, name: str) -> ReleaseAsset | None:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None


__all__ = ["Release", "ReleaseAsset"]
