"""Windows-specific packaging and release asset naming."""

from __future__ import annotations

import logging

from services.distribution.velopack import VelopackBuildDistributor
from services.errors import ReleaseHostError
from services.release.constants import RECENT_RELEASES_PAGE_SIZE


_LOGGER = logging.getLogger(__name__)

PRIMARY_CHANNEL = "win"
GENERIC_MANIFEST_NAME = "RELEASES"

_INSTALLER_SUFFIXES = {
    PRIMARY_CHANNEL: "x64",
    "win-arm64": "arm64",
}


def installer_suffix(channel: str) -> str:
    """Return the architecture suffix used in the public installer name."""

    try:
        return _INSTALLER_SUFFIXES[channel]
    except KeyError:
        raise ValueError(f"Unsupported Windows channel: {channel!r}") from None


def installer_asset_name(package_id: str, channel: str) -> str:
    return f"{package_id}-{channel}-Setup.exe"


class WindowsVelopackBuildDistributor(VelopackBuildDistributor):
    """Give published installers stable, architecture-based names."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.installer_suffix = installer_suffix(self.channel)

    @property
    def is_primary_channel(self) -> bool:
        return self.channel == PRIMARY_CHANNEL

    def post_package_action(self) -> None:
        # Only the primary channel's flat manifest is used by legacy clients.
        if self.is_primary_channel or not self.releases_dir.exists():
            return
        for manifest in sorted(self.releases_dir.glob(f"{GENERIC_MANIFEST_NAME}*")):
            if manifest.is_file():
                _LOGGER.info("Removing %s from %s channel output", manifest.name, self.channel)
                manifest.unlink()

    def post_publish_action(self, version: str) -> None:
        client = self.context.release_client
        if client is None:
            return

        config = self.context.config
        release = client.find_release_by_tag(version, per_page=RECENT_RELEASES_PAGE_SIZE)

        installer_name = installer_asset_name(config.velopack.package_id, self.channel)
        installer = release.find_asset(installer_name)
        if installer is None:
            raise ReleaseHostError(f"Release {version} has no asset named {installer_name}")

        _LOGGER.info("Renaming installer file...")
        client.rename_asset(installer.id, f"install-{self.installer_suffix}.exe")

        if self.is_primary_channel:
            manifest = release.find_asset(GENERIC_MANIFEST_NAME)
            if manifest is None:
                raise ReleaseHostError(
                    f"Release {version} has no asset named {GENERIC_MANIFEST_NAME}"
                )
            _LOGGER.info("Renaming %s file...", GENERIC_MANIFEST_NAME)
            client.rename_asset(manifest.id, config.windows.upgrade_manifest_name)


__all__ = [
    "GENERIC_MANIFEST_NAME",
    "PRIMARY_CHANNEL",
    "WindowsVelopackBuildDistributor",
    "installer_asset_name",
    "installer_suffix",
]
