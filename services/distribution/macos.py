"""macOS packaging: swap the portable archive for a signed disk image."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from services.distribution.asset_manifest import (
    ASSET_MANIFEST_PATTERN,
    find_single,
    patch_asset_manifest,
)
from services.distribution.velopack import VelopackBuildDistributor
from services.release.constants import DMG_CONTENT_TYPE, UPLOAD_TIMEOUT
from services.targets import Architecture


_LOGGER = logging.getLogger(__name__)

PORTABLE_ARCHIVE_PATTERN = "*-{channel}-Portable.zip"
LEGACY_MANIFEST_PATTERN = "RELEASES-{channel}"


class MacOSVelopackBuildDistributor(VelopackBuildDistributor):
    """Replace the portable zip with an installer disk image when enabled."""

    def __init__(self, *args, architecture: Architecture, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.architecture = architecture
        self.dmg_created = False

    @property
    def dmg_path(self) -> Path:
        return self.releases_dir / f"{self.pack_title} ({self.architecture.value}).dmg"

    @property
    def dmg_asset_name(self) -> str:
        return f"{self.pack_title}-{self.architecture.value}.dmg"

    def post_package_action(self) -> None:
        macos = self.context.config.macos
        if not macos.create_install_dmg:
            # Test builds skip the disk image and therefore notarisation.
            return

        if self.staging_path.exists():
            shutil.rmtree(self.staging_path)

        portable = self._find_channel_file(PORTABLE_ARCHIVE_PATTERN)
        if portable is None:
            _LOGGER.warning("Portable .zip file not found. Skipping DMG creation.")
            return

        # zipfile drops the extended attributes that carry code signatures.
        staging_dir = self.context.staging_dir
        self.context.runner.run("ditto", ["-xk", str(portable), str(staging_dir)])
        self._create_dmg(staging_dir / f"{self.pack_title}.app")
        self.dmg_created = True

        legacy_manifest = self._find_channel_file(LEGACY_MANIFEST_PATTERN)
        if legacy_manifest is not None:
            _LOGGER.info("Removing legacy releases file: %s", legacy_manifest.name)
            legacy_manifest.unlink()

        manifest = self._find_channel_file(ASSET_MANIFEST_PATTERN)
        if manifest is None:
            _LOGGER.warning(
                "Portable .zip file or assets.json file not found. Skipping removal and update."
            )
            return

        _LOGGER.info("Removing portable .zip file: %s", portable)
        portable.unlink()
        patch_asset_manifest(manifest, portable.name, self.dmg_path.name)

    def post_publish_action(self, version: str) -> None:
        client = self.context.release_client
        # A disk image left in releases by an earlier run is never uploaded.
        if client is None or not self.dmg_created or not self.dmg_path.exists():
            return

        release = client.find_release_by_tag(version)
        _LOGGER.info("Uploading %s to release %s", self.dmg_asset_name, version)
        client.upload_asset(
            release,
            self.dmg_path,
            self.dmg_asset_name,
            DMG_CONTENT_TYPE,
            timeout=UPLOAD_TIMEOUT,
        )

    def dmg_arguments(self, bundle_path: Path) -> list[str]:
        macos = self.context.config.macos
        bundle_name = bundle_path.name
        args = [
            "--volname",
            f"Install {self.pack_title}",
            "--filesystem",
            "APFS",
            "--window-pos",
            "200",
            "120",
            "--window-size",
            "800",
            "400",
            "--app-drop-link",
            "600",
            "185",
            "--no-internet-enable",
            "--icon",
            bundle_name,
            "200",
            "200",
            "--icon-size",
            "100",
            "--hide-extension",
            bundle_name,
        ]

        volume_icon = self._find_volume_icon()
        if volume_icon is not None:
            args += ["--volicon", str(volume_icon)]

        identity = macos.code_signing_identity
        if identity:
            args += ["--codesign", identity]
            if macos.notary_keychain_profile and not self.context.config.debug:
                args += ["--notarize", macos.notary_keychain_profile]

        args += [str(self.dmg_path), str(bundle_path)]
        return args

    def _create_dmg(self, bundle_path: Path) -> None:
        if self.dmg_path.exists():
            self.dmg_path.unlink()
        self.context.runner.run("create-dmg", self.dmg_arguments(bundle_path))

    def _find_channel_file(self, pattern: str) -> Path | None:
        return find_single(self.releases_dir, pattern.format(channel=self.channel))

    def _find_volume_icon(self) -> Path | None:
        icons_dir = self.context.resolve(self.context.config.macos.icons_directory)
        if icons_dir is None or not icons_dir.is_dir():
            return None
        icons = sorted(icons_dir.glob("*.icns"))
        return icons[0] if icons else None


__all__ = [
    "LEGACY_MANIFEST_PATTERN",
    "MacOSVelopackBuildDistributor",
    "PORTABLE_ARCHIVE_PATTERN",
]
