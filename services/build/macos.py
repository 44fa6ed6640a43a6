"""macOS builds: assemble a complete ``.app`` bundle in the staging directory."""

from __future__ import annotations

import datetime
import logging
import shutil
from pathlib import Path

from services.build.builder import ProgramBuilder
from services.build.launchd import (
    LAUNCH_AGENTS,
    LAUNCH_DAEMONS,
    LOGIN_ITEMS,
    process_launchd_plists,
)
from services.distribution.macos import MacOSVelopackBuildDistributor


_LOGGER = logging.getLogger(__name__)

PLIST_BUDDY = "/usr/libexec/PlistBuddy"
TEMPORARY_SUFFIX = ".tmp"
AD_HOC_IDENTITY = "-"


class MacOSProgramBuilder(ProgramBuilder):
    """Publish into ``<bundle>.app.tmp`` and rename it once fully assembled."""

    @property
    def executable_name(self) -> str:
        return self.context.config.macos.main_exe

    @property
    def bundle_path(self) -> Path:
        return self.context.staging_dir / self.context.config.app_bundle_name

    @property
    def temporary_bundle_path(self) -> Path:
        return self.bundle_path.with_name(self.bundle_path.name + TEMPORARY_SUFFIX)

    @property
    def executable_path(self) -> Path:
        return self.bundle_path / "Contents" / "MacOS" / self.executable_name

    def build(self) -> None:
        bundle_root = self.temporary_bundle_path
        _LOGGER.info("Building into app bundle at '%s'", bundle_root)
        self.run_dotnet_publish(output_dir=bundle_root / "Contents" / "MacOS")
        self.assemble_bundle(bundle_root)
        bundle_root.rename(self.bundle_path)

    def assemble_bundle(self, bundle_root: Path) -> None:
        """Add launchd jobs, icons and ``Info.plist`` to a freshly published bundle."""

        macos = self.context.config.macos
        for source, category in (
            (macos.launch_daemons, LAUNCH_DAEMONS),
            (macos.launch_agents, LAUNCH_AGENTS),
            (macos.login_items, LOGIN_ITEMS),
        ):
            process_launchd_plists(self.context.resolve(source), bundle_root, category)

        self._copy_icons(bundle_root / "Contents" / "Resources")

        info_plist = self.context.resolve(macos.info_plist)
        if info_plist is None or not info_plist.is_file():
            raise FileNotFoundError(f"Info.plist file not provided or not found: {info_plist}")

        bundle_info_plist = bundle_root / "Contents" / "Info.plist"
        shutil.copyfile(info_plist, bundle_info_plist)
        self._stamp_info_plist(bundle_info_plist)

    def _copy_icons(self, resources_dir: Path) -> None:
        icons_dir = self.context.resolve(self.context.config.macos.icons_directory)
        if icons_dir is None or not icons_dir.is_dir():
            _LOGGER.warning(
                "Icons directory '%s' does not exist or is not specified, skipping icon copy.",
                icons_dir,
            )
            return

        _LOGGER.info("Copying icons from '%s' to '%s'", icons_dir, resources_dir)
        shutil.copytree(icons_dir, resources_dir, dirs_exist_ok=True)

    def _stamp_info_plist(self, plist_path: Path) -> None:
        year = datetime.datetime.now(datetime.timezone.utc).year
        authors = self.context.config.velopack.authors
        self.context.runner.run(
            PLIST_BUDDY,
            [
                "-c",
                f"Set :NSHumanReadableCopyright Copyright © {year} {authors}",
                "-c",
                f"Set :CFBundleShortVersionString {self.version}",
                str(plist_path),
            ],
        )

    def packaging_arguments(self) -> list[str]:
        macos = self.context.config.macos
        identity = macos.code_signing_identity or AD_HOC_IDENTITY
        args = ["--noInst", f"--signAppIdentity={identity}"]

        entitlements = self.context.resolve(macos.entitlements_plist)
        if entitlements is not None and entitlements.is_file():
            args.append(f"--signEntitlements={entitlements}")
        elif entitlements is not None:
            _LOGGER.warning("Entitlements file '%s' not found; signing without entitlements", entitlements)

        return args

    def create_build_distributor(self) -> MacOSVelopackBuildDistributor:
        return MacOSVelopackBuildDistributor(
            self.context,
            application_name=self.executable_name,
            operating_system_name=self.target.os_name,
            runtime_identifier=self.runtime_identifier,
            channel=self.target.channel,
            extra_args=self.packaging_arguments(),
            staging_path=self.bundle_path,
            architecture=self.target.architecture,
        )


__all__ = ["MacOSProgramBuilder"]
