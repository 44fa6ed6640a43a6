"""Windows builds: a flat, single-executable staging layout."""

from __future__ import annotations

import logging

from services.build.builder import ProgramBuilder
from services.distribution.windows import WindowsVelopackBuildDistributor


_LOGGER = logging.getLogger(__name__)


class WindowsProgramBuilder(ProgramBuilder):
    @property
    def executable_name(self) -> str:
        return self.context.config.windows.main_exe

    def packaging_arguments(self) -> list[str]:
        """Extra ``vpk pack`` arguments: no portable zip, icon and signing when available."""

        config = self.context.config
        args = ["--noPortable"]

        icon = self.context.resolve(config.velopack.package_icon)
        if icon is not None and icon.is_file():
            args.append(f"--icon={icon}")
        elif icon is not None:
            _LOGGER.warning("Package icon '%s' not found; using the default icon", icon)

        certificate = self.context.resolve(config.code_sign.certificate)
        if certificate is not None and certificate.is_file():
            sign_params = (
                f'/td sha256 /fd sha256 /f "{certificate}" /tr {config.code_sign.timestamp_url}'
            )
            if config.code_sign.password:
                sign_params += f' /p "{config.code_sign.password}"'
            args.append(f"--signParams={sign_params}")
        elif certificate is not None:
            _LOGGER.warning("Code signing certificate '%s' not found; installer will be unsigned", certificate)

        return args

    def create_build_distributor(self) -> WindowsVelopackBuildDistributor:
        return WindowsVelopackBuildDistributor(
            self.context,
            application_name=self.executable_name,
            operating_system_name=self.target.os_name,
            runtime_identifier=self.runtime_identifier,
            channel=self.target.channel,
            extra_args=self.packaging_arguments(),
        )


__all__ = ["WindowsProgramBuilder"]
