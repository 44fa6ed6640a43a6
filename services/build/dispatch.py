"""Select the program builder for a target identifier."""

from __future__ import annotations

import sys

from services.build.builder import ProgramBuilder
from services.build.macos import MacOSProgramBuilder
from services.build.windows import WindowsProgramBuilder
from services.context import BuildContext
from services.errors import UnsupportedTargetError
from services.targets import BuildTarget, Platform

BUILDERS: dict[Platform, type[ProgramBuilder]] = {
    Platform.WINDOWS: WindowsProgramBuilder,
    Platform.MACOS: MacOSProgramBuilder,
}


def create_program_builder(
    identifier: str | None,
    version: str,
    context: BuildContext,
    *,
    clean_staging: bool = True,
    host_platform: str | None = None,
) -> ProgramBuilder:
    """Return a builder for ``identifier`` (``win-x64``, ``osx-arm64``, ...).

    macOS bundles need Apple tooling, so ``osx-*`` targets are rejected on
    other hosts.
    """

    target = BuildTarget.parse(identifier)
    host = host_platform or sys.platform
    if target.platform is Platform.MACOS and host != "darwin":
        raise UnsupportedTargetError(identifier)
    return BUILDERS[target.platform](version, target, context, clean_staging=clean_staging)


__all__ = ["BUILDERS", "create_program_builder"]
