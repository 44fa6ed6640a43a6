"""Supported build targets and their naming conventions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from services.errors import UnsupportedTargetError


class Platform(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"


class Architecture(str, Enum):
    X64 = "x64"
    ARM64 = "arm64"


# Operating system names understood by ``dotnet`` and ``vpk``.
_OS_NAMES = {Platform.WINDOWS: "win", Platform.MACOS: "osx"}

# Update feed names.  The Windows x64 feed predates multi-arch support and
# keeps the bare ``win`` channel so existing installs continue to upgrade.
_CHANNELS = {
    (Platform.WINDOWS, Architecture.X64): "win",
    (Platform.WINDOWS, Architecture.ARM64): "win-arm64",
    (Platform.MACOS, Architecture.X64): "mac-x64",
    (Platform.MACOS, Architecture.ARM64): "mac-arm64",
}


@dataclass(frozen=True)
class BuildTarget:
    """An operating system and CPU architecture pair selected for a run."""

    platform: Platform
    architecture: Architecture

    @property
    def os_name(self) -> str:
        return _OS_NAMES[self.platform]

    @property
    def runtime_identifier(self) -> str:
        return f"{self.os_name}-{self.architecture.value}"

    @property
    def channel(self) -> str:
        return _CHANNELS[(self.platform, self.architecture)]

    @classmethod
    def parse(cls, identifier: str | None) -> "BuildTarget":
        """Return the target for a runtime identifier such as ``win-x64``."""

        for target in SUPPORTED_TARGETS:
            if target.runtime_identifier == identifier:
                return target
        raise UnsupportedTargetError(identifier)


SUPPORTED_TARGETS = tuple(
    BuildTarget(platform, architecture)
    for platform in Platform
    for architecture in Architecture
)


__all__ = ["Architecture", "BuildTarget", "Platform", "SUPPORTED_TARGETS"]
