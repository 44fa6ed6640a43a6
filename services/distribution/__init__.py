"""Public API for packaging and publishing builds."""

from __future__ import annotations

from services.distribution.asset_manifest import find_single, patch_asset_manifest
from services.distribution.macos import MacOSVelopackBuildDistributor
from services.distribution.velopack import BuildDistributor, VelopackBuildDistributor
from services.distribution.windows import (
    WindowsVelopackBuildDistributor,
    installer_asset_name,
    installer_suffix,
)

__all__ = [
    "BuildDistributor",
    "MacOSVelopackBuildDistributor",
    "VelopackBuildDistributor",
    "WindowsVelopackBuildDistributor",
    "find_single",
    "installer_asset_name",
    "installer_suffix",
    "patch_asset_manifest",
]
