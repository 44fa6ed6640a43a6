"""Validate launchd descriptors and copy them into an app bundle."""

from __future__ import annotations

import logging
import plistlib
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

_LOGGER = logging.getLogger(__name__)

BUNDLE_PROGRAM_KEY = "BundleProgram"


@dataclass(frozen=True)
class LaunchdCategory:
    """A kind of launchd job and where it lives inside ``Contents``."""

    name: str
    relative_dir: PurePosixPath


LAUNCH_DAEMONS = LaunchdCategory("LaunchDaemons", PurePosixPath("Contents/Library/LaunchDaemons"))
LAUNCH_AGENTS = LaunchdCategory("LaunchAgents", PurePosixPath("Contents/Library/LaunchAgents"))
LOGIN_ITEMS = LaunchdCategory("LoginItems", PurePosixPath("Contents/Library/LoginItems"))


def _descriptor_files(source: Path) -> list[Path]:
    if source.is_dir():
        return sorted(
            path for path in source.iterdir() if path.is_file() and not path.name.startswith(".")
        )
    if source.is_file():
        return [source]
    raise FileNotFoundError(f"launchd descriptor path not found: {source}")


def read_bundle_program(descriptor: Path) -> str:
    """Return the bundle-relative program path a launchd descriptor starts."""

    with descriptor.open("rb") as handle:
        contents = plistlib.load(handle)
    program = contents.get(BUNDLE_PROGRAM_KEY) if isinstance(contents, dict) else None
    if not isinstance(program, str) or not program:
        raise ValueError(f"{descriptor} does not define a {BUNDLE_PROGRAM_KEY}")
    return program


def validate_descriptor(descriptor: Path, bundle_root: Path) -> None:
    """Raise ``FileNotFoundError`` unless the descriptor's program is inside the bundle."""

    program = read_bundle_program(descriptor)
    root = bundle_root.resolve()
    target = (root / program).resolve()
    if not target.is_relative_to(root) or not target.is_file():
        raise FileNotFoundError(
            f"{BUNDLE_PROGRAM_KEY} specified in {descriptor.name} was not found in the app bundle: {program}"
        )


def process_launchd_plists(
    source: Path | None,
    bundle_root: Path,
    category: LaunchdCategory,
) -> list[Path]:
    """Copy the descriptor(s) at ``source`` into ``bundle_root`` for ``category``.

    ``source`` may be a single descriptor or a directory of descriptors.  All
    of them are validated before anything is written, so a bad descriptor
    leaves the bundle untouched.  Copies always carry the ``.plist`` suffix.
    """

    if source is None:
        return []

    descriptors = _descriptor_files(source)
    for descriptor in descriptors:
        validate_descriptor(descriptor, bundle_root)
    if not descriptors:
        return []

    target_dir = bundle_root / category.relative_dir
    target_dir.mkdir(parents=True, exist_ok=True)

    copied: list[Path] = []
    for descriptor in descriptors:
        destination = target_dir / descriptor.with_suffix(".plist").name
        _LOGGER.info("Copying plist %s to '%s'", destination.name, target_dir)
        shutil.copy2(descriptor, destination)
        copied.append(destination)
    return copied


__all__ = [
    "BUNDLE_PROGRAM_KEY",
    "LAUNCH_AGENTS",
    "LAUNCH_DAEMONS",
    "LOGIN_ITEMS",
    "LaunchdCategory",
    "process_launchd_plists",
    "read_bundle_program",
    "validate_descriptor",
]
