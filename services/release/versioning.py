"""Derive date-based release versions from previously published tags."""

from __future__ import annotations

import datetime
import logging
from typing import Protocol

from packaging.version import InvalidVersion, Version

from services.release.models import Release


__all__ = [
    "LatestReleaseSource",
    "derive_next_version",
    "next_version",
    "parse_sequence",
    "version_prefix",
]

_LOGGER = logging.getLogger(__name__)


class LatestReleaseSource(Protocol):
    def latest_release(self) -> Release | None:
        """Return the most recently created release."""


def version_prefix(today: datetime.date) -> str:
    """Return the ``YYYY.Mdd.`` prefix shared by every release cut on ``today``."""

    return f"{today.year}.{today.month}{today.day:02d}."


def parse_sequence(tag: str) -> int:
    """Return the same-day sequence counter encoded in ``tag``.

    >>> parse_sequence("2024.1019.3")
    3
    """

    try:
        return Version(tag).micro
    except InvalidVersion:
        return int(tag.split(".")[2])


def next_version(latest: Release | None, today: datetime.date) -> str:
    """Return the version following ``latest`` for a build made on ``today``.

    Only a published (non-draft) release from the same day advances the
    counter; any other case starts the day at ``0``.
    """

    prefix = version_prefix(today)
    if latest is not None and not latest.draft and latest.tag_name.startswith(prefix):
        return f"{prefix}{parse_sequence(latest.tag_name) + 1}"
    return f"{prefix}0"


def derive_next_version(
    source: LatestReleaseSource | None,
    today: datetime.date | None = None,
) -> str:
    """Query ``source`` for the newest release and derive the next version.

    Two runs started on the same day before either publishes will derive the
    same version; callers must serialise deployments.
    """

    today = today or datetime.date.today()
    latest = source.latest_release() if source is not None else None
    if latest is not None:
        _LOGGER.debug("Latest release on host is %s (draft=%s)", latest.tag_name, latest.draft)
    return next_version(latest, today)
