"""Rewrite entries of the ``assets.<channel>.json`` file produced by ``vpk pack``."""

from __future__ import annotations

import json
import logging
from pathlib import Path

ASSET_MANIFEST_PATTERN = "assets.{channel}.json"
FILE_NAME_FIELD = "RelativeFileName"

_LOGGER = logging.getLogger(__name__)


def find_single(directory: Path, pattern: str) -> Path | None:
    """Return the only top-level file in ``directory`` matching ``pattern``.

    Several matches are treated like none, since picking one of them would
    patch or delete an unrelated channel's artifact.
    """

    if not directory.is_dir():
        return None
    matches = sorted(path for path in directory.glob(pattern) if path.is_file())
    if len(matches) > 1:
        _LOGGER.warning(
            "Found %d files matching %s in %s; expected one",
            len(matches),
            pattern,
            directory,
        )
        return None
    return matches[0] if matches else None


def patch_asset_manifest(manifest_path: Path, old_name: str, new_name: str) -> bool:
    """Point the record for ``old_name`` at ``new_name``.

    Every other record and field is left as it was.  Returns ``False`` when no
    record references ``old_name``, in which case the file is not rewritten.
    """

    with manifest_path.open("r+", encoding="utf-8") as handle:
        records = json.load(handle)
        if not isinstance(records, list):
            raise ValueError(f"{manifest_path} does not contain a JSON array")

        for record in records:
            if isinstance(record, dict) and record.get(FILE_NAME_FIELD) == old_name:
                record[FILE_NAME_FIELD] = new_name
                break
        else:
            _LOGGER.warning("No asset in %s references %s", manifest_path.name, old_name)
            return False

        # The new content may be shorter than the old.
        handle.seek(0)
        handle.truncate()
        json.dump(records, handle, separators=(",", ":"))

    _LOGGER.info("Updated %s: %s -> %s", manifest_path.name, old_name, new_name)
    return True


__all__ = [
    "ASSET_MANIFEST_PATTERN",
    "FILE_NAME_FIELD",
    "find_single",
    "patch_asset_manifest",
]
