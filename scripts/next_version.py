"""Print the next date-based release version for the configured repository."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def ensure_project_root_on_sys_path() -> Path:
    """Ensure the project root is importable when the script runs standalone."""

    project_root = Path(__file__).resolve().parent.parent
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        sys.path.insert(0, project_root_str)
    return project_root


ensure_project_root_on_sys_path()

from app.config import load_deploy_config
from services.release import build_release_client, derive_next_version


def write_version(version: str, output: Path) -> Path:
    """Write ``version`` to ``output``, creating parent directories."""

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(f"{version}\n", encoding="utf-8")
    return output


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the deployment configuration file.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Also write the version to this file.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_deploy_config(args.config)
    version = derive_next_version(build_release_client(config))
    if args.output is not None:
        write_version(version, args.output)
    print(version)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
