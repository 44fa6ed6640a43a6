"""Build, package and publish a desktop application for one target.

Usage::

    python -m app <project.csproj> <win-x64|win-arm64|osx-x64|osx-arm64> [version]
"""

from __future__ import annotations

import argparse
import datetime
import logging
import webbrowser
from pathlib import Path
from typing import Sequence

from app.config import DeployConfig, load_deploy_config
from services.build import ProgramBuilder, create_program_builder
from services.commands import CommandRunner
from services.context import BuildContext
from services.distribution import BuildDistributor
from services.errors import DeployError
from services.release import ReleaseClient, build_release_client, derive_next_version
from shared.logging_config import ensure_deploy_logging, register_secret


_LOGGER = logging.getLogger(__name__)

PROJECT_EXTENSION = ".csproj"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="oniondeploy", description=__doc__.splitlines()[0])
    parser.add_argument("project", type=Path, help="Path to the .csproj file to publish.")
    parser.add_argument("target", help="Runtime identifier to build (e.g. 'win-x64').")
    parser.add_argument(
        "version",
        nargs="?",
        default=None,
        help="Version to publish. Derived from the latest release when omitted.",
    )
    return parser.parse_args(argv)


def validate_project(project: Path) -> Path:
    if project.suffix != PROJECT_EXTENSION or not project.is_file():
        raise FileNotFoundError(f"Invalid project file: {project}")
    return project.resolve()


def find_solution_root(start: Path, marker: str) -> Path:
    """Walk up from ``start`` to the first directory containing ``marker``."""

    if not marker:
        raise DeployError("SolutionName is not configured")
    for candidate in (start, *start.parents):
        if (candidate / marker).is_file():
            return candidate
    raise FileNotFoundError(f"Could not find {marker} above {start}")


def run_pipeline(
    builder: ProgramBuilder,
    distributor: BuildDistributor,
    version: str,
    *,
    skip_build: bool = False,
) -> None:
    """Build, restore previous release state, then package and publish."""

    if skip_build:
        executable = builder.executable_path
        if not executable.is_file():
            raise FileNotFoundError(f"Build skipped but no executable found at {executable}")
        _LOGGER.info("Skipping build, reusing %s", executable)
    else:
        _LOGGER.info("Performing build...")
        builder.build()

    _LOGGER.info("Restoring build...")
    distributor.restore_build()

    _LOGGER.info("Pack n' Publishing build...")
    distributor.publish_build(version)


def deploy(
    project: Path,
    target: str,
    version: str | None,
    config: DeployConfig,
    *,
    release_client: ReleaseClient | None = None,
    runner: CommandRunner | None = None,
    working_dir: Path | None = None,
    host_platform: str | None = None,
    today: datetime.date | None = None,
) -> str:
    """Run the whole pipeline for ``project`` and return the published version."""

    project_path = validate_project(project)
    solution_path = find_solution_root(project_path.parent, config.solution_name)
    _LOGGER.debug("Using solution root %s", solution_path)

    if version is None:
        version = derive_next_version(release_client, today)
    _LOGGER.info("Building version %s", version)

    context = BuildContext.create(
        config,
        project_path,
        solution_path,
        working_dir=working_dir,
        release_client=release_client,
        runner=runner or CommandRunner(solution_path),
    )
    builder = create_program_builder(
        target,
        version,
        context,
        clean_staging=not config.skip_build,
        host_platform=host_platform,
    )
    distributor = builder.create_build_distributor()
    run_pipeline(builder, distributor, version, skip_build=config.skip_build)
    return version


def main(argv: Sequence[str] | None = None) -> int:
    ensure_deploy_logging()
    args = parse_args(argv)

    config = load_deploy_config()
    register_secret(config.github.token)
    register_secret(config.code_sign.password)

    try:
        release_client = build_release_client(config)
        deploy(args.project, args.target, args.version, config, release_client=release_client)
    except (DeployError, OSError, ValueError) as exc:
        _LOGGER.error("%s", exc)
        return 1

    if config.can_use_github:
        webbrowser.open(f"{config.github_repo_url}/releases")

    _LOGGER.info("Build complete")
    return 0


def run() -> None:
    raise SystemExit(main())


__all__ = [
    "deploy",
    "find_solution_root",
    "main",
    "parse_args",
    "run",
    "run_pipeline",
    "validate_project",
]
