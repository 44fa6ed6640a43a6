"""Shared inputs handed to builders and distributors for one deployment run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from app.config import DeployConfig
from services.commands import CommandRunner
from services.release.github import ReleaseClient

STAGING_DIRNAME = "staging"
RELEASES_DIRNAME = "releases"


@dataclass(frozen=True)
class BuildContext:
    """Everything a pipeline stage needs beyond its own parameters."""

    config: DeployConfig
    runner: CommandRunner
    project_path: Path
    solution_path: Path
    staging_dir: Path
    releases_dir: Path
    release_client: ReleaseClient | None = None

    @classmethod
    def create(
        cls,
        config: DeployConfig,
        project_path: Path,
        solution_path: Path,
        *,
        working_dir: Path | None = None,
        release_client: ReleaseClient | None = None,
        runner: CommandRunner | None = None,
    ) -> "BuildContext":
        base = working_dir or Path.cwd()
        return cls(
            config=config,
            runner=runner or CommandRunner(solution_path),
            project_path=project_path,
            solution_path=solution_path,
            staging_dir=base / STAGING_DIRNAME,
            releases_dir=base / RELEASES_DIRNAME,
            release_client=release_client,
        )

    def resolve(self, value: str) -> Path | None:
        """Resolve a configured path against the solution root, ``None`` when unset."""

        if not value:
            return None
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.solution_path / path
        return path


__all__ = ["BuildContext", "RELEASES_DIRNAME", "STAGING_DIRNAME"]
