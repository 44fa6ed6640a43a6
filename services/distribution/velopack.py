"""Package builds with Velopack and publish them to the release host."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence

from services.context import BuildContext


_LOGGER = logging.getLogger(__name__)


class BuildDistributor(Protocol):
    """Restore prior release state, then package and publish a build."""

    def restore_build(self) -> None:
        """Fetch previously published feed state into the releases directory."""

    def publish_build(self, version: str) -> None:
        """Package the staged build as ``version`` and publish it."""


class VelopackBuildDistributor:
    """Drive ``vpk`` through its download, pack and upload modes.

    Subclasses customise the run through :meth:`post_package_action`, which
    runs after packaging and before the upload, and
    :meth:`post_publish_action`, which runs once the upload has finished.
    """

    def __init__(
        self,
        context: BuildContext,
        *,
        application_name: str,
        operating_system_name: str,
        runtime_identifier: str,
        channel: str,
        extra_args: Sequence[str] = (),
        staging_path: Path | None = None,
    ) -> None:
        self.context = context
        self.application_name = application_name
        self.operating_system_name = operating_system_name
        self.runtime_identifier = runtime_identifier
        self.channel = channel
        self.extra_args = tuple(extra_args)
        self.staging_path = staging_path or context.staging_dir

    @property
    def pack_title(self) -> str:
        return self.context.config.velopack.title

    @property
    def releases_dir(self) -> Path:
        return self.context.releases_dir

    def restore_build(self) -> None:
        config = self.context.config
        if not config.can_use_github:
            return

        self.releases_dir.mkdir(parents=True, exist_ok=True)
        result = self._run_vpk(
            [
                "download",
                "github",
                "--pre",
                f"--repoUrl={config.github_repo_url}",
                f"--token={config.github.token}",
                f"--channel={self.channel}",
                f"--outputDir={self.releases_dir}",
            ],
            throw_on_error=False,
        )
        if not result.success:
            _LOGGER.warning(
                "Could not restore previous %s releases; packaging without delta history",
                self.channel,
            )

    def publish_build(self, version: str) -> None:
        config = self.context.config
        self.releases_dir.mkdir(parents=True, exist_ok=True)
        self._run_vpk(
            [
                f"[{self.operating_system_name}]",
                "pack",
                f"--packTitle={self.pack_title}",
                f"--packAuthors={config.velopack.authors}",
                f"--packId={config.velopack.package_id}",
                f"--packVersion={version}",
                f"--outputDir={self.releases_dir}",
                f"--mainExe={self.application_name}",
                f"--packDir={self.staging_path}",
                f"--channel={self.channel}",
                f"--runtime={self.runtime_identifier}",
                "--verbose",
                *self.extra_args,
            ]
        )

        self.post_package_action()

        if config.can_use_github:
            _LOGGER.info("Uploading release %s-%s to GitHub", version, self.channel)
            self._run_vpk(
                [
                    "upload",
                    "github",
                    f"--repoUrl={config.github_repo_url}",
                    f"--token={config.github.token}",
                    f"--outputDir={self.releases_dir}",
                    f"--tag={version}",
                    f"--releaseName={version}",
                    "--merge",
                    f"--channel={self.channel}",
                ]
            )

        self.post_publish_action(version)

    def post_package_action(self) -> None:
        """Hook run after ``vpk pack`` and before the upload."""

    def post_publish_action(self, version: str) -> None:
        """Hook run after the upload has completed."""

    def _run_vpk(self, args: Sequence[str], *, throw_on_error: bool = True):
        return self.context.runner.run(
            "dotnet",
            ["tool", "run", "vpk", *args],
            throw_on_error=throw_on_error,
        )


__all__ = ["BuildDistributor", "VelopackBuildDistributor"]
