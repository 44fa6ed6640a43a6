"""Base class for platform-specific program builders."""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from services.context import BuildContext
from services.distribution.velopack import BuildDistributor
from services.targets import BuildTarget


_LOGGER = logging.getLogger(__name__)


class ProgramBuilder(ABC):
    """Own the staging directory and compile the application into it.

    Constructing a builder wipes and recreates the staging directory so every
    run starts from an empty tree.  Pass ``clean_staging=False`` only to reuse
    the output of a previous build.
    """

    def __init__(
        self,
        version: str,
        target: BuildTarget,
        context: BuildContext,
        *,
        clean_staging: bool = True,
    ) -> None:
        self.version = version
        self.target = target
        self.context = context

        staging = context.staging_dir
        if clean_staging:
            if staging.exists():
                _LOGGER.debug("Removing previous staging directory %s", staging)
                shutil.rmtree(staging)
            staging.mkdir(parents=True)
        else:
            staging.mkdir(parents=True, exist_ok=True)

    @property
    def runtime_identifier(self) -> str:
        return self.target.runtime_identifier

    @property
    @abstractmethod
    def executable_name(self) -> str:
        """File name of the application's entry-point binary."""

    @property
    def executable_path(self) -> Path:
        """Location of the entry-point binary once :meth:`build` has run."""

        return self.context.staging_dir / self.executable_name

    @abstractmethod
    def create_build_distributor(self) -> BuildDistributor:
        """Return the distributor that packages and publishes this build."""

    def build(self) -> None:
        self.run_dotnet_publish()

    def run_dotnet_publish(
        self,
        extra_args: Sequence[str] = (),
        output_dir: Path | None = None,
    ) -> None:
        output = output_dir or self.context.staging_dir
        self.context.runner.run(
            "dotnet",
            [
                "publish",
                "-r",
                self.runtime_identifier,
                "-c",
                "Release",
                "-o",
                str(output),
                f"-p:Version={self.version}",
                "--self-contained",
                *extra_args,
                str(self.context.project_path),
            ],
        )


__all__ = ["ProgramBuilder"]
