"""Run external tools while streaming their output into the log."""

from __future__ import annotations

import logging
import shlex
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Sequence

from services.errors import CommandError


_LOGGER = logging.getLogger(__name__)

# Exit status reported by shells when the executable cannot be found.
MISSING_EXECUTABLE_EXIT_CODE = 127


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished external process."""

    command: str
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def format_command(command: str, args: Sequence[str]) -> str:
    return " ".join(shlex.quote(part) for part in (command, *args))


def _drain(stream: IO[str], level: int) -> None:
    with stream:
        for line in stream:
            text = line.rstrip("\r\n")
            if text:
                _LOGGER.log(level, text)


def run_command(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: Path | None = None,
    throw_on_error: bool = True,
) -> CommandResult:
    """Run ``command`` to completion and report its exit status.

    Standard output is logged at DEBUG and standard error at ERROR while the
    process runs.  A non-zero exit raises :class:`CommandError` unless
    ``throw_on_error`` is false, in which case the failed result is returned.
    """

    command_line = format_command(command, args)
    _LOGGER.debug("Running %s", command_line)

    try:
        process = subprocess.Popen(
            [command, *args],
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        _LOGGER.error("Command %s could not be started: %s", command_line, exc)
        if throw_on_error:
            raise CommandError(command_line, MISSING_EXECUTABLE_EXIT_CODE) from exc
        return CommandResult(command_line, MISSING_EXECUTABLE_EXIT_CODE)

    readers = [
        threading.Thread(target=_drain, args=(process.stdout, logging.DEBUG), daemon=True),
        threading.Thread(target=_drain, args=(process.stderr, logging.ERROR), daemon=True),
    ]
    for reader in readers:
        reader.start()

    exit_code = process.wait()
    for reader in readers:
        reader.join()

    result = CommandResult(command_line, exit_code)
    if not result.success:
        _LOGGER.error("Command %s failed with exit code %s", command_line, exit_code)
        if throw_on_error:
            raise CommandError(command_line, exit_code)
    return result


class CommandRunner:
    """Run commands relative to the solution directory by default."""

    def __init__(self, solution_path: Path | None = None) -> None:
        self._solution_path = solution_path

    @property
    def solution_path(self) -> Path | None:
        return self._solution_path

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        use_solution_path: bool = True,
        throw_on_error: bool = True,
    ) -> CommandResult:
        cwd = self._solution_path if use_solution_path else None
        return run_command(command, args, cwd=cwd, throw_on_error=throw_on_error)


__all__ = [
    "CommandResult",
    "CommandRunner",
    "MISSING_EXECUTABLE_EXIT_CODE",
    "format_command",
    "run_command",
]
