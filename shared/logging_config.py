"""Central logging configuration for the deployment pipeline.

Every stage of a deployment run reports through Python's logging framework so
that the output of ``dotnet``, ``vpk`` and the macOS tooling interleaves with
pipeline progress in a single, timestamped stream.  Console lines carry the
age of the process in milliseconds, which makes slow external steps easy to
spot in CI logs.

Two environment variables allow additionally mirroring the output to a file:

``ONIONDEPLOY_LOG_FILE``
    Absolute path to the log file that should be created.

``ONIONDEPLOY_LOG_DIR``
    Directory where the default log file name will be created.  Ignored when
    ``ONIONDEPLOY_LOG_FILE`` is present.

Secrets registered through :func:`register_secret` (the GitHub token and the
code-signing password) are masked in every handler managed by this module,
because the packaging tool receives them on its command line and the command
runner logs failing command lines verbatim.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import time
from enum import Enum
from pathlib import Path

_LOG_FILE_ENV = "ONIONDEPLOY_LOG_FILE"
_LOG_DIR_ENV = "ONIONDEPLOY_LOG_DIR"
_DEFAULT_LOGNAME = "oniondeploy.log"
_CONFIGURED = False
_LOG_PATH: Path | None = None
_HANDLER_TAG = "_oniondeploy_logging_handler"
_CONSOLE_HANDLER: logging.Handler | None = None
_PROCESS_START = time.monotonic()

SECRET_PLACEHOLDER = "<redacted>"
CONSOLE_FORMAT = "> [%(process_age)6d %(levelname)s]: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_SECRETS: set[str] = set()
_SECRET_PATTERN: re.Pattern[str] | None = None


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the console output."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.VERBOSE
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def register_secret(value: str | None) -> None:
    """Mask ``value`` in all log output produced by managed handlers."""

    global _SECRET_PATTERN

    if not value or not value.strip():
        return
    _SECRETS.add(value)
    ordered = sorted(_SECRETS, key=len, reverse=True)
    _SECRET_PATTERN = re.compile("|".join(re.escape(secret) for secret in ordered))


def _sanitize_text(message: str) -> str:
    if not message or _SECRET_PATTERN is None:
        return message
    return _SECRET_PATTERN.sub(SECRET_PLACEHOLDER, message)


class _ProcessAgeFilter(logging.Filter):
    """Attach the milliseconds elapsed since start-up to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.process_age = int((time.monotonic() - _PROCESS_START) * 1000)
        return True


class _RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        return _sanitize_text(formatted)


def ensure_deploy_logging() -> Path | None:
    """Configure the root logger for a deployment run.

    The first invocation installs a console handler on ``stderr`` and, when
    one of the log file environment variables is set, a file handler at
    DEBUG level.  Subsequent calls are no-ops.

    Returns
    -------
    Path | None
        Location of the log file, or ``None`` when only console logging is
        active.
    """

    global _CONFIGURED, _LOG_PATH, _CONSOLE_HANDLER

    if _CONFIGURED:
        return _LOG_PATH

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    age_filter = _ProcessAgeFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
    console_handler.setFormatter(_RedactingFormatter(CONSOLE_FORMAT))
    console_handler.addFilter(age_filter)
    setattr(console_handler, _HANDLER_TAG, True)
    root.addHandler(console_handler)
    _CONSOLE_HANDLER = console_handler

    log_path = _resolve_log_path()
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            _RedactingFormatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        file_handler.addFilter(age_filter)
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)
        logging.getLogger(__name__).info("Writing deployment logs to %s", log_path)

    _CONFIGURED = True
    _LOG_PATH = log_path
    return log_path


def set_console_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity written to the console."""

    global _CURRENT_VERBOSITY

    if isinstance(verbosity, str):
        try:
            verbosity = LogVerbosity(verbosity.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc

    ensure_deploy_logging()
    _CURRENT_VERBOSITY = verbosity
    if _CONSOLE_HANDLER is not None:
        _CONSOLE_HANDLER.setLevel(_VERBOSITY_LEVELS[verbosity])


def get_console_verbosity() -> LogVerbosity:
    """Return the current console verbosity."""

    return _CURRENT_VERBOSITY


def _resolve_log_path() -> Path | None:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    env_dir = os.environ.get(_LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser() / _DEFAULT_LOGNAME

    return None


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_deploy_logging`."""

    global _CONFIGURED, _LOG_PATH, _CONSOLE_HANDLER, _CURRENT_VERBOSITY, _SECRET_PATTERN

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _CONFIGURED = False
    _LOG_PATH = None
    _CONSOLE_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY
    _SECRETS.clear()
    _SECRET_PATTERN = None


__all__ = [
    "LogVerbosity",
    "SECRET_PLACEHOLDER",
    "ensure_deploy_logging",
    "get_console_verbosity",
    "register_secret",
    "set_console_verbosity",
]
