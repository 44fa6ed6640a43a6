"""Exception types raised by the deployment pipeline."""

from __future__ import annotations


class DeployError(RuntimeError):
    """Base class for failures that abort a deployment run."""


class CommandError(DeployError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, command: str, exit_code: int) -> None:
        super().__init__(f"Command {command} failed with exit code {exit_code}")
        self.command = command
        self.exit_code = exit_code


class UnsupportedTargetError(DeployError, ValueError):
    """Raised when a target identifier has no matching builder."""

    def __init__(self, identifier: str | None) -> None:
        super().__init__(f"Unsupported platform {identifier}")
        self.identifier = identifier


class ReleaseHostError(DeployError):
    """Raised when the release host rejects or cannot serve a request."""


__all__ = ["CommandError", "DeployError", "ReleaseHostError", "UnsupportedTargetError"]
