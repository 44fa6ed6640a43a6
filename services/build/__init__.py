"""Public API for the program builders."""

from __future__ import annotations

from services.build.builder import ProgramBuilder
from services.build.dispatch import BUILDERS, create_program_builder
from services.build.macos import MacOSProgramBuilder
from services.build.windows import WindowsProgramBuilder
from services.targets import SUPPORTED_TARGETS, Architecture, BuildTarget, Platform

__all__ = [
    "Architecture",
    "BUILDERS",
    "BuildTarget",
    "MacOSProgramBuilder",
    "Platform",
    "ProgramBuilder",
    "SUPPORTED_TARGETS",
    "WindowsProgramBuilder",
    "create_program_builder",
]
