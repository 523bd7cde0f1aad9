from __future__ import annotations
from typing import Sequence

from dataclasses import dataclass

__all__ = (
    "RezError",
    "ResolutionError",
    "DefinitionNotFound",
    "ToolchainError",
    "QueryLaunchFailure",
    "QueryExecutionFailure",
    "EnvironmentApplyFailure",
    "CommandFailed",
    "PathNotExists",
)


class RezError(Exception): ...


class ResolutionError(RezError): ...


@dataclass
class DefinitionNotFound(ResolutionError):
    candidates: Sequence[str]

    def __post_init__(self):
        super().__init__(
            f"Failed to locate a task definition file. Tried: {list(self.candidates)!r}"
        )


class ToolchainError(ResolutionError): ...


@dataclass
class QueryLaunchFailure(ToolchainError):
    command: str
    errno: int

    def __post_init__(self):
        super().__init__(
            f"Failed to launch msvc query command: {self.command!r} errno={self.errno}"
        )


@dataclass
class QueryExecutionFailure(ToolchainError):
    command: str
    status: int

    def __post_init__(self):
        super().__init__(
            f"Msvc query command failed: {self.command!r} status={self.status}"
        )


@dataclass
class EnvironmentApplyFailure(ToolchainError):
    line: str
    errno: int

    def __post_init__(self):
        super().__init__(
            f"Failed to apply environment variable key=value pair: {self.line!r} errno={self.errno}"
        )


@dataclass
class CommandFailed(RezError):
    command: str
    returncode: int

    def __post_init__(self):
        super().__init__(
            f"{self.command!r} command failed and exited with {self.returncode} return code"
        )


@dataclass
class PathNotExists(RezError):
    path: str

    def __post_init__(self):
        super().__init__(f"Path doesn't exists: {self.path!r}")
