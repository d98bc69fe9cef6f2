"""
Runner base — the process contract between engine and external tools.

This defines the abstract interface every command runner implements.
The engine never spawns processes itself: it describes a command as a
CommandSpec and hands it to a runner, which returns a ProcessResult.

Runners know nothing about pipeline phases. They raise exactly two
kinds of error, and the engine maps those onto phase-tagged errors:

    ProcessStartError — the program could not be launched
    ProcessRunError   — it launched, but waiting or reading output failed

A non-zero exit is NOT an error at this layer; it is reported in
ProcessResult.exit_code and interpreted by the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel, Field

StdoutMode = Literal["inherit", "capture", "discard"]


class CommandSpec(BaseModel):
    """Everything a runner needs to launch one external command."""

    program: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)   # merged over os.environ
    stdout: StdoutMode = "inherit"

    @property
    def argv(self) -> list[str]:
        """Full argument vector, program first."""
        return [self.program, *self.args]

    def display(self) -> str:
        """Command line as a single string, for logs and error messages."""
        return " ".join(self.argv)


class ProcessResult(BaseModel):
    """Outcome of a process that was spawned and awaited."""

    argv: list[str] = Field(default_factory=list)
    exit_code: int | None = 0      # None: terminated by a signal
    stdout: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessStartError(Exception):
    """The command could not be spawned."""

    def __init__(self, spec: CommandSpec, cause: OSError):
        super().__init__(f"Failed to start `{spec.display()}`: {cause}")
        self.spec = spec
        self.cause = cause


class ProcessRunError(Exception):
    """The command was spawned but waiting for it failed."""

    def __init__(self, spec: CommandSpec, cause: OSError):
        super().__init__(f"Error while running `{spec.display()}`: {cause}")
        self.spec = spec
        self.cause = cause


class CommandRunner(ABC):
    """Abstract base class for all command runners.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, is_available, run
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'subprocess', 'mock')."""

    @abstractmethod
    def is_available(self, program: str) -> bool:
        """Check if the given program can be launched by this runner.

        Should be fast and never raise.
        """

    @abstractmethod
    def run(self, spec: CommandSpec) -> ProcessResult:
        """Run the command to completion and return its result.

        Raises:
            ProcessStartError: If the process could not be spawned.
            ProcessRunError: If awaiting the process failed.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
