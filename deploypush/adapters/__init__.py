"""Adapters — process execution for external tools.

Public re-exports for convenient access.
"""

from deploypush.adapters.base import (
    CommandRunner,
    CommandSpec,
    ProcessResult,
    ProcessRunError,
    ProcessStartError,
)
from deploypush.adapters.mock import MockRunner
from deploypush.adapters.shell.command import SubprocessRunner

__all__ = [
    "CommandRunner",
    "CommandSpec",
    "MockRunner",
    "ProcessResult",
    "ProcessRunError",
    "ProcessStartError",
    "SubprocessRunner",
]
