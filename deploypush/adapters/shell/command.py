"""
Subprocess runner — execute external commands for real.

This is the only place in the project that spawns processes. Stderr is
always inherited so the build and copy tools can report progress
directly to the operator's terminal.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from deploypush.adapters.base import (
    CommandRunner,
    CommandSpec,
    ProcessResult,
    ProcessRunError,
    ProcessStartError,
)

logger = logging.getLogger(__name__)

_STDOUT_TARGETS = {
    "inherit": None,
    "capture": subprocess.PIPE,
    "discard": subprocess.DEVNULL,
}


class SubprocessRunner(CommandRunner):
    """Run commands with ``subprocess.Popen`` and wait for them to exit.

    There is no timeout: a hung child hangs the caller. Imposing limits
    is left to whoever orchestrates the runs.
    """

    @property
    def name(self) -> str:
        return "subprocess"

    def is_available(self, program: str) -> bool:
        return shutil.which(program) is not None

    def run(self, spec: CommandSpec) -> ProcessResult:
        env = {**os.environ, **spec.env} if spec.env else None

        logger.debug("Executing: %s", spec.display())
        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                spec.argv,
                stdout=_STDOUT_TARGETS[spec.stdout],
                env=env,
            )
        except OSError as e:
            raise ProcessStartError(spec, e) from e

        try:
            stdout, _ = proc.communicate()
        except OSError as e:
            proc.kill()
            proc.wait()
            raise ProcessRunError(spec, e) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        # Negative return codes mean the child died from a signal
        exit_code = proc.returncode if proc.returncode >= 0 else None
        logger.debug(
            "Finished: %s → exit=%s (%d ms)", spec.program, exit_code, elapsed_ms
        )

        return ProcessResult(
            argv=spec.argv,
            exit_code=exit_code,
            stdout=stdout or b"",
        )
