"""
Mock runner — universal test double for command execution.

Records every command it is asked to run and answers with canned
results. Responses are matched by argv prefix, so a test can say
"every `nix build` exits 1" without spelling out the full command.
"""

from __future__ import annotations

from deploypush.adapters.base import (
    CommandRunner,
    CommandSpec,
    ProcessResult,
    ProcessRunError,
    ProcessStartError,
)


class MockRunner(CommandRunner):
    """Universal mock runner for testing.

    By default, every command succeeds with empty stdout. Can be
    configured with custom results or failures per command prefix.
    """

    def __init__(self, runner_name: str = "mock", available: bool = True):
        self._name = runner_name
        self._available = available
        self._responses: list[tuple[list[str], ProcessResult | Exception]] = []
        self._call_log: list[CommandSpec] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[CommandSpec]:
        """All command specs this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[list[str]]:
        """Argument vectors of every call, for compact assertions."""
        return [spec.argv for spec in self._call_log]

    def is_available(self, program: str) -> bool:
        return self._available

    def set_response(
        self,
        prefix: str,
        stdout: bytes | str = b"",
        exit_code: int | None = 0,
    ) -> None:
        """Answer commands starting with ``prefix`` with a fixed result."""
        if isinstance(stdout, str):
            stdout = stdout.encode("utf-8")
        self._responses.append(
            (prefix.split(), ProcessResult(exit_code=exit_code, stdout=stdout))
        )

    def set_exit_code(self, prefix: str, exit_code: int | None) -> None:
        """Make commands starting with ``prefix`` exit with ``exit_code``."""
        self.set_response(prefix, exit_code=exit_code)

    def set_start_failure(self, prefix: str, error: OSError | None = None) -> None:
        """Make commands starting with ``prefix`` fail to spawn."""
        self._responses.append(
            (prefix.split(), error or FileNotFoundError(2, "No such file or directory"))
        )

    def set_run_failure(self, prefix: str, error: OSError | None = None) -> None:
        """Make commands starting with ``prefix`` fail while being awaited."""
        self._responses.append(
            (prefix.split(), _RunFailure(error or BrokenPipeError(32, "Broken pipe")))
        )

    def run(self, spec: CommandSpec) -> ProcessResult:
        self._call_log.append(spec)

        # Latest matching registration wins
        for prefix, response in reversed(self._responses):
            if spec.argv[: len(prefix)] != prefix:
                continue
            if isinstance(response, _RunFailure):
                raise ProcessRunError(spec, response.error)
            if isinstance(response, OSError):
                raise ProcessStartError(spec, response)
            return response.model_copy(update={"argv": spec.argv})

        return ProcessResult(argv=spec.argv)

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()


class _RunFailure(Exception):
    """Marker wrapping an OSError raised after a successful spawn."""

    def __init__(self, error: OSError):
        super().__init__(str(error))
        self.error = error
