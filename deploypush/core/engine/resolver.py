"""
Resolution — turning a profile reference into something buildable.

Two entry points:

    resolve_ca_profile  build a content-addressed profile on its own and
                        return the realized output path (build-only use)
    locate_derivation   find the derivation behind an existing store path

``nix-store --query --deriver`` refuses paths that are not valid in the
local store yet, so the deriver is recovered from show-derivation.
"""

from __future__ import annotations

import json
import logging

from deploypush.adapters.base import (
    CommandRunner,
    CommandSpec,
    ProcessRunError,
    ProcessStartError,
)
from deploypush.core.engine.commands import ca_resolve_command, show_derivation_command
from deploypush.core.errors import (
    BuildExitError,
    BuildOutputError,
    BuildRunError,
    BuildStartError,
    CADerivationNonFlakeError,
    ShowDerivationEmptyError,
    ShowDerivationExitError,
    ShowDerivationParseError,
    ShowDerivationStartError,
    ShowDerivationUtf8Error,
)
from deploypush.core.models.profile import ProfileTarget

logger = logging.getLogger(__name__)


def run_capturing_build(spec: CommandSpec, runner: CommandRunner) -> str:
    """Run a build that prints its output path and return that path.

    Raises:
        BuildStartError: The build tool could not be launched.
        BuildRunError: The build launched but awaiting it failed.
        BuildExitError: The build exited non-zero or was killed.
        BuildOutputError: The build succeeded without a usable path.
    """
    try:
        result = runner.run(spec)
    except ProcessStartError as e:
        raise BuildStartError(e.cause) from e
    except ProcessRunError as e:
        raise BuildRunError(e.cause) from e

    if not result.ok:
        raise BuildExitError(result.exit_code)

    try:
        path = result.stdout.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise BuildOutputError(str(e)) from e

    if not path:
        raise BuildOutputError("output was empty")

    logger.debug("Actual output path is %s", path)
    return path


def resolve_ca_profile(
    target: ProfileTarget,
    supports_flakes: bool,
    runner: CommandRunner,
    extra_build_args: list[str] | None = None,
) -> str:
    """Build a content-addressed profile and return its realized path.

    Args:
        target: The profile to build. Its path is assumed to be a
            content-addressed reference rather than a store path.
        supports_flakes: Whether the local Nix supports flakes. Required.
        runner: Command runner used to invoke the build.
        extra_build_args: Appended verbatim to the build command.

    Returns:
        The realized store path, as printed by the build tool.

    Raises:
        CADerivationNonFlakeError: If flakes are unsupported. No build is run.
        BuildError: Any build-phase failure (see run_capturing_build).
    """
    logger.info(
        'The path %s does not start with "/nix/store", '
        "so we will assume this is a content-addressed derivation",
        target.path,
    )
    if not supports_flakes:
        raise CADerivationNonFlakeError()

    spec = ca_resolve_command(target, list(extra_build_args or []))

    logger.info(
        "Building CA profile `%s` for node `%s`", target.profile_name, target.node_name
    )
    return run_capturing_build(spec, runner)


def locate_derivation(path: str, runner: CommandRunner) -> str:
    """Return the derivation that produces the given store path.

    The inspection tool answers with a JSON object keyed by derivation
    path. The first key is taken; an empty object is an error.

    Raises:
        ResolutionError: One of the show-derivation failure kinds.
    """
    logger.debug("Finding the deriver of store path for %s", path)

    spec = show_derivation_command(path)
    try:
        result = runner.run(spec)
    except (ProcessStartError, ProcessRunError) as e:
        raise ShowDerivationStartError(e.cause) from e

    if not result.ok:
        raise ShowDerivationExitError(result.exit_code)

    try:
        text = result.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ShowDerivationUtf8Error(e) from e

    try:
        info = json.loads(text)
    except json.JSONDecodeError as e:
        raise ShowDerivationParseError(e) from e

    if not isinstance(info, dict):
        raise ShowDerivationParseError(
            ValueError(f"expected a JSON object, got {type(info).__name__}")
        )

    if not info:
        raise ShowDerivationEmptyError()

    if len(info) > 1:
        logger.warning(
            "show-derivation returned %d derivations for %s, using the first",
            len(info),
            path,
        )

    derivation = next(iter(info))
    logger.debug("Derivation for %s is %s", path, derivation)
    return derivation
