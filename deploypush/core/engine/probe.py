"""
Flake support probe.

``builtins.getFlake`` only exists when the flakes feature is enabled,
so evaluating it is a cheap way to learn which build dialect to use.
"""

from __future__ import annotations

import logging

from deploypush.adapters.base import CommandRunner, ProcessRunError, ProcessStartError
from deploypush.core.engine.commands import flake_probe_command

logger = logging.getLogger(__name__)


def detect_flake_support(runner: CommandRunner) -> bool:
    """Return True if the local Nix supports flakes.

    A missing or failing ``nix`` counts as "no flakes" rather than an
    error; the build stage will report the real problem.
    """
    spec = flake_probe_command()
    try:
        result = runner.run(spec)
    except (ProcessStartError, ProcessRunError) as e:
        logger.debug("Flake probe could not run: %s", e)
        return False

    logger.debug("Flake probe exit code: %s", result.exit_code)
    return result.ok
