"""
Build executor — realize a profile's artifact locally.

Two builders, one per shape of profile path (the pipeline picks one):

    store path         locate its derivation, build that, keep the
                       original path (stdout is discarded)
    content-addressed  build the flake attribute and read the realized
                       path from stdout (flakes required)

Link policy (--out-link vs --no-link / --no-out-link) and extra build
arguments are applied the same way in both branches; see commands.py.
"""

from __future__ import annotations

import logging

from deploypush.adapters.base import CommandRunner, ProcessRunError, ProcessStartError
from deploypush.core.engine.commands import ca_build_command, derivation_build_command
from deploypush.core.engine.resolver import locate_derivation, run_capturing_build
from deploypush.core.errors import (
    BuildExitError,
    BuildRunError,
    BuildStartError,
    CADerivationNonFlakeError,
)
from deploypush.core.models.artifact import (
    ContentAddressedArtifact,
    StorePathArtifact,
)
from deploypush.core.models.profile import DeploymentSettings, ProfileTarget

logger = logging.getLogger(__name__)


def build_content_addressed(
    target: ProfileTarget,
    settings: DeploymentSettings,
    runner: CommandRunner,
) -> ContentAddressedArtifact:
    """Build a content-addressed profile through its flake attribute."""
    logger.info(
        'The path %s does not start with "/nix/store", '
        "so we will assume this is a content-addressed derivation",
        target.path,
    )
    if not settings.supports_flakes:
        raise CADerivationNonFlakeError()

    spec = ca_build_command(target, settings)

    logger.info(
        "Building profile `%s` for node `%s`", target.profile_name, target.node_name
    )
    logger.debug("Trying to catch output path after build of the CA derivation")
    return ContentAddressedArtifact(path=run_capturing_build(spec, runner))


def build_store_path(
    target: ProfileTarget,
    settings: DeploymentSettings,
    runner: CommandRunner,
) -> StorePathArtifact:
    """Build the derivation behind an already-known store path."""
    derivation = locate_derivation(target.path, runner)
    spec = derivation_build_command(derivation, target, settings)

    logger.info(
        "Building profile `%s` for node `%s`", target.profile_name, target.node_name
    )
    try:
        result = runner.run(spec)
    except ProcessStartError as e:
        raise BuildStartError(e.cause) from e
    except ProcessRunError as e:
        raise BuildRunError(e.cause) from e

    if not result.ok:
        raise BuildExitError(result.exit_code)

    return StorePathArtifact(path=target.path, derivation=derivation)
