"""
Transfer — sign the verified artifact and copy it to the remote store.

Both stages take a VerifiedArtifact, so neither can run on something
the activation verifier has not accepted. For a content-addressed
profile the path is the realized output; otherwise it is the original
store path.
"""

from __future__ import annotations

import logging

from deploypush.adapters.base import CommandRunner, ProcessRunError, ProcessStartError
from deploypush.core.engine.commands import copy_command, sign_command
from deploypush.core.errors import CopyExitError, CopyStartError, SignExitError, SignStartError
from deploypush.core.models.artifact import VerifiedArtifact
from deploypush.core.models.profile import DeploymentSettings, ProfileTarget

logger = logging.getLogger(__name__)


def sign_artifact(
    artifact: VerifiedArtifact,
    target: ProfileTarget,
    signing_key: str | None,
    runner: CommandRunner,
) -> bool:
    """Recursively sign the artifact path with the local key, if there is one.

    Returns:
        True if a signature was made, False if no key was supplied.

    Raises:
        SignStartError: The sign tool could not be run.
        SignExitError: The sign tool exited non-zero.
    """
    if not signing_key:
        return False

    logger.info(
        "Signing key present! Signing profile `%s` for node `%s`",
        target.profile_name,
        target.node_name,
    )

    try:
        result = runner.run(sign_command(signing_key, artifact.path))
    except (ProcessStartError, ProcessRunError) as e:
        raise SignStartError(e.cause) from e

    if not result.ok:
        raise SignExitError(result.exit_code)
    return True


def copy_artifact(
    artifact: VerifiedArtifact,
    target: ProfileTarget,
    settings: DeploymentSettings,
    runner: CommandRunner,
) -> None:
    """Copy the artifact closure to the node over ssh.

    Raises:
        CopyStartError: The copy tool could not be run.
        CopyExitError: The copy tool exited non-zero.
    """
    logger.info(
        "Copying profile `%s` to node `%s`", target.profile_name, target.node_name
    )

    try:
        result = runner.run(copy_command(artifact.path, settings))
    except (ProcessStartError, ProcessRunError) as e:
        raise CopyStartError(e.cause) from e

    if not result.ok:
        raise CopyExitError(result.exit_code)
