"""
Activation verifier — refuse to push what cannot be activated.

A deployable profile carries two entry points at its root:

    deploy-rs-activate  wrapper speaking the deploy tool's protocol
    activate-rs         lower-level activation script

They are checked in that order and reported separately, because each
points at a different mistake.
"""

from __future__ import annotations

import logging
from pathlib import Path

from deploypush.core.errors import ActivateRsMissingError, DeployRsActivateMissingError
from deploypush.core.models.artifact import RealizedArtifact, VerifiedArtifact

logger = logging.getLogger(__name__)

DEPLOY_RS_ACTIVATE = "deploy-rs-activate"
ACTIVATE_RS = "activate-rs"


def verify_activation(artifact: RealizedArtifact) -> VerifiedArtifact:
    """Check both activation entry points exist under the artifact path.

    Raises:
        DeployRsActivateMissingError: deploy-rs-activate is missing.
        ActivateRsMissingError: activate-rs is missing.
    """
    root = Path(artifact.path)

    if not (root / DEPLOY_RS_ACTIVATE).exists():
        raise DeployRsActivateMissingError(artifact.path)
    if not (root / ACTIVATE_RS).exists():
        raise ActivateRsMissingError(artifact.path)

    logger.debug("Activation entry points present in %s", artifact.path)
    return VerifiedArtifact(artifact=artifact)
