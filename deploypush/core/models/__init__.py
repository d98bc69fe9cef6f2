"""
Domain models — Pydantic types for the push pipeline.

All models are re-exported here for convenient access:

    from deploypush.core.models import ProfileTarget, DeploymentSettings, VerifiedArtifact
"""

from deploypush.core.models.artifact import (
    ContentAddressedArtifact,
    RealizedArtifact,
    StorePathArtifact,
    VerifiedArtifact,
)
from deploypush.core.models.deploy import (
    DeployConfig,
    GenericSettings,
    NodeConfig,
    ProfileConfig,
)
from deploypush.core.models.profile import (
    DEFAULT_RESULT_DIR,
    NIX_STORE_DIR,
    DeploymentSettings,
    ProfileTarget,
)

__all__ = [
    # artifact.py
    "ContentAddressedArtifact",
    "RealizedArtifact",
    "StorePathArtifact",
    "VerifiedArtifact",
    # deploy.py
    "DeployConfig",
    "GenericSettings",
    "NodeConfig",
    "ProfileConfig",
    # profile.py
    "DEFAULT_RESULT_DIR",
    "DeploymentSettings",
    "NIX_STORE_DIR",
    "ProfileTarget",
]
